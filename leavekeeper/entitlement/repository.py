"""Read access to the records the entitlement engine consumes.

The engine depends on the ``EntitlementReader`` protocol only; the SQL
implementation below is what the API wires in, tests may pass their own.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.absences.models import ExtendedAbsence
from leavekeeper.bonus.models import BonusLeaveGrant
from leavekeeper.common.constants import LeaveStatus
from leavekeeper.entitlement.schemas import (
    BonusGrantRecord,
    ExtendedAbsenceRecord,
    LeaveRequestRecord,
    UserRecord,
)
from leavekeeper.leave.models import LeaveRequest, LeaveType
from leavekeeper.users.models import User


class EntitlementReader(Protocol):
    async def get_user(self, user_id: uuid.UUID) -> Optional[UserRecord]: ...

    async def get_completed_absences(
        self, user_id: uuid.UUID, as_of: date,
    ) -> list[ExtendedAbsenceRecord]: ...

    async def get_leave_requests(
        self, user_id: uuid.UUID, year: int,
    ) -> list[LeaveRequestRecord]: ...

    async def get_paid_leave_requests(
        self, user_id: uuid.UUID, year: int,
    ) -> list[LeaveRequestRecord]: ...

    async def get_bonus_grants(
        self, user_id: uuid.UUID, year: int,
    ) -> list[BonusGrantRecord]: ...


class SqlEntitlementReader:
    """``EntitlementReader`` over the async SQLAlchemy session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_user(self, user_id: uuid.UUID) -> Optional[UserRecord]:
        result = await self.db.execute(
            select(User.id, User.start_date).where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            return None
        return UserRecord(id=row.id, start_date=row.start_date)

    async def get_completed_absences(
        self,
        user_id: uuid.UUID,
        as_of: date,
    ) -> list[ExtendedAbsenceRecord]:
        """Absences that ended on or before ``as_of``, oldest first."""
        result = await self.db.execute(
            select(ExtendedAbsence)
            .where(
                ExtendedAbsence.user_id == user_id,
                ExtendedAbsence.end_date <= as_of,
            )
            .order_by(ExtendedAbsence.start_date)
        )
        return [
            ExtendedAbsenceRecord.model_validate(row)
            for row in result.scalars().all()
        ]

    async def _requests_for_year(
        self,
        user_id: uuid.UUID,
        year: int,
        *,
        paid_only: bool,
    ) -> list[LeaveRequestRecord]:
        query = (
            select(LeaveRequest, LeaveType.is_paid)
            .join(LeaveType, LeaveRequest.leave_type_id == LeaveType.id)
            .where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
            .order_by(LeaveRequest.start_date)
        )
        if paid_only:
            query = query.where(LeaveType.is_paid.is_(True))

        result = await self.db.execute(query)
        return [
            LeaveRequestRecord(
                user_id=req.user_id,
                leave_type_id=req.leave_type_id,
                status=LeaveStatus(req.status),
                start_date=req.start_date,
                end_date=req.end_date,
                is_half_day=req.is_half_day,
                is_paid=is_paid,
            )
            for req, is_paid in result.all()
        ]

    async def get_leave_requests(
        self,
        user_id: uuid.UUID,
        year: int,
    ) -> list[LeaveRequestRecord]:
        return await self._requests_for_year(user_id, year, paid_only=False)

    async def get_paid_leave_requests(
        self,
        user_id: uuid.UUID,
        year: int,
    ) -> list[LeaveRequestRecord]:
        return await self._requests_for_year(user_id, year, paid_only=True)

    async def get_bonus_grants(
        self,
        user_id: uuid.UUID,
        year: int,
    ) -> list[BonusGrantRecord]:
        result = await self.db.execute(
            select(BonusLeaveGrant).where(
                BonusLeaveGrant.user_id == user_id,
                BonusLeaveGrant.year == year,
            )
        )
        return [
            BonusGrantRecord.model_validate(grant)
            for grant in result.scalars().all()
        ]
