"""Extended absence administration.

Rows written here are read-only input to the entitlement engine; every
write is recorded in the audit trail.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.absences.models import ExtendedAbsence
from leavekeeper.absences.schemas import (
    ExtendedAbsenceCreate,
    ExtendedAbsenceOut,
    ExtendedAbsenceUpdate,
)
from leavekeeper.common.audit import create_audit_entry
from leavekeeper.common.exceptions import InvalidDateRangeException, NotFoundException
from leavekeeper.users.service import UserService

logger = logging.getLogger(__name__)


def _snapshot(absence: ExtendedAbsence) -> dict[str, Any]:
    return {
        "start_date": absence.start_date.isoformat(),
        "end_date": absence.end_date.isoformat(),
        "reason": absence.reason,
    }


class AbsenceService:

    @staticmethod
    async def _get(db: AsyncSession, absence_id: uuid.UUID) -> ExtendedAbsence:
        result = await db.execute(
            select(ExtendedAbsence).where(ExtendedAbsence.id == absence_id)
        )
        absence = result.scalars().first()
        if absence is None:
            raise NotFoundException("ExtendedAbsence", str(absence_id))
        return absence

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> list[ExtendedAbsenceOut]:
        """All absences of a user, oldest first."""
        await UserService.get_user(db, user_id)
        result = await db.execute(
            select(ExtendedAbsence)
            .where(ExtendedAbsence.user_id == user_id)
            .order_by(ExtendedAbsence.start_date)
        )
        return [ExtendedAbsenceOut.model_validate(a) for a in result.scalars().all()]

    @staticmethod
    async def create(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: ExtendedAbsenceCreate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> ExtendedAbsenceOut:
        await UserService.get_user(db, user_id)

        absence = ExtendedAbsence(
            user_id=user_id,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason,
        )
        db.add(absence)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="extended_absence",
            entity_id=absence.id,
            actor_id=actor_id,
            new_values=_snapshot(absence),
        )
        await db.refresh(absence)

        logger.info(
            "Extended absence %s recorded for user %s (%s → %s)",
            absence.id, user_id, absence.start_date, absence.end_date,
        )
        return ExtendedAbsenceOut.model_validate(absence)

    @staticmethod
    async def update(
        db: AsyncSession,
        absence_id: uuid.UUID,
        data: ExtendedAbsenceUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> ExtendedAbsenceOut:
        """Apply the fields present in ``data``; the resulting range must stay ordered."""
        absence = await AbsenceService._get(db, absence_id)
        old_values = _snapshot(absence)

        changes = data.model_dump(exclude_unset=True)
        start_date = changes.get("start_date") or absence.start_date
        end_date = changes.get("end_date") or absence.end_date
        if end_date < start_date:
            raise InvalidDateRangeException(start_date, end_date)

        for field, value in changes.items():
            if field in ("start_date", "end_date") and value is None:
                continue
            setattr(absence, field, value)
        absence.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="extended_absence",
            entity_id=absence.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=_snapshot(absence),
        )
        await db.refresh(absence)
        return ExtendedAbsenceOut.model_validate(absence)

    @staticmethod
    async def delete(
        db: AsyncSession,
        absence_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        absence = await AbsenceService._get(db, absence_id)
        old_values = _snapshot(absence)

        await db.delete(absence)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="extended_absence",
            entity_id=absence_id,
            actor_id=actor_id,
            old_values=old_values,
        )
        logger.info("Extended absence %s deleted", absence_id)
