"""Bonus leave service — grants, per-user summaries, admin overview.

``days_used`` is owned by the leave workflow; nothing here changes it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.bonus.models import BonusLeaveGrant
from leavekeeper.bonus.schemas import (
    BonusLeaveGrantCreate,
    BonusLeaveGrantOut,
    BonusLeaveUserSummary,
)
from leavekeeper.common.audit import create_audit_entry
from leavekeeper.common.exceptions import NotFoundException
from leavekeeper.users.models import User
from leavekeeper.users.service import UserService

logger = logging.getLogger(__name__)


def _add_grant(summary: BonusLeaveUserSummary, grant: BonusLeaveGrant) -> None:
    summary.total_granted += grant.days_granted
    summary.total_used += grant.days_used
    summary.remaining = summary.total_granted - summary.total_used
    summary.grants.append(BonusLeaveGrantOut.model_validate(grant))


class BonusLeaveService:

    @staticmethod
    async def grant(
        db: AsyncSession,
        data: BonusLeaveGrantCreate,
        granted_by: Optional[uuid.UUID] = None,
    ) -> BonusLeaveGrantOut:
        """Create a grant for ``data.user_id``. Several grants per year add up."""
        await UserService.get_user(db, data.user_id)

        grant = BonusLeaveGrant(
            user_id=data.user_id,
            year=data.year,
            days_granted=data.days_granted,
            days_used=0,
            reason=data.reason,
            granted_by=granted_by,
        )
        db.add(grant)
        await db.flush()

        await create_audit_entry(
            db,
            action="grant",
            entity_type="bonus_leave_grant",
            entity_id=grant.id,
            actor_id=granted_by,
            new_values={
                "user_id": str(data.user_id),
                "year": data.year,
                "days_granted": data.days_granted,
                "reason": data.reason,
            },
        )
        await db.refresh(grant)

        logger.info(
            "Granted %d bonus day(s) for %d to user %s",
            data.days_granted, data.year, data.user_id,
        )
        return BonusLeaveGrantOut.model_validate(grant)

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: Optional[int] = None,
    ) -> list[BonusLeaveGrantOut]:
        """Grants of a user, newest first, optionally for one year."""
        query = (
            select(BonusLeaveGrant)
            .where(BonusLeaveGrant.user_id == user_id)
            .order_by(BonusLeaveGrant.created_at.desc(), BonusLeaveGrant.year.desc())
        )
        if year is not None:
            query = query.where(BonusLeaveGrant.year == year)

        result = await db.execute(query)
        return [BonusLeaveGrantOut.model_validate(g) for g in result.scalars().all()]

    @staticmethod
    async def get_summary(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
    ) -> Optional[BonusLeaveUserSummary]:
        """Totals for one user and year; ``None`` when nothing was granted."""
        result = await db.execute(
            select(BonusLeaveGrant, User.full_name)
            .join(User, BonusLeaveGrant.user_id == User.id)
            .where(BonusLeaveGrant.user_id == user_id, BonusLeaveGrant.year == year)
            .order_by(BonusLeaveGrant.created_at.desc())
        )
        rows = result.all()
        if not rows:
            return None

        summary = BonusLeaveUserSummary(
            user_id=user_id, full_name=rows[0][1], year=year,
        )
        for grant, _ in rows:
            _add_grant(summary, grant)
        return summary

    @staticmethod
    async def list_all_summaries(
        db: AsyncSession,
        year: Optional[int] = None,
    ) -> list[BonusLeaveUserSummary]:
        """Admin overview grouped per user and year.

        Sorted by year descending, then by full name.
        """
        query = (
            select(BonusLeaveGrant, User.full_name)
            .join(User, BonusLeaveGrant.user_id == User.id)
            .order_by(BonusLeaveGrant.created_at.desc())
        )
        if year is not None:
            query = query.where(BonusLeaveGrant.year == year)

        result = await db.execute(query)

        grouped: dict[tuple[uuid.UUID, int], BonusLeaveUserSummary] = {}
        for grant, full_name in result.all():
            key = (grant.user_id, grant.year)
            if key not in grouped:
                grouped[key] = BonusLeaveUserSummary(
                    user_id=grant.user_id, full_name=full_name, year=grant.year,
                )
            _add_grant(grouped[key], grant)

        return sorted(
            grouped.values(),
            key=lambda s: (-s.year, s.full_name.casefold()),
        )

    @staticmethod
    async def delete(
        db: AsyncSession,
        grant_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        result = await db.execute(
            select(BonusLeaveGrant).where(BonusLeaveGrant.id == grant_id)
        )
        grant = result.scalars().first()
        if grant is None:
            raise NotFoundException("BonusLeaveGrant", str(grant_id))

        old_values = {
            "user_id": str(grant.user_id),
            "year": grant.year,
            "days_granted": grant.days_granted,
            "days_used": grant.days_used,
        }
        await db.delete(grant)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="bonus_leave_grant",
            entity_id=grant_id,
            actor_id=actor_id,
            old_values=old_values,
        )
        logger.info("Bonus leave grant %s deleted", grant_id)
