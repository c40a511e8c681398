"""Anniversary router — own anniversary and team-wide upcoming list."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.anniversaries.schemas import AnniversaryInfo, UpcomingAnniversary
from leavekeeper.anniversaries.service import AnniversaryService
from leavekeeper.auth.dependencies import get_current_user, require_role
from leavekeeper.common.constants import UserRole
from leavekeeper.database import get_db
from leavekeeper.entitlement.repository import SqlEntitlementReader
from leavekeeper.users.models import User

router = APIRouter(prefix="", tags=["anniversaries"])


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=Optional[AnniversaryInfo])
async def my_anniversary(
    as_of: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Effective tenure and next anniversary; ``null`` without a start date."""
    return await AnniversaryService.get_anniversary_info(
        SqlEntitlementReader(db), user.start_date, user.id, as_of,
    )


# ── GET /upcoming ───────────────────────────────────────────────────

@router.get("/upcoming", response_model=list[UpcomingAnniversary])
async def upcoming_anniversaries(
    limit: int = Query(10, ge=1, le=100),
    _: User = Depends(require_role(UserRole.manager, UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AnniversaryService.get_upcoming_anniversaries(db, limit)


# ── GET /this-month ─────────────────────────────────────────────────

@router.get("/this-month", response_model=list[UpcomingAnniversary])
async def this_month_anniversaries(
    _: User = Depends(require_role(UserRole.manager, UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AnniversaryService.get_this_month_anniversaries(db)
