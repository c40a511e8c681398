"""Entitlement router — quotas, balances and leave statistics.

All endpoints require authentication. Other users' figures are restricted
to managers and admins; leave statistics to admins.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.auth.dependencies import get_current_user, require_role
from leavekeeper.common.constants import UserRole
from leavekeeper.common.rate_limit import limiter
from leavekeeper.database import get_db
from leavekeeper.entitlement.repository import SqlEntitlementReader
from leavekeeper.entitlement.schemas import (
    LeaveBalanceOverview,
    LeaveEntitlement,
    LeaveStats,
)
from leavekeeper.entitlement.service import EntitlementService
from leavekeeper.users.models import User
from leavekeeper.users.service import UserService

router = APIRouter(prefix="", tags=["entitlements"])


async def _balance_overview(
    db: AsyncSession,
    user_id: uuid.UUID,
    year: Optional[int],
) -> LeaveBalanceOverview:
    reader = SqlEntitlementReader(db)
    target_year = year or datetime.now(timezone.utc).year
    balance = await EntitlementService.calculate_leave_balance(
        reader, user_id, target_year,
    )
    bonus = await EntitlementService.get_bonus_leave_summary(
        reader, user_id, target_year,
    )
    return LeaveBalanceOverview(year=target_year, balance=balance, bonus=bonus)


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=LeaveEntitlement)
async def my_entitlement(
    as_of: Optional[date] = Query(None, description="Reference date; defaults to today"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user's paid leave entitlement."""
    return await EntitlementService.calculate_complete_leave_entitlement(
        SqlEntitlementReader(db), user.id, as_of,
    )


# ── GET /me/balance ─────────────────────────────────────────────────

@router.get("/me/balance", response_model=LeaveBalanceOverview)
async def my_balance(
    year: Optional[int] = Query(None, ge=1900, le=9999, description="Leave year; defaults to current year"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user's balance and bonus days for a year."""
    return await _balance_overview(db, user.id, year)


# ── GET /users/{id} ─────────────────────────────────────────────────

@router.get("/users/{user_id}", response_model=LeaveEntitlement)
async def user_entitlement(
    user_id: uuid.UUID,
    as_of: Optional[date] = Query(None),
    _: User = Depends(require_role(UserRole.manager, UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Entitlement for any user (manager/admin)."""
    await UserService.get_user(db, user_id)
    return await EntitlementService.calculate_complete_leave_entitlement(
        SqlEntitlementReader(db), user_id, as_of,
    )


# ── GET /users/{id}/balance ─────────────────────────────────────────

@router.get("/users/{user_id}/balance", response_model=LeaveBalanceOverview)
async def user_balance(
    user_id: uuid.UUID,
    year: Optional[int] = Query(None, ge=1900, le=9999),
    _: User = Depends(require_role(UserRole.manager, UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Balance for any user (manager/admin)."""
    await UserService.get_user(db, user_id)
    return await _balance_overview(db, user_id, year)


# ── GET /users/{id}/leave-stats ─────────────────────────────────────

@router.get("/users/{user_id}/leave-stats", response_model=LeaveStats)
@limiter.limit("30/minute")
async def user_leave_stats(
    request: Request,
    user_id: uuid.UUID,
    year: Optional[int] = Query(None, ge=1900, le=9999),
    _: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Paid/unpaid usage and request counts for a user's leave year (admin)."""
    await UserService.get_user(db, user_id)
    target_year = year or datetime.now(timezone.utc).year
    return await EntitlementService.get_leave_stats(
        SqlEntitlementReader(db), user_id, target_year,
    )
