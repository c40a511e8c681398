"""Bonus leave router — admin grants and the caller's own grants."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.auth.dependencies import get_current_user, require_role
from leavekeeper.bonus.schemas import (
    BonusLeaveGrantCreate,
    BonusLeaveGrantOut,
    BonusLeaveUserSummary,
)
from leavekeeper.bonus.service import BonusLeaveService
from leavekeeper.common.constants import UserRole
from leavekeeper.database import get_db
from leavekeeper.users.models import User

router = APIRouter(prefix="", tags=["bonus-leave"])


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=BonusLeaveGrantOut, status_code=201)
async def grant_bonus_leave(
    body: BonusLeaveGrantCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Grant extra paid days to a user for a given year."""
    return await BonusLeaveService.grant(db, body, granted_by=admin.id)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=list[BonusLeaveUserSummary])
async def list_bonus_leave(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    _: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """All grants grouped per user and year."""
    return await BonusLeaveService.list_all_summaries(db, year)


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=list[BonusLeaveGrantOut])
async def my_bonus_leave(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BonusLeaveService.list_for_user(db, user.id, year)


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{grant_id}", status_code=204)
async def delete_bonus_leave(
    grant_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await BonusLeaveService.delete(db, grant_id, actor_id=admin.id)
    return Response(status_code=204)
