"""Extended absence router — admin maintenance of tenure-reducing absences."""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.absences.schemas import (
    ExtendedAbsenceCreate,
    ExtendedAbsenceOut,
    ExtendedAbsenceUpdate,
)
from leavekeeper.absences.service import AbsenceService
from leavekeeper.auth.dependencies import require_role
from leavekeeper.common.constants import UserRole
from leavekeeper.database import get_db
from leavekeeper.users.models import User

router = APIRouter(prefix="", tags=["extended-absences"])


# ── GET /users/{id}/extended-absences ───────────────────────────────

@router.get(
    "/users/{user_id}/extended-absences",
    response_model=list[ExtendedAbsenceOut],
)
async def list_absences(
    user_id: uuid.UUID,
    _: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AbsenceService.list_for_user(db, user_id)


# ── POST /users/{id}/extended-absences ──────────────────────────────

@router.post(
    "/users/{user_id}/extended-absences",
    response_model=ExtendedAbsenceOut,
    status_code=201,
)
async def create_absence(
    user_id: uuid.UUID,
    body: ExtendedAbsenceCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Record an extended absence. Only absences over 30 days affect tenure."""
    return await AbsenceService.create(db, user_id, body, actor_id=admin.id)


# ── PATCH /extended-absences/{id} ───────────────────────────────────

@router.patch("/extended-absences/{absence_id}", response_model=ExtendedAbsenceOut)
async def update_absence(
    absence_id: uuid.UUID,
    body: ExtendedAbsenceUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AbsenceService.update(db, absence_id, body, actor_id=admin.id)


# ── DELETE /extended-absences/{id} ──────────────────────────────────

@router.delete("/extended-absences/{absence_id}", status_code=204)
async def delete_absence(
    absence_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await AbsenceService.delete(db, absence_id, actor_id=admin.id)
    return Response(status_code=204)
