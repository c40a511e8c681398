"""Bonus leave Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BonusLeaveGrantCreate(BaseModel):
    """Payload for granting bonus days to a user."""

    user_id: uuid.UUID
    year: int = Field(..., ge=1900, le=9999)
    days_granted: int = Field(..., gt=0, description="Extra paid days, strictly positive")
    reason: Optional[str] = Field(None, max_length=1000)


class BonusLeaveGrantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    year: int
    days_granted: int
    days_used: int = 0
    reason: Optional[str] = None
    granted_by: Optional[uuid.UUID] = None
    granted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BonusLeaveUserSummary(BaseModel):
    """Grants of one user for one year, with totals."""

    user_id: uuid.UUID
    full_name: str
    year: int
    total_granted: int = 0
    total_used: int = 0
    remaining: int = 0
    grants: list[BonusLeaveGrantOut] = Field(default_factory=list)
