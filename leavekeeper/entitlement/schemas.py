"""Entitlement Pydantic v2 schemas.

Naming conventions:
  - *Record  → read-only inputs loaded from persistence
  - others   → derived results, computed fresh on every call
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavekeeper.common.constants import LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Input records
# ═════════════════════════════════════════════════════════════════════


class UserRecord(BaseModel):
    """The slice of a user the engine needs."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    start_date: Optional[date] = None


class ExtendedAbsenceRecord(BaseModel):
    """A continuous absence period; ``end_date`` is inclusive."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: uuid.UUID
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "ExtendedAbsenceRecord":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class LeaveRequestRecord(BaseModel):
    """A leave request joined to its leave type's paid flag."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    status: LeaveStatus
    start_date: date
    end_date: Optional[date] = None
    is_half_day: bool = False
    is_paid: bool = True


class BonusGrantRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: uuid.UUID
    year: int
    days_granted: int
    days_used: int = 0


# ═════════════════════════════════════════════════════════════════════
# Derived results
# ═════════════════════════════════════════════════════════════════════


class EffectiveTenure(BaseModel):
    """Service time after absences, in 365-day years and 30-day months."""

    model_config = ConfigDict(frozen=True)

    years: int = 0
    months: int = 0
    days: int = 0


class AbsenceImpact(BaseModel):
    total_absence_days: int = 0
    anniversary_delay: int = 0
    tenure_reduction: str = "0 days"


class LeaveEntitlement(BaseModel):
    """Paid leave quota for one user as of a target date."""

    original_start_date: Optional[date] = None
    effective_start_date: Optional[date] = None
    working_anniversary: Optional[date] = None
    employment_year: int = Field(..., description="Unadjusted year of employment")
    effective_employment_year: int = Field(
        ..., description="Year of employment after extended absences"
    )
    is_onboarding_year: bool
    total_quota: int
    prorated_quota: Optional[int] = None
    extended_absence_impact: AbsenceImpact = Field(default_factory=AbsenceImpact)


class LeaveBalance(BaseModel):
    total_quota: int
    used_days: Decimal = Decimal("0")
    remaining_days: Decimal = Decimal("0")
    pending_days: Decimal = Decimal("0")
    available_days: Decimal = Decimal("0")
    employment_year: int
    is_onboarding_year: bool


class BonusLeaveSummary(BaseModel):
    user_id: uuid.UUID
    year: int
    total_granted: int = 0
    total_used: int = 0
    remaining: int = 0


class LeaveBalanceOverview(BaseModel):
    """Balance plus the bonus days granted on top of it."""

    year: int
    balance: LeaveBalance
    bonus: BonusLeaveSummary


class LeaveStats(BaseModel):
    """Admin view of one user's leave year."""

    user_id: uuid.UUID
    year: int
    paid_used_days: Decimal = Decimal("0")
    unpaid_used_days: Decimal = Decimal("0")
    total_approved_requests: int = 0
    pending_requests: int = 0
    rejected_requests: int = 0
    canceled_requests: int = 0
    total_paid_days: Optional[int] = None
    employment_year: Optional[int] = None
