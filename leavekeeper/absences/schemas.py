"""Extended absence Pydantic v2 schemas — request / response validation."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExtendedAbsenceCreate(BaseModel):
    """Payload for recording an extended absence."""

    start_date: date = Field(..., description="First day of absence (inclusive)")
    end_date: date = Field(..., description="Last day of absence (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_dates(self) -> "ExtendedAbsenceCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self


class ExtendedAbsenceUpdate(BaseModel):
    """Partial update; date order is re-checked against the stored row."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=1000)


class ExtendedAbsenceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    start_date: date
    end_date: date
    reason: Optional[str] = None
    duration_days: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
