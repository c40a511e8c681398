"""Work anniversary schemas."""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel


class AnniversaryInfo(BaseModel):
    """Effective tenure and the next calendar anniversary of a user."""

    years: int
    months: int
    days: int
    is_today: bool
    next_anniversary: date
    days_until_next: int


class UpcomingAnniversary(BaseModel):
    user_id: uuid.UUID
    full_name: str
    start_date: date
    anniversary_date: date
    years: int
    days_until: int
    message: str
