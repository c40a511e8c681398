"""Enums, policy tables and constants for Leavekeeper."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    canceled = "canceled"


# ── Tenure policy ───────────────────────────────────────────────────

# (minimum effective employment year, annual paid leave days), ascending.
# Year 1 is the onboarding year and is prorated by start month.
TENURE_QUOTA_TIERS: tuple[tuple[int, int], ...] = (
    (1, 12),
    (2, 13),
    (3, 15),
    (4, 18),
    (5, 22),
)

ONBOARDING_YEAR = 1
DEFAULT_ONBOARDING_QUOTA = 12

# An absence must last strictly longer than this to delay tenure
EXTENDED_ABSENCE_MIN_DAYS = 30

# Approximate calendar used for tenure arithmetic and display
DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30

# Mon=0 … Sun=6
WEEKEND_DAYS: frozenset[int] = frozenset({5, 6})


# ── Misc constants ──────────────────────────────────────────────────

UPCOMING_ANNIVERSARY_WINDOW_DAYS = 365
