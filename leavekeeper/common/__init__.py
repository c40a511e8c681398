"""Common module — shared utilities for Leavekeeper."""

from leavekeeper.common.audit import AuditTrail, create_audit_entry
from leavekeeper.common.constants import (
    DEFAULT_ONBOARDING_QUOTA,
    EXTENDED_ABSENCE_MIN_DAYS,
    ONBOARDING_YEAR,
    TENURE_QUOTA_TIERS,
    LeaveStatus,
    UserRole,
)
from leavekeeper.common.exceptions import (
    AppException,
    ForbiddenException,
    InvalidDateRangeException,
    NotFoundException,
    register_exception_handlers,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "LeaveStatus",
    "UserRole",
    "TENURE_QUOTA_TIERS",
    "ONBOARDING_YEAR",
    "DEFAULT_ONBOARDING_QUOTA",
    "EXTENDED_ABSENCE_MIN_DAYS",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "InvalidDateRangeException",
    "NotFoundException",
    "register_exception_handlers",
]
