"""Entitlement module — tenure, paid leave quota and balance calculations."""

from leavekeeper.entitlement.calculator import (
    calculate_working_days,
    should_process_absence_for_tenure,
)
from leavekeeper.entitlement.repository import EntitlementReader, SqlEntitlementReader
from leavekeeper.entitlement.service import EntitlementService

__all__ = [
    "EntitlementReader",
    "EntitlementService",
    "SqlEntitlementReader",
    "calculate_working_days",
    "should_process_absence_for_tenure",
]
