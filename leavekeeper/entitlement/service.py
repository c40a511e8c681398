"""Entitlement service layer — quota aggregation and balances.

Business logic:
  - Effective tenure with extended absences removed
  - Complete leave entitlement: working anniversary, effective start date,
    onboarding proration, tenure-tier quota, absence impact summary
  - Yearly balance: paid leave only, approved = used, pending = reserved
  - Bonus grant totals and admin leave statistics

Nothing here is cached: every call re-reads through the reader and derives
its result from scratch, and no failure path raises (missing data resolves
to defaults).
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from leavekeeper.common.constants import (
    DEFAULT_ONBOARDING_QUOTA,
    ONBOARDING_YEAR,
    LeaveStatus,
)
from leavekeeper.entitlement import calculator
from leavekeeper.entitlement.repository import EntitlementReader
from leavekeeper.entitlement.schemas import (
    AbsenceImpact,
    BonusLeaveSummary,
    EffectiveTenure,
    LeaveBalance,
    LeaveEntitlement,
    LeaveStats,
)

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


class EntitlementService:
    """Async entitlement operations over an ``EntitlementReader``."""

    # ─────────────────────────────────────────────────────────────────
    # Tenure
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def calculate_effective_tenure(
        reader: EntitlementReader,
        start_date: Optional[date],
        user_id: uuid.UUID,
        target_date: Optional[date] = None,
    ) -> EffectiveTenure:
        """Service time up to ``target_date`` minus completed extended absences."""
        if start_date is None:
            return EffectiveTenure()

        target = target_date or _today()
        absences = await reader.get_completed_absences(user_id, target)
        return calculator.compute_effective_tenure(start_date, absences, target)

    # ─────────────────────────────────────────────────────────────────
    # Entitlement
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def default_entitlement() -> LeaveEntitlement:
        """Entitlement for a user without a start date."""
        return LeaveEntitlement(
            employment_year=ONBOARDING_YEAR,
            effective_employment_year=ONBOARDING_YEAR,
            is_onboarding_year=True,
            total_quota=DEFAULT_ONBOARDING_QUOTA,
            prorated_quota=DEFAULT_ONBOARDING_QUOTA,
            extended_absence_impact=AbsenceImpact(),
        )

    @staticmethod
    async def calculate_complete_leave_entitlement(
        reader: EntitlementReader,
        user_id: uuid.UUID,
        target_date: Optional[date] = None,
    ) -> LeaveEntitlement:
        """Full entitlement for ``user_id`` as of ``target_date`` (default today).

        Steps:
            1. effective tenure (absences removed)
            2. working anniversary and effective start date
            3. original vs effective employment year
            4. onboarding proration or tenure-tier quota
            5. absence impact summary
        """
        target = target_date or _today()

        user = await reader.get_user(user_id)
        start_date = user.start_date if user is not None else None
        if start_date is None:
            logger.debug("User %s has no start date; using default entitlement", user_id)
            return EntitlementService.default_entitlement()

        absences = await reader.get_completed_absences(user_id, target)

        tenure = calculator.compute_effective_tenure(start_date, absences, target)
        working_anniversary = calculator.calculate_working_anniversary(
            start_date, tenure, target,
        )
        effective_start_date = calculator.calculate_effective_start_date(
            start_date, tenure, target,
        )

        employment_year = calculator.year_of_employment(start_date, target)
        effective_employment_year = max(1, tenure.years + 1)
        onboarding = calculator.is_onboarding_year(effective_employment_year)

        prorated_quota: Optional[int] = None
        if onboarding:
            prorated_quota = calculator.calculate_prorated_onboarding_year_quota(
                effective_start_date, target,
            )
            total_quota = prorated_quota
        else:
            total_quota = calculator.total_annual_leave_days(effective_employment_year)

        impact = calculator.summarize_absence_impact(start_date, absences, target)

        logger.debug(
            "Entitlement for %s as of %s: year=%d effective_year=%d quota=%d absence_days=%d",
            user_id, target, employment_year, effective_employment_year,
            total_quota, impact.total_absence_days,
        )

        return LeaveEntitlement(
            original_start_date=start_date,
            effective_start_date=effective_start_date,
            working_anniversary=working_anniversary,
            employment_year=employment_year,
            effective_employment_year=effective_employment_year,
            is_onboarding_year=onboarding,
            total_quota=total_quota,
            prorated_quota=prorated_quota,
            extended_absence_impact=impact,
        )

    # ─────────────────────────────────────────────────────────────────
    # Balance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def balance_target_date(year: int, today: date) -> date:
        """Live tenure for the current year, year-end for any other year."""
        return today if year == today.year else date(year, 12, 31)

    @staticmethod
    async def calculate_leave_balance(
        reader: EntitlementReader,
        user_id: uuid.UUID,
        year: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> LeaveBalance:
        """Paid-leave balance for ``year``.

        Only paid leave types count. Approved requests are used days,
        pending requests are reserved; rejected and canceled requests are
        ignored. ``available_days`` equals ``remaining_days`` because pending
        days are already netted out.
        """
        today = today or _today()
        year = year or today.year
        target = EntitlementService.balance_target_date(year, today)

        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            reader, user_id, target,
        )
        requests = await reader.get_paid_leave_requests(user_id, year)

        used_days = Decimal("0")
        pending_days = Decimal("0")
        for req in requests:
            days = calculator.calculate_working_days(
                req.start_date, req.end_date, req.is_half_day,
            )
            if req.status == LeaveStatus.approved:
                used_days += days
            elif req.status == LeaveStatus.pending:
                pending_days += days

        remaining_days = Decimal(entitlement.total_quota) - used_days - pending_days

        return LeaveBalance(
            total_quota=entitlement.total_quota,
            used_days=used_days,
            remaining_days=remaining_days,
            pending_days=pending_days,
            available_days=remaining_days,
            employment_year=entitlement.effective_employment_year,
            is_onboarding_year=entitlement.is_onboarding_year,
        )

    # ─────────────────────────────────────────────────────────────────
    # Bonus leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_bonus_leave_summary(
        reader: EntitlementReader,
        user_id: uuid.UUID,
        year: int,
    ) -> BonusLeaveSummary:
        """Sum every bonus grant for the user in ``year``."""
        grants = await reader.get_bonus_grants(user_id, year)
        total_granted = sum(g.days_granted for g in grants)
        total_used = sum(g.days_used for g in grants)
        return BonusLeaveSummary(
            user_id=user_id,
            year=year,
            total_granted=total_granted,
            total_used=total_used,
            remaining=total_granted - total_used,
        )

    # ─────────────────────────────────────────────────────────────────
    # Admin statistics
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_stats(
        reader: EntitlementReader,
        user_id: uuid.UUID,
        year: int,
    ) -> LeaveStats:
        """Approved paid/unpaid days and per-status counts for ``year``,
        with the year-end paid quota."""
        requests = await reader.get_leave_requests(user_id, year)

        stats = LeaveStats(user_id=user_id, year=year)
        for req in requests:
            if req.status == LeaveStatus.approved:
                days = calculator.calculate_working_days(
                    req.start_date, req.end_date, req.is_half_day,
                )
                if req.is_paid:
                    stats.paid_used_days += days
                else:
                    stats.unpaid_used_days += days
                stats.total_approved_requests += 1
            elif req.status == LeaveStatus.pending:
                stats.pending_requests += 1
            elif req.status == LeaveStatus.rejected:
                stats.rejected_requests += 1
            elif req.status == LeaveStatus.canceled:
                stats.canceled_requests += 1

        user = await reader.get_user(user_id)
        start_date = user.start_date if user is not None else None
        if start_date is not None:
            year_end = date(year, 12, 31)
            entitlement = await EntitlementService.calculate_complete_leave_entitlement(
                reader, user_id, year_end,
            )
            stats.total_paid_days = entitlement.total_quota
            stats.employment_year = calculator.anniversary_employment_year(start_date, year_end)

        return stats
