"""Pure leave entitlement arithmetic — no I/O, no clock reads.

Every function here takes its reference date explicitly so results depend
only on the arguments. Tenure uses an approximate calendar of 365-day years
and 30-day months; stored figures and UI text rely on it, so it must not be
replaced with calendar-aware arithmetic.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Iterable, Optional

from leavekeeper.common.constants import (
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    DEFAULT_ONBOARDING_QUOTA,
    EXTENDED_ABSENCE_MIN_DAYS,
    ONBOARDING_YEAR,
    TENURE_QUOTA_TIERS,
    WEEKEND_DAYS,
)
from leavekeeper.entitlement.schemas import (
    AbsenceImpact,
    EffectiveTenure,
    ExtendedAbsenceRecord,
)

HALF_DAY = Decimal("0.5")


# ─────────────────────────────────────────────────────────────────────
# Working days
# ─────────────────────────────────────────────────────────────────────


def calculate_working_days(
    start_date: date,
    end_date: Optional[date],
    is_half_day: bool,
) -> Decimal:
    """Count Mon–Fri days in ``[start_date, end_date]``.

    A half-day request is always worth 0.5, whatever its dates. A missing
    end date means a single-day request; an end before the start yields 0.
    """
    if is_half_day:
        return HALF_DAY

    end = end_date or start_date
    total = 0
    current = start_date
    while current <= end:
        if current.weekday() not in WEEKEND_DAYS:
            total += 1
        current += timedelta(days=1)
    return Decimal(total)


# ─────────────────────────────────────────────────────────────────────
# Extended absences
# ─────────────────────────────────────────────────────────────────────


def should_process_absence_for_tenure(
    absence: ExtendedAbsenceRecord,
    reference_date: date,
) -> bool:
    """True when the absence has ended by ``reference_date`` and lasted
    more than 30 days (inclusive count)."""
    if absence.end_date > reference_date:
        return False
    return absence.duration_days > EXTENDED_ABSENCE_MIN_DAYS


def qualifying_absence_days(
    start_date: date,
    absences: Iterable[ExtendedAbsenceRecord],
    target_date: date,
) -> int:
    """Inclusive days of qualifying absence inside ``[start_date, target_date]``."""
    total = 0
    for absence in absences:
        if not should_process_absence_for_tenure(absence, target_date):
            continue
        overlap_start = max(absence.start_date, start_date)
        overlap_end = min(absence.end_date, target_date)
        if overlap_start <= overlap_end:
            total += (overlap_end - overlap_start).days + 1
    return total


# ─────────────────────────────────────────────────────────────────────
# Tenure
# ─────────────────────────────────────────────────────────────────────


def split_days(days: int) -> EffectiveTenure:
    """Split a day count into approximate years / months / days."""
    years = days // DAYS_PER_YEAR
    remaining = days % DAYS_PER_YEAR
    return EffectiveTenure(
        years=years,
        months=remaining // DAYS_PER_MONTH,
        days=remaining % DAYS_PER_MONTH,
    )


def tenure_to_days(tenure: EffectiveTenure) -> int:
    return tenure.years * DAYS_PER_YEAR + tenure.months * DAYS_PER_MONTH + tenure.days


def compute_effective_tenure(
    start_date: Optional[date],
    absences: Iterable[ExtendedAbsenceRecord],
    target_date: date,
) -> EffectiveTenure:
    """Elapsed service from ``start_date`` to ``target_date`` minus
    qualifying absence days.

    Elapsed time is ``target - start`` (no +1) while absence overlap is
    counted inclusively; the two conventions differ on purpose.
    """
    if start_date is None:
        return EffectiveTenure()

    absence_days = qualifying_absence_days(start_date, absences, target_date)
    total_days = (target_date - start_date).days
    effective_days = max(0, total_days - absence_days)
    return split_days(effective_days)


def _absence_shift(
    original_start_date: date,
    tenure: EffectiveTenure,
    as_of: date,
) -> int:
    actual_days = (as_of - original_start_date).days
    return max(0, actual_days - tenure_to_days(tenure))


def _add_one_year(value: date) -> date:
    try:
        return value.replace(year=value.year + 1)
    except ValueError:
        # Feb 29 rolls over to Mar 1
        return date(value.year + 1, 3, 1)


def calculate_working_anniversary(
    original_start_date: date,
    tenure: EffectiveTenure,
    as_of: date,
) -> date:
    """First anniversary pushed back by the days absences removed."""
    shift = _absence_shift(original_start_date, tenure, as_of)
    return _add_one_year(original_start_date) + timedelta(days=shift)


def calculate_effective_start_date(
    original_start_date: date,
    tenure: EffectiveTenure,
    as_of: date,
) -> date:
    """Original start date moved forward by the days absences removed."""
    shift = _absence_shift(original_start_date, tenure, as_of)
    return original_start_date + timedelta(days=shift)


def year_of_employment(start_date: date, until: date) -> int:
    """Unadjusted year of employment on ``until``, ignoring absences.

    ``ceil(Δyears + Δmonths / 12 + Δdays / 365)`` over the calendar fields,
    so the start day itself is year 0 and an exact anniversary does not
    yet open the next year.
    """
    elapsed = (
        Fraction(until.year - start_date.year)
        + Fraction(until.month - start_date.month, 12)
        + Fraction(until.day - start_date.day, DAYS_PER_YEAR)
    )
    return math.ceil(elapsed)


def anniversary_employment_year(start_date: date, until: date) -> int:
    """1-based year of employment counting completed calendar anniversaries.

    Used by the admin leave statistics; never below 1.
    """
    years = until.year - start_date.year
    if (until.month, until.day) < (start_date.month, start_date.day):
        years -= 1
    return max(1, years + 1)


# ─────────────────────────────────────────────────────────────────────
# Quota
# ─────────────────────────────────────────────────────────────────────


def total_annual_leave_days(employment_year: int) -> int:
    """Tier lookup; years past the last tier get the top quota."""
    quota = DEFAULT_ONBOARDING_QUOTA
    for min_year, tier_quota in TENURE_QUOTA_TIERS:
        if employment_year >= min_year:
            quota = tier_quota
    return quota


def is_onboarding_year(effective_employment_year: int) -> bool:
    return effective_employment_year == ONBOARDING_YEAR


def calculate_prorated_onboarding_year_quota(
    effective_start_date: date,
    target_date: date,
) -> int:
    """Onboarding quota from the effective start month: ``12 - month + 1``.

    The quota stays anchored to the start month even after a calendar-year
    rollover; once 12 months have elapsed the year-2 quota applies.
    """
    start_month = effective_start_date.month
    prorated = max(1, 12 - start_month + 1)

    if effective_start_date.year == target_date.year:
        return prorated

    months_elapsed = (
        (target_date.year - effective_start_date.year) * 12
        + (target_date.month - start_month)
    )
    if months_elapsed < 12:
        return prorated
    return total_annual_leave_days(ONBOARDING_YEAR + 1)


def get_leave_quota_by_tenure(full_years: int) -> int:
    """Quota by completed full years of service (legacy callers)."""
    return total_annual_leave_days(max(0, full_years) + 1)


# ─────────────────────────────────────────────────────────────────────
# Absence impact
# ─────────────────────────────────────────────────────────────────────


def format_duration(days: int) -> str:
    """Render a day count as e.g. ``"1 year, 2 months, 5 days"``."""
    tenure = split_days(days)
    parts = []
    for value, unit in (
        (tenure.years, "year"),
        (tenure.months, "month"),
        (tenure.days, "day"),
    ):
        if value > 0:
            parts.append(f"{value} {unit}{'s' if value > 1 else ''}")
    return ", ".join(parts) or "0 days"


def summarize_absence_impact(
    start_date: date,
    absences: Iterable[ExtendedAbsenceRecord],
    target_date: date,
) -> AbsenceImpact:
    total = qualifying_absence_days(start_date, absences, target_date)
    return AbsenceImpact(
        total_absence_days=total,
        anniversary_delay=total,
        tenure_reduction=format_duration(total),
    )
