"""Work anniversaries, counted on effective tenure.

Years shown to users come from the same tenure calculation as leave
quotas, so extended absences delay anniversaries too.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.anniversaries.schemas import AnniversaryInfo, UpcomingAnniversary
from leavekeeper.common.constants import UPCOMING_ANNIVERSARY_WINDOW_DAYS
from leavekeeper.entitlement.repository import EntitlementReader, SqlEntitlementReader
from leavekeeper.entitlement.service import EntitlementService
from leavekeeper.users.service import UserService

logger = logging.getLogger(__name__)

_MILESTONE_EMOJI = {
    1: "🎉",
    2: "🎊",
    3: "🏆",
    5: "🎖️",
    10: "💎",
}


def _anniversary_in_year(start_date: date, year: int) -> date:
    try:
        return start_date.replace(year=year)
    except ValueError:
        # Feb 29 in a non-leap year
        return date(year, 3, 1)


def _is_same_month_day(a: date, b: date) -> bool:
    return a.month == b.month and a.day == b.day


class AnniversaryService:

    @staticmethod
    async def get_anniversary_info(
        reader: EntitlementReader,
        start_date: Optional[date],
        user_id: uuid.UUID,
        target_date: Optional[date] = None,
    ) -> Optional[AnniversaryInfo]:
        """Effective tenure at ``target_date`` and the next anniversary on or after it."""
        if start_date is None:
            return None

        target = target_date or datetime.now(timezone.utc).date()
        tenure = await EntitlementService.calculate_effective_tenure(
            reader, start_date, user_id, target,
        )

        next_anniversary = _anniversary_in_year(start_date, target.year)
        if next_anniversary < target:
            next_anniversary = _anniversary_in_year(start_date, target.year + 1)

        return AnniversaryInfo(
            years=tenure.years,
            months=tenure.months,
            days=tenure.days,
            is_today=_is_same_month_day(start_date, target),
            next_anniversary=next_anniversary,
            days_until_next=(next_anniversary - target).days,
        )

    @staticmethod
    async def is_work_anniversary_today(
        reader: EntitlementReader,
        start_date: Optional[date],
        user_id: uuid.UUID,
        today: Optional[date] = None,
    ) -> bool:
        """True on the start date's month/day once a full effective year is served."""
        if start_date is None:
            return False

        today = today or datetime.now(timezone.utc).date()
        if not _is_same_month_day(start_date, today):
            return False

        tenure = await EntitlementService.calculate_effective_tenure(
            reader, start_date, user_id, today,
        )
        return tenure.years > 0

    @staticmethod
    async def get_upcoming_anniversaries(
        db: AsyncSession,
        limit: int = 10,
        today: Optional[date] = None,
    ) -> list[UpcomingAnniversary]:
        """Active users' next anniversaries within a year, soonest first."""
        today = today or datetime.now(timezone.utc).date()
        reader = SqlEntitlementReader(db)
        users = await UserService.list_active_with_start_date(db)

        upcoming: list[UpcomingAnniversary] = []
        for user in users:
            info = await AnniversaryService.get_anniversary_info(
                reader, user.start_date, user.id, today,
            )
            if info is None or info.days_until_next > UPCOMING_ANNIVERSARY_WINDOW_DAYS:
                continue
            years = info.years + 1
            upcoming.append(
                UpcomingAnniversary(
                    user_id=user.id,
                    full_name=user.full_name,
                    start_date=user.start_date,
                    anniversary_date=info.next_anniversary,
                    years=years,
                    days_until=info.days_until_next,
                    message=AnniversaryService.get_anniversary_message(user.full_name, years),
                )
            )

        upcoming.sort(key=lambda a: a.days_until)
        return upcoming[:limit]

    @staticmethod
    async def get_this_month_anniversaries(
        db: AsyncSession,
        today: Optional[date] = None,
    ) -> list[UpcomingAnniversary]:
        """Anniversaries falling in the current month, past ones included.

        Only users with at least one effective year on the anniversary
        date are listed. ``days_until`` is negative for dates already
        passed this month.
        """
        today = today or datetime.now(timezone.utc).date()
        reader = SqlEntitlementReader(db)
        users = await UserService.list_active_with_start_date(db)

        this_month: list[UpcomingAnniversary] = []
        for user in users:
            anniversary = _anniversary_in_year(user.start_date, today.year)
            if anniversary.month != today.month:
                continue

            tenure = await EntitlementService.calculate_effective_tenure(
                reader, user.start_date, user.id, anniversary,
            )
            if tenure.years < 1:
                continue

            this_month.append(
                UpcomingAnniversary(
                    user_id=user.id,
                    full_name=user.full_name,
                    start_date=user.start_date,
                    anniversary_date=anniversary,
                    years=tenure.years,
                    days_until=(anniversary - today).days,
                    message=AnniversaryService.get_anniversary_message(
                        user.full_name, tenure.years,
                    ),
                )
            )

        this_month.sort(key=lambda a: a.anniversary_date.day)
        return this_month

    @staticmethod
    def get_anniversary_message(full_name: str, years: int) -> str:
        emoji = _MILESTONE_EMOJI.get(years, "🎉")
        return (
            f"Happy {years}{AnniversaryService.get_ordinal_suffix(years)} "
            f"Work Anniversary, {full_name}! {emoji}"
        )

    @staticmethod
    def get_ordinal_suffix(num: int) -> str:
        """English ordinal suffix: 1st, 2nd, 3rd, 4th, 11th, 12th, 13th, 21st…"""
        j = num % 10
        k = num % 100
        if j == 1 and k != 11:
            return "st"
        if j == 2 and k != 12:
            return "nd"
        if j == 3 and k != 13:
            return "rd"
        return "th"
