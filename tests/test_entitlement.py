"""Entitlement service test suite — complete entitlement, balances, bonus
totals, leave statistics, the SQL reader and API endpoints.

Service tests run against an in-memory reader; reader and API tests run
against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.common.constants import LeaveStatus, UserRole
from leavekeeper.entitlement.repository import SqlEntitlementReader
from leavekeeper.entitlement.schemas import (
    BonusGrantRecord,
    EffectiveTenure,
    ExtendedAbsenceRecord,
    LeaveRequestRecord,
    UserRecord,
)
from leavekeeper.entitlement.service import EntitlementService
from tests.conftest import (
    _seed_absence,
    _seed_bonus_grant,
    _seed_leave_request,
    _seed_leave_type,
    _seed_user,
    auth_headers_for,
)

USER_ID = uuid.uuid4()
PAID_TYPE = uuid.uuid4()
UNPAID_TYPE = uuid.uuid4()


# ═════════════════════════════════════════════════════════════════════
# Helpers: in-memory reader
# ═════════════════════════════════════════════════════════════════════


@dataclass
class InMemoryReader:
    """``EntitlementReader`` over plain lists."""

    start_date: Optional[date] = None
    absences: list[ExtendedAbsenceRecord] = field(default_factory=list)
    requests: list[LeaveRequestRecord] = field(default_factory=list)
    grants: list[BonusGrantRecord] = field(default_factory=list)

    async def get_user(self, user_id):
        return UserRecord(id=user_id, start_date=self.start_date)

    async def get_completed_absences(self, user_id, as_of):
        return [a for a in self.absences if a.end_date <= as_of]

    async def get_leave_requests(self, user_id, year):
        return [r for r in self.requests if r.start_date.year == year]

    async def get_paid_leave_requests(self, user_id, year):
        return [r for r in await self.get_leave_requests(user_id, year) if r.is_paid]

    async def get_bonus_grants(self, user_id, year):
        return [g for g in self.grants if g.year == year]


def _request(
    start: date,
    end: Optional[date] = None,
    *,
    status: LeaveStatus = LeaveStatus.approved,
    is_half_day: bool = False,
    is_paid: bool = True,
) -> LeaveRequestRecord:
    return LeaveRequestRecord(
        user_id=USER_ID,
        leave_type_id=PAID_TYPE if is_paid else UNPAID_TYPE,
        status=status,
        start_date=start,
        end_date=end,
        is_half_day=is_half_day,
        is_paid=is_paid,
    )


def _absence(start: date, end: date) -> ExtendedAbsenceRecord:
    return ExtendedAbsenceRecord(user_id=USER_ID, start_date=start, end_date=end)


def _reader_2024() -> InMemoryReader:
    """User since 2020 with a mix of 2024 requests."""
    return InMemoryReader(
        start_date=date(2020, 1, 15),
        requests=[
            # Mon 2024-03-04 → Fri 2024-03-08
            _request(date(2024, 3, 4), date(2024, 3, 8)),
            _request(date(2024, 3, 20), date(2024, 3, 20), status=LeaveStatus.pending, is_half_day=True),
            _request(date(2024, 5, 6), date(2024, 5, 10), status=LeaveStatus.rejected),
            _request(date(2024, 6, 3), date(2024, 6, 4), status=LeaveStatus.canceled),
            _request(date(2024, 4, 1), date(2024, 4, 2), is_paid=False),
            _request(date(2023, 12, 4), date(2023, 12, 8)),
        ],
    )


# ═════════════════════════════════════════════════════════════════════
# 1. Complete entitlement
# ═════════════════════════════════════════════════════════════════════


class TestCompleteEntitlement:

    async def test_no_start_date_uses_default(self):
        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            InMemoryReader(), USER_ID, date(2024, 1, 1),
        )
        assert entitlement.total_quota == 12
        assert entitlement.employment_year == 1
        assert entitlement.effective_employment_year == 1
        assert entitlement.is_onboarding_year is True
        assert entitlement.original_start_date is None
        assert entitlement.extended_absence_impact.total_absence_days == 0

    async def test_absence_reduces_employment_year(self):
        """Four calendar years, but a 76-day absence leaves 3 effective years."""
        reader = InMemoryReader(
            start_date=date(2020, 1, 15),
            absences=[_absence(date(2021, 3, 1), date(2021, 5, 15))],
        )
        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            reader, USER_ID, date(2024, 1, 15),
        )
        assert entitlement.effective_employment_year == 4
        assert entitlement.employment_year == 4
        assert entitlement.total_quota == 18
        assert entitlement.is_onboarding_year is False
        assert entitlement.prorated_quota is None
        assert entitlement.effective_start_date == date(2020, 3, 31)
        assert entitlement.working_anniversary == date(2021, 4, 1)
        assert entitlement.extended_absence_impact.total_absence_days == 76
        assert entitlement.extended_absence_impact.tenure_reduction == "2 months, 16 days"

    async def test_onboarding_is_prorated(self):
        reader = InMemoryReader(start_date=date(2024, 7, 1))
        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            reader, USER_ID, date(2024, 9, 1),
        )
        assert entitlement.is_onboarding_year is True
        assert entitlement.prorated_quota == 6
        assert entitlement.total_quota == 6

    async def test_future_absence_has_no_effect(self):
        reader = InMemoryReader(
            start_date=date(2020, 1, 15),
            absences=[_absence(date(2023, 12, 1), date(2024, 3, 1))],
        )
        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            reader, USER_ID, date(2024, 1, 15),
        )
        assert entitlement.effective_employment_year == 5
        assert entitlement.total_quota == 22
        assert entitlement.extended_absence_impact.total_absence_days == 0

    async def test_effective_tenure_without_start_date(self):
        tenure = await EntitlementService.calculate_effective_tenure(
            InMemoryReader(), None, USER_ID, date(2024, 1, 1),
        )
        assert tenure == EffectiveTenure()


# ═════════════════════════════════════════════════════════════════════
# 2. Balance
# ═════════════════════════════════════════════════════════════════════


class TestLeaveBalance:

    async def test_balance_counts_paid_approved_and_pending(self):
        balance = await EntitlementService.calculate_leave_balance(
            _reader_2024(), USER_ID, 2024, today=date(2025, 3, 1),
        )
        # Past year → tenure at 2024-12-31 → year 5
        assert balance.total_quota == 22
        assert balance.employment_year == 5
        assert balance.used_days == Decimal("5")
        assert balance.pending_days == Decimal("0.5")
        assert balance.remaining_days == Decimal("16.5")
        assert balance.available_days == balance.remaining_days
        assert balance.is_onboarding_year is False

    async def test_current_year_uses_today(self):
        reader = InMemoryReader(start_date=date(2023, 9, 1))
        balance = await EntitlementService.calculate_leave_balance(
            reader, USER_ID, 2024, today=date(2024, 3, 1),
        )
        # 2023-09-01 → 2024-03-01 is still the onboarding year
        assert balance.is_onboarding_year is True
        assert balance.total_quota == 4

    async def test_balance_is_idempotent(self):
        reader = _reader_2024()
        first = await EntitlementService.calculate_leave_balance(
            reader, USER_ID, 2024, today=date(2025, 3, 1),
        )
        second = await EntitlementService.calculate_leave_balance(
            reader, USER_ID, 2024, today=date(2025, 3, 1),
        )
        assert first == second

    async def test_balance_without_start_date(self):
        balance = await EntitlementService.calculate_leave_balance(
            InMemoryReader(), USER_ID, 2024, today=date(2024, 6, 1),
        )
        assert balance.total_quota == 12
        assert balance.remaining_days == Decimal("12")

    async def test_overdrawn_balance_goes_negative(self):
        reader = InMemoryReader(
            start_date=date(2024, 12, 2),
            requests=[_request(date(2024, 12, 9), date(2024, 12, 13))],
        )
        balance = await EntitlementService.calculate_leave_balance(
            reader, USER_ID, 2024, today=date(2024, 12, 20),
        )
        assert balance.total_quota == 1
        assert balance.remaining_days == Decimal("-4")

    def test_balance_target_date(self):
        today = date(2024, 6, 1)
        assert EntitlementService.balance_target_date(2024, today) == today
        assert EntitlementService.balance_target_date(2023, today) == date(2023, 12, 31)
        assert EntitlementService.balance_target_date(2025, today) == date(2025, 12, 31)


# ═════════════════════════════════════════════════════════════════════
# 3. Bonus totals and statistics
# ═════════════════════════════════════════════════════════════════════


class TestBonusAndStats:

    async def test_bonus_summary_sums_grants(self):
        reader = InMemoryReader(
            grants=[
                BonusGrantRecord(user_id=USER_ID, year=2024, days_granted=2, days_used=1),
                BonusGrantRecord(user_id=USER_ID, year=2024, days_granted=3),
                BonusGrantRecord(user_id=USER_ID, year=2023, days_granted=5),
            ],
        )
        summary = await EntitlementService.get_bonus_leave_summary(reader, USER_ID, 2024)
        assert summary.total_granted == 5
        assert summary.total_used == 1
        assert summary.remaining == 4

    async def test_bonus_summary_empty_year(self):
        summary = await EntitlementService.get_bonus_leave_summary(
            InMemoryReader(), USER_ID, 2024,
        )
        assert (summary.total_granted, summary.total_used, summary.remaining) == (0, 0, 0)

    async def test_leave_stats(self):
        stats = await EntitlementService.get_leave_stats(_reader_2024(), USER_ID, 2024)
        assert stats.paid_used_days == Decimal("5")
        assert stats.unpaid_used_days == Decimal("2")
        assert stats.total_approved_requests == 2
        assert stats.pending_requests == 1
        assert stats.rejected_requests == 1
        assert stats.canceled_requests == 1
        assert stats.total_paid_days == 22
        assert stats.employment_year == 5

    async def test_leave_stats_without_start_date(self):
        stats = await EntitlementService.get_leave_stats(InMemoryReader(), USER_ID, 2024)
        assert stats.total_paid_days is None
        assert stats.employment_year is None

    async def test_leave_stats_counts_calendar_anniversaries(self):
        reader = InMemoryReader(start_date=date(2020, 12, 31))
        stats = await EntitlementService.get_leave_stats(reader, USER_ID, 2024)
        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            reader, USER_ID, date(2024, 12, 31),
        )
        assert stats.employment_year == 5
        assert entitlement.employment_year == 4
        assert stats.total_paid_days == entitlement.total_quota == 22


# ═════════════════════════════════════════════════════════════════════
# 4. SQL reader
# ═════════════════════════════════════════════════════════════════════


class TestSqlEntitlementReader:

    async def test_reader_filters(self, db: AsyncSession):
        user = await _seed_user(db, start_date=date(2020, 1, 15))
        paid = await _seed_leave_type(db)
        unpaid = await _seed_leave_type(db, name="Unpaid Leave", is_paid=False)
        await _seed_leave_request(db, user.id, paid.id, start_date=date(2024, 3, 4), end_date=date(2024, 3, 8))
        await _seed_leave_request(db, user.id, unpaid.id, start_date=date(2024, 4, 1), end_date=date(2024, 4, 2))
        await _seed_leave_request(db, user.id, paid.id, start_date=date(2023, 12, 4), end_date=date(2023, 12, 5))
        await _seed_absence(db, user.id, date(2021, 3, 1), date(2021, 5, 15))
        await _seed_absence(db, user.id, date(2024, 6, 1), date(2024, 8, 1))
        await _seed_bonus_grant(db, user.id, year=2024, days_granted=3)
        await _seed_bonus_grant(db, user.id, year=2023, days_granted=1)

        reader = SqlEntitlementReader(db)

        assert await reader.get_user(user.id) == UserRecord(id=user.id, start_date=date(2020, 1, 15))
        assert await reader.get_user(uuid.uuid4()) is None

        absences = await reader.get_completed_absences(user.id, date(2024, 1, 1))
        assert [a.start_date for a in absences] == [date(2021, 3, 1)]

        all_requests = await reader.get_leave_requests(user.id, 2024)
        assert len(all_requests) == 2
        paid_requests = await reader.get_paid_leave_requests(user.id, 2024)
        assert len(paid_requests) == 1
        assert paid_requests[0].status == LeaveStatus.approved
        assert paid_requests[0].is_paid is True

        grants = await reader.get_bonus_grants(user.id, 2024)
        assert [g.days_granted for g in grants] == [3]

    async def test_service_over_sql_reader(self, db: AsyncSession):
        user = await _seed_user(db, start_date=date(2020, 1, 15))
        await _seed_absence(db, user.id, date(2021, 3, 1), date(2021, 5, 15))

        entitlement = await EntitlementService.calculate_complete_leave_entitlement(
            SqlEntitlementReader(db), user.id, date(2024, 1, 15),
        )
        assert entitlement.effective_employment_year == 4
        assert entitlement.total_quota == 18


# ═════════════════════════════════════════════════════════════════════
# 5. API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestEntitlementAPI:

    async def test_my_entitlement(self, client, db: AsyncSession, employee):
        await db.commit()

        resp = await client.get(
            "/api/v1/entitlements/me",
            params={"as_of": "2024-01-15"},
            headers=auth_headers_for(employee.id),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["original_start_date"] == "2020-01-15"
        assert body["effective_employment_year"] == 5
        assert body["total_quota"] == 22

    async def test_my_balance_includes_bonus(self, client, db: AsyncSession, employee):
        lt = await _seed_leave_type(db)
        await _seed_leave_request(db, employee.id, lt.id, start_date=date(2024, 3, 4), end_date=date(2024, 3, 8))
        await _seed_bonus_grant(db, employee.id, year=2024, days_granted=2)
        await db.commit()

        resp = await client.get(
            "/api/v1/entitlements/me/balance",
            params={"year": 2024},
            headers=auth_headers_for(employee.id),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["year"] == 2024
        assert Decimal(body["balance"]["used_days"]) == Decimal("5")
        assert body["bonus"]["total_granted"] == 2

    async def test_manager_reads_other_user(self, client, db: AsyncSession, employee, manager):
        await db.commit()

        resp = await client.get(
            f"/api/v1/entitlements/users/{employee.id}",
            headers=auth_headers_for(manager.id),
        )
        assert resp.status_code == 200

        resp = await client.get(
            f"/api/v1/entitlements/users/{employee.id}/balance",
            params={"year": 2024},
            headers=auth_headers_for(manager.id),
        )
        assert resp.status_code == 200

    async def test_employee_cannot_read_other_user(self, client, db: AsyncSession, employee, manager):
        await db.commit()

        resp = await client.get(
            f"/api/v1/entitlements/users/{manager.id}",
            headers=auth_headers_for(employee.id),
        )
        assert resp.status_code == 403
        assert resp.json()["type"].endswith("/forbidden")

    async def test_unknown_user_is_404(self, client, db: AsyncSession, admin):
        await db.commit()

        resp = await client.get(
            f"/api/v1/entitlements/users/{uuid.uuid4()}/leave-stats",
            headers=auth_headers_for(admin.id),
        )
        assert resp.status_code == 404
        assert resp.json()["status"] == 404

    async def test_leave_stats_admin_only(self, client, db: AsyncSession, employee, manager, admin):
        lt = await _seed_leave_type(db)
        await _seed_leave_request(
            db, employee.id, lt.id,
            start_date=date(2024, 3, 4), end_date=date(2024, 3, 8),
            status=LeaveStatus.pending,
        )
        await db.commit()

        resp = await client.get(
            f"/api/v1/entitlements/users/{employee.id}/leave-stats",
            params={"year": 2024},
            headers=auth_headers_for(manager.id),
        )
        assert resp.status_code == 403

        resp = await client.get(
            f"/api/v1/entitlements/users/{employee.id}/leave-stats",
            params={"year": 2024},
            headers=auth_headers_for(admin.id),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["pending_requests"] == 1
        assert body["total_paid_days"] == 22

    async def test_leave_stats_rate_limited(self, client, db: AsyncSession, employee, admin):
        await db.commit()
        headers = auth_headers_for(admin.id)
        url = f"/api/v1/entitlements/users/{employee.id}/leave-stats"

        for i in range(30):
            resp = await client.get(url, headers=headers)
            assert resp.status_code == 200, f"Request {i+1} should succeed"

        resp = await client.get(url, headers=headers)
        assert resp.status_code == 429

    async def test_invalid_year_rejected(self, client, db: AsyncSession, employee):
        await db.commit()

        resp = await client.get(
            "/api/v1/entitlements/me/balance",
            params={"year": 20240},
            headers=auth_headers_for(employee.id),
        )
        assert resp.status_code == 422
        assert "year" in resp.json()["errors"]
