"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leavekeeper.common.constants import LeaveStatus, UserRole
from leavekeeper.config import settings
from leavekeeper.database import Base, get_db
from leavekeeper.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leavekeeper.common.audit  # noqa: F401
import leavekeeper.users.models  # noqa: F401
import leavekeeper.leave.models  # noqa: F401
import leavekeeper.absences.models  # noqa: F401
import leavekeeper.bonus.models  # noqa: F401

from leavekeeper.absences.models import ExtendedAbsence
from leavekeeper.bonus.models import BonusLeaveGrant
from leavekeeper.leave.models import LeaveRequest, LeaveType
from leavekeeper.users.models import User

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leavekeeper.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_user(
    *,
    email: Optional[str] = None,
    full_name: str = "Test User",
    role: UserRole = UserRole.employee,
    start_date: Optional[date] = date(2020, 1, 15),
    is_active: bool = True,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        full_name=full_name,
        role=role.value,
        start_date=start_date,
        is_active=is_active,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def _seed_user(db: AsyncSession, **kwargs) -> User:
    user = User(**_make_user(**kwargs))
    db.add(user)
    await db.flush()
    return user


async def _seed_leave_type(
    db: AsyncSession,
    *,
    name: str = "Annual Leave",
    is_paid: bool = True,
) -> LeaveType:
    lt = LeaveType(
        id=uuid.uuid4(),
        name=name,
        is_paid=is_paid,
        supports_half_day=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(lt)
    await db.flush()
    return lt


async def _seed_leave_request(
    db: AsyncSession,
    user_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    *,
    start_date: date,
    end_date: Optional[date] = None,
    status: LeaveStatus = LeaveStatus.approved,
    is_half_day: bool = False,
) -> LeaveRequest:
    req = LeaveRequest(
        id=uuid.uuid4(),
        user_id=user_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        is_half_day=is_half_day,
        half_day_type="morning" if is_half_day else None,
        status=status.value,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(req)
    await db.flush()
    return req


async def _seed_absence(
    db: AsyncSession,
    user_id: uuid.UUID,
    start_date: date,
    end_date: date,
    reason: Optional[str] = "Sabbatical",
) -> ExtendedAbsence:
    absence = ExtendedAbsence(
        id=uuid.uuid4(),
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(absence)
    await db.flush()
    return absence


async def _seed_bonus_grant(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    year: int = 2024,
    days_granted: int = 2,
    days_used: int = 0,
    granted_by: Optional[uuid.UUID] = None,
) -> BonusLeaveGrant:
    grant = BonusLeaveGrant(
        id=uuid.uuid4(),
        user_id=user_id,
        year=year,
        days_granted=days_granted,
        days_used=days_used,
        reason="Overtime compensation",
        granted_by=granted_by,
        granted_at=datetime.now(timezone.utc),
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(grant)
    await db.flush()
    return grant


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers_for(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
async def employee(db) -> User:
    return await _seed_user(db, full_name="Erin Employee", role=UserRole.employee)


@pytest.fixture
async def manager(db) -> User:
    return await _seed_user(db, full_name="Morgan Manager", role=UserRole.manager)


@pytest.fixture
async def admin(db) -> User:
    return await _seed_user(db, full_name="Alex Admin", role=UserRole.admin)
