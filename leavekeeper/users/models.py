"""User ORM model.

Only the columns the entitlement engine and the admin screens read are
mapped here; profile data (addresses, birthdays, projects) lives elsewhere.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavekeeper.common.constants import UserRole
from leavekeeper.database import Base

if TYPE_CHECKING:
    from leavekeeper.absences.models import ExtendedAbsence
    from leavekeeper.bonus.models import BonusLeaveGrant
    from leavekeeper.leave.models import LeaveRequest


class User(Base):
    """Employee account; ``start_date`` drives every tenure calculation."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[Optional[str]] = mapped_column(sa.Text, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(sa.Text)
    role: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=UserRole.employee.value,
    )
    start_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=True,
    )
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    extended_absences: Mapped[list[ExtendedAbsence]] = relationship(
        back_populates="user", cascade="all, delete-orphan",
    )
    bonus_leave_grants: Mapped[list[BonusLeaveGrant]] = relationship(
        back_populates="user",
        foreign_keys="BonusLeaveGrant.user_id",
        cascade="all, delete-orphan",
    )
    leave_requests: Mapped[list[LeaveRequest]] = relationship(
        back_populates="user",
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or str(self.id)

    def __repr__(self) -> str:
        return f"<User {self.email!r} ({self.role})>"
