"""Bonus leave grant ORM model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavekeeper.database import Base

if TYPE_CHECKING:
    from leavekeeper.users.models import User


class BonusLeaveGrant(Base):
    """Extra paid days granted by an admin for one leave year.

    Several grants per user/year are allowed and summed. ``days_used`` is
    maintained by the leave workflow, never by the entitlement engine.
    """

    __tablename__ = "bonus_leave_grants"
    __table_args__ = (
        sa.CheckConstraint("days_granted > 0", name="ck_bonus_days_granted_positive"),
        sa.CheckConstraint(
            "days_used >= 0 AND days_used <= days_granted",
            name="ck_bonus_days_used_range",
        ),
        sa.Index("ix_bonus_leave_grants_user_year", "user_id", "year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    days_granted: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    days_used: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    granted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id")
    )
    granted_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    user: Mapped[User] = relationship(
        back_populates="bonus_leave_grants", foreign_keys=[user_id]
    )
    granter: Mapped[Optional[User]] = relationship(foreign_keys=[granted_by])
