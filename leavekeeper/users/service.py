"""User lookups shared by the admin routers."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavekeeper.common.exceptions import NotFoundException
from leavekeeper.users.models import User


class UserService:

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        """Load a user by id or raise ``NotFoundException``."""
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalars().first()
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    @staticmethod
    async def list_active_with_start_date(db: AsyncSession) -> list[User]:
        result = await db.execute(
            select(User)
            .where(User.is_active.is_(True), User.start_date.is_not(None))
            .order_by(User.full_name)
        )
        return list(result.scalars().all())
