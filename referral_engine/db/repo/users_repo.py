from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: UUID) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: UUID) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        now_utc: datetime,
        user_id: UUID | None = None,
        is_referral_activated: bool = False,
    ) -> User:
        user = User(
            id=user_id or uuid4(),
            is_referral_activated=is_referral_activated,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def mark_referral_activated(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(User)
            .where(User.id == user_id, User.is_referral_activated.is_(False))
            .values(is_referral_activated=True, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0)
