from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.db.models.personal_referral_codes import PersonalReferralCode


class PersonalCodesRepo:
    @staticmethod
    async def list_by_owner(
        session: AsyncSession,
        *,
        owner_user_id: UUID,
    ) -> list[PersonalReferralCode]:
        stmt = (
            select(PersonalReferralCode)
            .where(PersonalReferralCode.owner_user_id == owner_user_id)
            .order_by(PersonalReferralCode.created_at.asc(), PersonalReferralCode.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_owner(session: AsyncSession, *, owner_user_id: UUID) -> int:
        stmt = select(func.count(PersonalReferralCode.id)).where(
            PersonalReferralCode.owner_user_id == owner_user_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> PersonalReferralCode | None:
        stmt = select(PersonalReferralCode).where(
            func.lower(PersonalReferralCode.code) == func.lower(code)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_unactivated_by_code(
        session: AsyncSession,
        code: str,
    ) -> PersonalReferralCode | None:
        stmt = select(PersonalReferralCode).where(
            func.lower(PersonalReferralCode.code) == func.lower(code),
            PersonalReferralCode.is_activated.is_(False),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        owner_user_id: UUID,
        code: str,
        now_utc: datetime,
    ) -> PersonalReferralCode:
        personal_code = PersonalReferralCode(
            owner_user_id=owner_user_id,
            code=code.upper(),
            is_activated=False,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(personal_code)
        await session.flush()
        return personal_code

    @staticmethod
    async def mark_activated(
        session: AsyncSession,
        *,
        personal_code_id: int,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(PersonalReferralCode)
            .where(
                PersonalReferralCode.id == personal_code_id,
                PersonalReferralCode.is_activated.is_(False),
            )
            .values(is_activated=True, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0)
