from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.db.models.general_referral_codes import GeneralReferralCode


class GeneralCodesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, general_code_id: int) -> GeneralReferralCode | None:
        return await session.get(GeneralReferralCode, general_code_id)

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> GeneralReferralCode | None:
        stmt = select(GeneralReferralCode).where(
            func.lower(GeneralReferralCode.code) == func.lower(code)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def exists_by_code(session: AsyncSession, code: str) -> bool:
        stmt = select(func.count(GeneralReferralCode.id)).where(
            func.lower(GeneralReferralCode.code) == func.lower(code)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0) > 0

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        code: str,
        now_utc: datetime,
    ) -> GeneralReferralCode:
        general_code = GeneralReferralCode(code=code, created_at=now_utc, updated_at=now_utc)
        session.add(general_code)
        await session.flush()
        return general_code

    @staticmethod
    async def update_code(
        session: AsyncSession,
        *,
        general_code: GeneralReferralCode,
        code: str,
        now_utc: datetime,
    ) -> GeneralReferralCode:
        general_code.code = code
        general_code.updated_at = now_utc
        await session.flush()
        return general_code

    @staticmethod
    async def delete(session: AsyncSession, *, general_code: GeneralReferralCode) -> None:
        await session.delete(general_code)
        await session.flush()
