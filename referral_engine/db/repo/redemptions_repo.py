from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.db.models.referral_redemptions import (
    CODE_TYPE_GENERAL,
    ReferralRedemption,
)


class RedemptionsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        redemption: ReferralRedemption,
    ) -> ReferralRedemption:
        session.add(redemption)
        await session.flush()
        return redemption

    @staticmethod
    async def count_general_usage(session: AsyncSession, *, general_code_id: int) -> int:
        stmt = select(func.count(ReferralRedemption.id)).where(
            ReferralRedemption.code_type == CODE_TYPE_GENERAL,
            ReferralRedemption.code_id == general_code_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_by_user(
        session: AsyncSession,
        *,
        user_id: UUID,
    ) -> list[ReferralRedemption]:
        stmt = (
            select(ReferralRedemption)
            .where(ReferralRedemption.redeemed_by_user_id == user_id)
            .order_by(ReferralRedemption.created_at.asc(), ReferralRedemption.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
