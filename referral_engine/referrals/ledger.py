from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.core.referral_codes import normalize_referral_code
from referral_engine.db.models.referral_redemptions import ReferralRedemption
from referral_engine.db.repo.general_codes_repo import GeneralCodesRepo
from referral_engine.db.repo.redemptions_repo import RedemptionsRepo

from .errors import GeneralCodeNotFoundError
from .types import RedemptionView


async def append_redemption(
    session: AsyncSession,
    *,
    redeemed_by_user_id: UUID,
    code_type: str,
    code_id: int | None,
    now_utc: datetime,
) -> ReferralRedemption:
    return await RedemptionsRepo.create(
        session,
        redemption=ReferralRedemption(
            redeemed_by_user_id=redeemed_by_user_id,
            code_type=code_type,
            code_id=code_id,
            created_at=now_utc,
        ),
    )


async def get_general_usage_count(session: AsyncSession, code_text: str | None) -> int:
    normalized = normalize_referral_code(code_text)
    if not normalized:
        raise GeneralCodeNotFoundError
    general_code = await GeneralCodesRepo.get_by_code(session, normalized)
    if general_code is None:
        raise GeneralCodeNotFoundError
    return await RedemptionsRepo.count_general_usage(session, general_code_id=general_code.id)


async def list_user_redemptions(session: AsyncSession, *, user_id: UUID) -> list[RedemptionView]:
    redemptions = await RedemptionsRepo.list_by_user(session, user_id=user_id)
    return [
        RedemptionView(
            id=redemption.id,
            code_type=redemption.code_type,
            code_id=redemption.code_id,
            created_at=redemption.created_at,
        )
        for redemption in redemptions
    ]
