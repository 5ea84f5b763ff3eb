from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.core.referral_codes import normalize_referral_code
from referral_engine.db.models.general_referral_codes import GeneralReferralCode
from referral_engine.db.repo.general_codes_repo import GeneralCodesRepo
from referral_engine.db.repo.redemptions_repo import RedemptionsRepo

from .errors import GeneralCodeConflictError, GeneralCodeNotFoundError, ReferralInvalidCodeError
from .types import GeneralCodeView


def _validated_code_text(code_text: str | None) -> str:
    normalized = normalize_referral_code(code_text)
    if not normalized or len(normalized) > 64:
        raise ReferralInvalidCodeError
    return normalized


async def _to_view(session: AsyncSession, general_code: GeneralReferralCode) -> GeneralCodeView:
    used_count = await RedemptionsRepo.count_general_usage(
        session,
        general_code_id=general_code.id,
    )
    return GeneralCodeView(
        id=general_code.id,
        code=general_code.code,
        used_count=used_count,
        created_at=general_code.created_at,
        updated_at=general_code.updated_at,
    )


async def create_general_code(
    session: AsyncSession,
    *,
    code_text: str,
    now_utc: datetime,
) -> GeneralCodeView:
    normalized = _validated_code_text(code_text)
    if await GeneralCodesRepo.exists_by_code(session, normalized):
        raise GeneralCodeConflictError
    try:
        async with session.begin_nested():
            general_code = await GeneralCodesRepo.create(session, code=normalized, now_utc=now_utc)
    except IntegrityError as exc:
        raise GeneralCodeConflictError from exc
    return await _to_view(session, general_code)


async def get_general_code(session: AsyncSession, *, general_code_id: int) -> GeneralCodeView:
    general_code = await GeneralCodesRepo.get_by_id(session, general_code_id)
    if general_code is None:
        raise GeneralCodeNotFoundError
    return await _to_view(session, general_code)


async def update_general_code(
    session: AsyncSession,
    *,
    general_code_id: int,
    code_text: str,
    now_utc: datetime,
) -> GeneralCodeView:
    normalized = _validated_code_text(code_text)
    general_code = await GeneralCodesRepo.get_by_id(session, general_code_id)
    if general_code is None:
        raise GeneralCodeNotFoundError

    clashing = await GeneralCodesRepo.get_by_code(session, normalized)
    if clashing is not None and clashing.id != general_code.id:
        raise GeneralCodeConflictError
    try:
        async with session.begin_nested():
            await GeneralCodesRepo.update_code(
                session,
                general_code=general_code,
                code=normalized,
                now_utc=now_utc,
            )
    except IntegrityError as exc:
        raise GeneralCodeConflictError from exc
    return await _to_view(session, general_code)


async def delete_general_code(session: AsyncSession, *, general_code_id: int) -> None:
    general_code = await GeneralCodesRepo.get_by_id(session, general_code_id)
    if general_code is None:
        raise GeneralCodeNotFoundError
    await GeneralCodesRepo.delete(session, general_code=general_code)
