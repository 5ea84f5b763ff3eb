from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.core.referral_codes import normalize_referral_code
from referral_engine.db.repo.general_codes_repo import GeneralCodesRepo
from referral_engine.db.repo.personal_codes_repo import PersonalCodesRepo

from .constants import CODE_KIND_GENERAL, CODE_KIND_INVALID, CODE_KIND_PERSONAL
from .types import ResolvedCode


async def resolve_code(session: AsyncSession, code_text: str | None) -> ResolvedCode:
    """Classifies input as a general code, an unredeemed personal code, or invalid.

    General codes win over personal codes with the same text. Personal codes that
    were already redeemed resolve as invalid.
    """
    normalized = normalize_referral_code(code_text)
    if not normalized:
        return ResolvedCode(kind=CODE_KIND_INVALID)

    general_code = await GeneralCodesRepo.get_by_code(session, normalized)
    if general_code is not None:
        return ResolvedCode(kind=CODE_KIND_GENERAL, general_code=general_code)

    personal_code = await PersonalCodesRepo.get_unactivated_by_code(session, normalized)
    if personal_code is not None:
        return ResolvedCode(kind=CODE_KIND_PERSONAL, personal_code=personal_code)

    return ResolvedCode(kind=CODE_KIND_INVALID)


async def is_valid_general_code(session: AsyncSession, code_text: str | None) -> bool:
    normalized = normalize_referral_code(code_text)
    if not normalized:
        return False
    return await GeneralCodesRepo.exists_by_code(session, normalized)
