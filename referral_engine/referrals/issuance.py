from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.core.config import get_settings
from referral_engine.core.logging import mask_code
from referral_engine.core.referral_codes import generate_referral_code
from referral_engine.db.models.personal_referral_codes import PersonalReferralCode
from referral_engine.db.repo.general_codes_repo import GeneralCodesRepo
from referral_engine.db.repo.personal_codes_repo import PersonalCodesRepo
from referral_engine.db.repo.users_repo import UsersRepo
from referral_engine.db.session import SessionLocal

from .errors import (
    ReferralCodeSpaceExhaustedError,
    ReferralNotEligibleError,
    ReferralUserNotFoundError,
)

logger = structlog.get_logger("referral_engine.referrals.issuance")


async def list_codes_for_eligible_owner(
    session: AsyncSession,
    *,
    user_id: UUID,
) -> list[PersonalReferralCode]:
    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise ReferralUserNotFoundError
    if not user.is_referral_activated:
        raise ReferralNotEligibleError
    return await PersonalCodesRepo.list_by_owner(session, owner_user_id=user_id)


async def _is_code_taken(session: AsyncSession, candidate: str) -> bool:
    if await GeneralCodesRepo.exists_by_code(session, candidate):
        return True
    return await PersonalCodesRepo.get_by_code(session, candidate) is not None


async def create_unique_personal_code(
    session: AsyncSession,
    *,
    owner_user_id: UUID,
    code_length: int,
    max_attempts: int,
    now_utc: datetime,
) -> PersonalReferralCode:
    """Draws candidates until one is inserted, at most ``max_attempts`` times.

    The pre-check keeps the common case cheap; the unique index on ``lower(code)``
    decides races with concurrent issuers, and the losing insert is retried.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate_referral_code(code_length)
        if await _is_code_taken(session, candidate):
            logger.warning(
                "personal_code_collision",
                owner_user_id=str(owner_user_id),
                attempt=attempt,
                stage="precheck",
            )
            continue

        try:
            async with session.begin_nested():
                return await PersonalCodesRepo.create(
                    session,
                    owner_user_id=owner_user_id,
                    code=candidate,
                    now_utc=now_utc,
                )
        except IntegrityError:
            logger.warning(
                "personal_code_collision",
                owner_user_id=str(owner_user_id),
                attempt=attempt,
                stage="insert",
            )

    logger.error(
        "personal_code_space_exhausted",
        owner_user_id=str(owner_user_id),
        max_attempts=max_attempts,
        code_length=code_length,
    )
    raise ReferralCodeSpaceExhaustedError


async def issue_personal_code_slot(
    session: AsyncSession,
    *,
    owner_user_id: UUID,
    quota: int,
    code_length: int,
    max_attempts: int,
    now_utc: datetime,
) -> PersonalReferralCode | None:
    """Fills one free slot of the owner's quota; ``None`` when the quota is already met.

    The owner row stays locked until the transaction ends, which serialises
    issuance for the same owner.
    """
    owner = await UsersRepo.get_by_id_for_update(session, owner_user_id)
    if owner is None:
        raise ReferralUserNotFoundError
    if not owner.is_referral_activated:
        raise ReferralNotEligibleError

    issued = await PersonalCodesRepo.count_by_owner(session, owner_user_id=owner_user_id)
    if issued >= quota:
        return None

    return await create_unique_personal_code(
        session,
        owner_user_id=owner_user_id,
        code_length=code_length,
        max_attempts=max_attempts,
        now_utc=now_utc,
    )


async def get_or_generate_personal_codes(*, user_id: UUID) -> list[PersonalReferralCode]:
    """Returns the owner's codes in creation order, topped up to the quota.

    Each new code commits in its own transaction. A failure part-way leaves the
    committed codes in place; calling again completes the set.
    """
    settings = get_settings()
    quota = settings.personal_code_quota

    async with SessionLocal.begin() as session:
        existing = await list_codes_for_eligible_owner(session, user_id=user_id)

    needed = quota - len(existing)
    if needed <= 0:
        return existing

    issued_codes: list[str] = []
    for _ in range(needed):
        async with SessionLocal.begin() as session:
            created = await issue_personal_code_slot(
                session,
                owner_user_id=user_id,
                quota=quota,
                code_length=settings.personal_code_length,
                max_attempts=settings.personal_code_max_attempts,
                now_utc=datetime.now(timezone.utc),
            )
        if created is None:
            break
        issued_codes.append(mask_code(created.code))

    logger.info(
        "personal_codes_issued",
        user_id=str(user_id),
        existing=len(existing),
        issued=len(issued_codes),
        codes_masked=issued_codes,
    )

    async with SessionLocal.begin() as session:
        return await PersonalCodesRepo.list_by_owner(session, owner_user_id=user_id)
