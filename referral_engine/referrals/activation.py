from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.core.logging import mask_code
from referral_engine.db.models.referral_redemptions import CODE_TYPE_GENERAL, CODE_TYPE_PERSONAL
from referral_engine.db.repo.personal_codes_repo import PersonalCodesRepo
from referral_engine.db.repo.users_repo import UsersRepo

from .constants import (
    CODE_KIND_GENERAL,
    CODE_KIND_PERSONAL,
    MESSAGE_GENERAL_ACTIVATED,
    MESSAGE_PERSONAL_ACTIVATED,
    OUTCOME_GENERAL_ACTIVATED,
    OUTCOME_PERSONAL_ACTIVATED,
)
from .errors import (
    ReferralAlreadyActivatedError,
    ReferralCodeAlreadyUsedError,
    ReferralInvalidCodeError,
    ReferralUserNotFoundError,
)
from .ledger import append_redemption
from .resolver import resolve_code
from .types import ActivationResult

logger = structlog.get_logger("referral_engine.referrals.activation")


async def _flip_user_activation(session: AsyncSession, *, user_id: UUID, now_utc: datetime) -> None:
    updated = await UsersRepo.mark_referral_activated(session, user_id=user_id, now_utc=now_utc)
    if updated == 0:
        # A concurrent activation for the same user committed first.
        logger.warning("referral_activation_lost_user_race", user_id=str(user_id))
        raise ReferralAlreadyActivatedError


async def activate_referral_code(
    session: AsyncSession,
    *,
    user_id: UUID,
    code_text: str,
    now_utc: datetime | None = None,
) -> ActivationResult:
    """Redeems ``code_text`` for ``user_id`` inside the caller's transaction.

    Rejections are raised as ``ReferralError`` subclasses after some rows may
    already have been written in this transaction, so the caller must roll back
    on any exception. Locks are taken in a fixed order (user row, then personal
    code row) through conditional updates.
    """
    now_utc = now_utc or datetime.now(timezone.utc)

    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise ReferralUserNotFoundError
    if user.is_referral_activated:
        raise ReferralAlreadyActivatedError

    resolved = await resolve_code(session, code_text)

    if resolved.kind == CODE_KIND_GENERAL and resolved.general_code is not None:
        general_code = resolved.general_code
        await _flip_user_activation(session, user_id=user_id, now_utc=now_utc)
        await append_redemption(
            session,
            redeemed_by_user_id=user_id,
            code_type=CODE_TYPE_GENERAL,
            code_id=general_code.id,
            now_utc=now_utc,
        )
        logger.info(
            "referral_code_activated",
            user_id=str(user_id),
            code_type=CODE_TYPE_GENERAL,
            code_id=general_code.id,
            code_masked=mask_code(general_code.code),
        )
        return ActivationResult(
            success=True,
            message=MESSAGE_GENERAL_ACTIVATED,
            outcome=OUTCOME_GENERAL_ACTIVATED,
        )

    if resolved.kind == CODE_KIND_PERSONAL and resolved.personal_code is not None:
        personal_code = resolved.personal_code
        if personal_code.owner_user_id == user_id:
            raise ReferralInvalidCodeError

        await _flip_user_activation(session, user_id=user_id, now_utc=now_utc)
        updated = await PersonalCodesRepo.mark_activated(
            session,
            personal_code_id=personal_code.id,
            now_utc=now_utc,
        )
        if updated == 0:
            logger.warning(
                "referral_activation_lost_code_race",
                user_id=str(user_id),
                code_id=personal_code.id,
                code_masked=mask_code(personal_code.code),
            )
            raise ReferralCodeAlreadyUsedError

        await append_redemption(
            session,
            redeemed_by_user_id=user_id,
            code_type=CODE_TYPE_PERSONAL,
            code_id=personal_code.id,
            now_utc=now_utc,
        )
        logger.info(
            "referral_code_activated",
            user_id=str(user_id),
            code_type=CODE_TYPE_PERSONAL,
            code_id=personal_code.id,
            owner_user_id=str(personal_code.owner_user_id),
            code_masked=mask_code(personal_code.code),
        )
        return ActivationResult(
            success=True,
            message=MESSAGE_PERSONAL_ACTIVATED,
            outcome=OUTCOME_PERSONAL_ACTIVATED,
        )

    raise ReferralInvalidCodeError
