from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from referral_engine.core.logging import mask_code
from referral_engine.db.session import SessionLocal

from . import admin, issuance, ledger, resolver
from .activation import activate_referral_code
from .constants import (
    MESSAGE_ALREADY_ACTIVATED,
    MESSAGE_CODE_ALREADY_USED,
    MESSAGE_CODES_ISSUED,
    MESSAGE_INVALID_CODE,
    MESSAGE_NOT_ELIGIBLE,
    OUTCOME_ALREADY_ACTIVATED,
    OUTCOME_CODE_ALREADY_USED,
    OUTCOME_CODES_ISSUED,
    OUTCOME_INVALID_CODE,
    OUTCOME_NOT_ELIGIBLE,
)
from .errors import (
    ReferralAlreadyActivatedError,
    ReferralCodeAlreadyUsedError,
    ReferralInvalidCodeError,
    ReferralNotEligibleError,
    ReferralPersistenceError,
)
from .types import (
    ActivationResult,
    GeneralCodeView,
    PersonalCodesResult,
    PersonalCodeView,
    RedemptionView,
)

logger = structlog.get_logger("referral_engine.referrals.service")


@asynccontextmanager
async def _persistence_guard(
    operation: str,
    *,
    user_id: UUID | None = None,
    code_text: str | None = None,
) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception(
            "referral_persistence_failed",
            operation=operation,
            user_id=str(user_id) if user_id is not None else None,
            code_masked=mask_code(code_text),
        )
        raise ReferralPersistenceError(operation) from exc


def _rejected(*, user_id: UUID, code_text: str, message: str, outcome: str) -> ActivationResult:
    logger.info(
        "referral_activation_rejected",
        user_id=str(user_id),
        code_masked=mask_code(code_text),
        outcome=outcome,
    )
    return ActivationResult(success=False, message=message, outcome=outcome)


class ReferralCodeService:
    @staticmethod
    async def resolve_and_activate(
        *,
        user_id: UUID,
        code_text: str,
        now_utc: datetime | None = None,
    ) -> ActivationResult:
        try:
            async with _persistence_guard(
                "resolve_and_activate", user_id=user_id, code_text=code_text
            ):
                async with SessionLocal.begin() as session:
                    return await activate_referral_code(
                        session,
                        user_id=user_id,
                        code_text=code_text,
                        now_utc=now_utc,
                    )
        except ReferralAlreadyActivatedError:
            return _rejected(
                user_id=user_id,
                code_text=code_text,
                message=MESSAGE_ALREADY_ACTIVATED,
                outcome=OUTCOME_ALREADY_ACTIVATED,
            )
        except ReferralInvalidCodeError:
            return _rejected(
                user_id=user_id,
                code_text=code_text,
                message=MESSAGE_INVALID_CODE,
                outcome=OUTCOME_INVALID_CODE,
            )
        except ReferralCodeAlreadyUsedError:
            return _rejected(
                user_id=user_id,
                code_text=code_text,
                message=MESSAGE_CODE_ALREADY_USED,
                outcome=OUTCOME_CODE_ALREADY_USED,
            )

    @staticmethod
    async def get_or_generate_codes(*, user_id: UUID) -> PersonalCodesResult:
        try:
            async with _persistence_guard("get_or_generate_codes", user_id=user_id):
                codes = await issuance.get_or_generate_personal_codes(user_id=user_id)
        except ReferralNotEligibleError:
            logger.info("personal_codes_not_eligible", user_id=str(user_id))
            return PersonalCodesResult(
                success=False,
                message=MESSAGE_NOT_ELIGIBLE,
                outcome=OUTCOME_NOT_ELIGIBLE,
            )

        return PersonalCodesResult(
            success=True,
            message=MESSAGE_CODES_ISSUED,
            outcome=OUTCOME_CODES_ISSUED,
            codes=[
                PersonalCodeView(code=code.code, is_activated=code.is_activated)
                for code in codes
            ],
        )

    @staticmethod
    async def get_usage_count(*, code_text: str) -> int:
        async with _persistence_guard("get_usage_count", code_text=code_text):
            async with SessionLocal() as session:
                return await ledger.get_general_usage_count(session, code_text)

    @staticmethod
    async def is_valid_general_code(*, code_text: str) -> bool:
        async with _persistence_guard("is_valid_general_code", code_text=code_text):
            async with SessionLocal() as session:
                return await resolver.is_valid_general_code(session, code_text)

    @staticmethod
    async def list_redemptions(*, user_id: UUID) -> list[RedemptionView]:
        async with _persistence_guard("list_redemptions", user_id=user_id):
            async with SessionLocal() as session:
                return await ledger.list_user_redemptions(session, user_id=user_id)

    @staticmethod
    async def create_general_code(*, code_text: str) -> GeneralCodeView:
        async with _persistence_guard("create_general_code", code_text=code_text):
            async with SessionLocal.begin() as session:
                view = await admin.create_general_code(
                    session,
                    code_text=code_text,
                    now_utc=datetime.now(timezone.utc),
                )
        logger.info(
            "general_code_created",
            general_code_id=view.id,
            code_masked=mask_code(view.code),
        )
        return view

    @staticmethod
    async def get_general_code(*, general_code_id: int) -> GeneralCodeView:
        async with _persistence_guard("get_general_code"):
            async with SessionLocal() as session:
                return await admin.get_general_code(session, general_code_id=general_code_id)

    @staticmethod
    async def update_general_code(*, general_code_id: int, code_text: str) -> GeneralCodeView:
        async with _persistence_guard("update_general_code", code_text=code_text):
            async with SessionLocal.begin() as session:
                view = await admin.update_general_code(
                    session,
                    general_code_id=general_code_id,
                    code_text=code_text,
                    now_utc=datetime.now(timezone.utc),
                )
        logger.info(
            "general_code_updated",
            general_code_id=view.id,
            code_masked=mask_code(view.code),
        )
        return view

    @staticmethod
    async def delete_general_code(*, general_code_id: int) -> None:
        async with _persistence_guard("delete_general_code"):
            async with SessionLocal.begin() as session:
                await admin.delete_general_code(session, general_code_id=general_code_id)
        logger.info("general_code_deleted", general_code_id=general_code_id)
