from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import select

from referral_engine.db.models.personal_referral_codes import PersonalReferralCode
from referral_engine.db.models.referral_redemptions import ReferralRedemption
from referral_engine.db.session import SessionLocal
from referral_engine.referrals import ReferralCodeService
from referral_engine.referrals.constants import (
    MESSAGE_ALREADY_ACTIVATED,
    MESSAGE_GENERAL_ACTIVATED,
    MESSAGE_INVALID_CODE,
    OUTCOME_ALREADY_ACTIVATED,
    OUTCOME_CODE_ALREADY_USED,
    OUTCOME_GENERAL_ACTIVATED,
    OUTCOME_INVALID_CODE,
    OUTCOME_PERSONAL_ACTIVATED,
)
from referral_engine.referrals.errors import ReferralUserNotFoundError
from tests.integration.referral_fixtures import (
    _count_redemptions,
    _create_general_code,
    _create_personal_code,
    _create_user,
    _get_user,
)


@pytest.mark.asyncio
async def test_fresh_user_redeems_general_code() -> None:
    user_id = await _create_user()
    await _create_general_code("LAUNCH2024")

    assert await ReferralCodeService.get_usage_count(code_text="LAUNCH2024") == 0

    result = await ReferralCodeService.resolve_and_activate(user_id=user_id, code_text="launch2024")

    assert result.success is True
    assert result.message == MESSAGE_GENERAL_ACTIVATED
    assert result.outcome == OUTCOME_GENERAL_ACTIVATED
    assert (await _get_user(user_id)).is_referral_activated is True
    assert await ReferralCodeService.get_usage_count(code_text="LAUNCH2024") == 1

    redemptions = await ReferralCodeService.list_redemptions(user_id=user_id)
    assert [redemption.code_type for redemption in redemptions] == ["GENERAL"]


@pytest.mark.asyncio
async def test_redeeming_consumed_personal_code_is_invalid_and_mutates_nothing() -> None:
    owner_id = await _create_user(activated=True)
    first_redeemer_id = await _create_user()
    second_redeemer_id = await _create_user()
    await _create_personal_code(owner_user_id=owner_id, code="K7QP2MZA")

    first = await ReferralCodeService.resolve_and_activate(
        user_id=first_redeemer_id,
        code_text="K7QP2MZA",
    )
    assert first.success is True

    second = await ReferralCodeService.resolve_and_activate(
        user_id=second_redeemer_id,
        code_text="K7QP2MZA",
    )

    assert second.success is False
    assert second.message == MESSAGE_INVALID_CODE
    assert (await _get_user(second_redeemer_id)).is_referral_activated is False
    assert await _count_redemptions(user_id=second_redeemer_id) == 0


@pytest.mark.asyncio
async def test_redeeming_unactivated_personal_code_flips_both_flags() -> None:
    owner_id = await _create_user(activated=True)
    redeemer_id = await _create_user()
    code_id = await _create_personal_code(owner_user_id=owner_id, code="M2ZX9QWE")

    result = await ReferralCodeService.resolve_and_activate(
        user_id=redeemer_id,
        code_text="m2zx9qwe",
    )

    assert result.success is True
    assert result.outcome == OUTCOME_PERSONAL_ACTIVATED
    assert (await _get_user(redeemer_id)).is_referral_activated is True

    async with SessionLocal.begin() as session:
        personal_code = await session.get(PersonalReferralCode, code_id)
        assert personal_code is not None
        assert personal_code.is_activated is True
        redemptions = list(
            (
                await session.execute(
                    select(ReferralRedemption).where(
                        ReferralRedemption.redeemed_by_user_id == redeemer_id
                    )
                )
            ).scalars()
        )

    assert [(row.code_type, row.code_id) for row in redemptions] == [("PERSONAL", code_id)]


@pytest.mark.asyncio
async def test_second_activation_for_same_user_is_rejected() -> None:
    user_id = await _create_user()
    await _create_general_code("LAUNCH2024")
    await _create_general_code("SPRING25")

    first = await ReferralCodeService.resolve_and_activate(user_id=user_id, code_text="LAUNCH2024")
    second = await ReferralCodeService.resolve_and_activate(user_id=user_id, code_text="SPRING25")

    assert first.success is True
    assert second.success is False
    assert second.message == MESSAGE_ALREADY_ACTIVATED
    assert second.outcome == OUTCOME_ALREADY_ACTIVATED
    assert await ReferralCodeService.get_usage_count(code_text="SPRING25") == 0


@pytest.mark.asyncio
async def test_unknown_code_and_unknown_user() -> None:
    user_id = await _create_user()

    result = await ReferralCodeService.resolve_and_activate(user_id=user_id, code_text="NOPE0000")
    assert result.success is False
    assert result.message == MESSAGE_INVALID_CODE
    assert (await _get_user(user_id)).is_referral_activated is False

    with pytest.raises(ReferralUserNotFoundError):
        await ReferralCodeService.resolve_and_activate(user_id=uuid4(), code_text="NOPE0000")


@pytest.mark.asyncio
async def test_parallel_redemption_of_one_personal_code_allows_single_winner() -> None:
    owner_id = await _create_user(activated=True)
    redeemer_a = await _create_user()
    redeemer_b = await _create_user()
    await _create_personal_code(owner_user_id=owner_id, code="Z9Y8X7W6")
    barrier = asyncio.Event()

    async def _attempt(user_id) -> str:
        await barrier.wait()
        result = await ReferralCodeService.resolve_and_activate(
            user_id=user_id,
            code_text="Z9Y8X7W6",
        )
        return result.outcome

    task_1 = asyncio.create_task(_attempt(redeemer_a))
    task_2 = asyncio.create_task(_attempt(redeemer_b))
    barrier.set()
    outcomes = await asyncio.gather(task_1, task_2)

    # The loser either blocks on the code row or resolves after the winner committed.
    assert sorted(outcomes) in (
        sorted([OUTCOME_PERSONAL_ACTIVATED, OUTCOME_CODE_ALREADY_USED]),
        sorted([OUTCOME_PERSONAL_ACTIVATED, OUTCOME_INVALID_CODE]),
    )
    flags = [
        (await _get_user(redeemer_a)).is_referral_activated,
        (await _get_user(redeemer_b)).is_referral_activated,
    ]
    assert sorted(flags) == [False, True]
    assert await _count_redemptions() == 1


@pytest.mark.asyncio
async def test_parallel_activation_by_same_user_records_one_redemption() -> None:
    user_id = await _create_user()
    await _create_general_code("LAUNCH2024")
    await _create_general_code("SPRING25")
    barrier = asyncio.Event()

    async def _attempt(code_text: str) -> bool:
        await barrier.wait()
        result = await ReferralCodeService.resolve_and_activate(
            user_id=user_id,
            code_text=code_text,
        )
        return result.success

    task_1 = asyncio.create_task(_attempt("LAUNCH2024"))
    task_2 = asyncio.create_task(_attempt("SPRING25"))
    barrier.set()
    outcomes = await asyncio.gather(task_1, task_2)

    assert sorted(outcomes) == [False, True]
    assert await _count_redemptions(user_id=user_id) == 1
    total_usage = await ReferralCodeService.get_usage_count(
        code_text="LAUNCH2024"
    ) + await ReferralCodeService.get_usage_count(code_text="SPRING25")
    assert total_usage == 1
