from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select

from referral_engine.core.referral_codes import ALPHABET
from referral_engine.db.models.personal_referral_codes import PersonalReferralCode
from referral_engine.db.session import SessionLocal
from referral_engine.referrals import ReferralCodeService, issuance
from referral_engine.referrals.constants import MESSAGE_NOT_ELIGIBLE, OUTCOME_NOT_ELIGIBLE
from tests.integration.referral_fixtures import (
    _count_personal_codes,
    _create_general_code,
    _create_personal_code,
    _create_user,
)


@pytest.mark.asyncio
async def test_activated_user_gets_five_codes_and_repeat_calls_are_stable() -> None:
    user_id = await _create_user(activated=True)

    first = await ReferralCodeService.get_or_generate_codes(user_id=user_id)
    second = await ReferralCodeService.get_or_generate_codes(user_id=user_id)

    assert first.success is True
    assert len(first.codes) == 5
    assert first.codes == second.codes
    for view in first.codes:
        assert len(view.code) == 8
        assert set(view.code).issubset(set(ALPHABET))
        assert view.is_activated is False
    assert await _count_personal_codes(owner_user_id=user_id) == 5


@pytest.mark.asyncio
async def test_issuance_tops_up_existing_codes_in_creation_order() -> None:
    user_id = await _create_user(activated=True)
    await _create_personal_code(owner_user_id=user_id, code="AAAA1111")
    await _create_personal_code(owner_user_id=user_id, code="BBBB2222")

    result = await ReferralCodeService.get_or_generate_codes(user_id=user_id)

    assert [view.code for view in result.codes][:2] == ["AAAA1111", "BBBB2222"]
    assert len(result.codes) == 5


@pytest.mark.asyncio
async def test_non_activated_user_is_not_eligible_and_nothing_is_written() -> None:
    user_id = await _create_user()

    result = await ReferralCodeService.get_or_generate_codes(user_id=user_id)

    assert result.success is False
    assert result.message == MESSAGE_NOT_ELIGIBLE
    assert result.outcome == OUTCOME_NOT_ELIGIBLE
    assert result.codes == []
    assert await _count_personal_codes() == 0


@pytest.mark.asyncio
async def test_personal_codes_are_unique_across_users_and_general_codes() -> None:
    await _create_general_code("LAUNCH2024")
    owners = [await _create_user(activated=True) for _ in range(6)]

    for owner_id in owners:
        result = await ReferralCodeService.get_or_generate_codes(user_id=owner_id)
        assert len(result.codes) == 5

    async with SessionLocal.begin() as session:
        total = await session.scalar(select(func.count(PersonalReferralCode.id)))
        distinct = await session.scalar(
            select(func.count(func.distinct(func.lower(PersonalReferralCode.code))))
        )

    assert total == 30
    assert distinct == 30
    assert await ReferralCodeService.is_valid_general_code(code_text="LAUNCH2024") is True


@pytest.mark.asyncio
async def test_parallel_issuance_for_same_user_never_exceeds_quota() -> None:
    user_id = await _create_user(activated=True)
    barrier = asyncio.Event()

    async def _attempt() -> list[str]:
        await barrier.wait()
        result = await ReferralCodeService.get_or_generate_codes(user_id=user_id)
        return [view.code for view in result.codes]

    task_1 = asyncio.create_task(_attempt())
    task_2 = asyncio.create_task(_attempt())
    barrier.set()
    codes_1, codes_2 = await asyncio.gather(task_1, task_2)

    assert codes_1 == codes_2
    assert len(codes_1) == 5
    assert await _count_personal_codes(owner_user_id=user_id) == 5


@pytest.mark.asyncio
async def test_unique_index_rejects_case_variant_and_issuer_redraws(monkeypatch) -> None:
    first_owner = await _create_user(activated=True)
    await _create_personal_code(owner_user_id=first_owner, code="AAAA1111")
    second_owner = await _create_user(activated=True)

    async def _never_taken(session, candidate: str) -> bool:
        del session, candidate
        return False

    drawn = iter(["aaaa1111", "FRESH001"])
    generate = issuance.generate_referral_code

    def _scripted_generate(length: int) -> str:
        return next(drawn, None) or generate(length)

    monkeypatch.setattr(issuance, "_is_code_taken", _never_taken)
    monkeypatch.setattr(issuance, "generate_referral_code", _scripted_generate)

    result = await ReferralCodeService.get_or_generate_codes(user_id=second_owner)

    codes = [view.code for view in result.codes]
    assert len(codes) == 5
    assert codes[0] == "FRESH001"
    assert "AAAA1111" not in codes

    async with SessionLocal.begin() as session:
        total = await session.scalar(select(func.count(PersonalReferralCode.id)))
        distinct = await session.scalar(
            select(func.count(func.distinct(func.lower(PersonalReferralCode.code))))
        )
        first_owner_codes = (
            await session.execute(
                select(PersonalReferralCode.code).where(
                    PersonalReferralCode.owner_user_id == first_owner
                )
            )
        ).scalars().all()

    assert total == 6
    assert distinct == 6
    assert list(first_owner_codes) == ["AAAA1111"]
