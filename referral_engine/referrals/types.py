from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from referral_engine.db.models.general_referral_codes import GeneralReferralCode
from referral_engine.db.models.personal_referral_codes import PersonalReferralCode


@dataclass(slots=True)
class ResolvedCode:
    kind: str
    general_code: GeneralReferralCode | None = None
    personal_code: PersonalReferralCode | None = None


@dataclass(slots=True)
class ActivationResult:
    success: bool
    message: str
    outcome: str


@dataclass(frozen=True, slots=True)
class PersonalCodeView:
    code: str
    is_activated: bool


@dataclass(slots=True)
class PersonalCodesResult:
    success: bool
    message: str
    outcome: str
    codes: list[PersonalCodeView] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class GeneralCodeView:
    id: int
    code: str
    used_count: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class RedemptionView:
    id: int
    code_type: str
    code_id: int | None
    created_at: datetime
