from referral_engine.referrals.service import ReferralCodeService
from referral_engine.referrals.types import (
    ActivationResult,
    GeneralCodeView,
    PersonalCodesResult,
    PersonalCodeView,
    RedemptionView,
)

__all__ = [
    "ActivationResult",
    "GeneralCodeView",
    "PersonalCodeView",
    "PersonalCodesResult",
    "RedemptionView",
    "ReferralCodeService",
]
