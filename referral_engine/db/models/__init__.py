from referral_engine.db.models.general_referral_codes import GeneralReferralCode
from referral_engine.db.models.personal_referral_codes import PersonalReferralCode
from referral_engine.db.models.referral_redemptions import ReferralRedemption
from referral_engine.db.models.users import User

__all__ = [
    "GeneralReferralCode",
    "PersonalReferralCode",
    "ReferralRedemption",
    "User",
]
