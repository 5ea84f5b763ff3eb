from referral_engine.db.repo.general_codes_repo import GeneralCodesRepo
from referral_engine.db.repo.personal_codes_repo import PersonalCodesRepo
from referral_engine.db.repo.redemptions_repo import RedemptionsRepo
from referral_engine.db.repo.users_repo import UsersRepo

__all__ = [
    "GeneralCodesRepo",
    "PersonalCodesRepo",
    "RedemptionsRepo",
    "UsersRepo",
]
