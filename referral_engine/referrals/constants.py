from __future__ import annotations

CODE_KIND_GENERAL = "GENERAL"
CODE_KIND_PERSONAL = "PERSONAL"
CODE_KIND_INVALID = "INVALID"

OUTCOME_GENERAL_ACTIVATED = "GENERAL_ACTIVATED"
OUTCOME_PERSONAL_ACTIVATED = "PERSONAL_ACTIVATED"
OUTCOME_ALREADY_ACTIVATED = "ALREADY_ACTIVATED"
OUTCOME_INVALID_CODE = "INVALID_CODE"
OUTCOME_CODE_ALREADY_USED = "CODE_ALREADY_USED"
OUTCOME_NOT_ELIGIBLE = "NOT_ELIGIBLE"
OUTCOME_CODES_ISSUED = "CODES_ISSUED"

MESSAGE_GENERAL_ACTIVATED = "General referral code activated successfully"
MESSAGE_PERSONAL_ACTIVATED = "Personal referral code activated successfully"
MESSAGE_ALREADY_ACTIVATED = "User has already activated referral code"
MESSAGE_INVALID_CODE = "Referral code is invalid"
MESSAGE_CODE_ALREADY_USED = "Referral code already activated"
MESSAGE_NOT_ELIGIBLE = "User has not activated referral feature"
MESSAGE_CODES_ISSUED = "Referral codes retrieved successfully"
