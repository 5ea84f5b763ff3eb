class ReferralError(Exception):
    pass


class ReferralUserNotFoundError(ReferralError):
    pass


class ReferralNotEligibleError(ReferralError):
    pass


class ReferralInvalidCodeError(ReferralError):
    pass


class ReferralAlreadyActivatedError(ReferralError):
    pass


class ReferralCodeAlreadyUsedError(ReferralError):
    pass


class ReferralCodeSpaceExhaustedError(ReferralError):
    pass


class ReferralPersistenceError(ReferralError):
    pass


class GeneralCodeNotFoundError(ReferralError):
    pass


class GeneralCodeConflictError(ReferralError):
    pass
