from __future__ import annotations

import secrets
import string

ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CODE_LENGTH = 8


class RandomnessUnavailableError(RuntimeError):
    pass


def generate_referral_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Generates an uppercase alphanumeric referral code from the OS entropy pool."""
    if length <= 0:
        raise ValueError("length must be positive")
    try:
        return "".join(secrets.choice(ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as exc:
        raise RandomnessUnavailableError("secure randomness source is unavailable") from exc


def normalize_referral_code(raw_code: str | None) -> str:
    if raw_code is None:
        return ""
    return raw_code.strip()
