import logging
import sys

import structlog

from referral_engine.core.config import get_settings


def configure_logging(log_level: str | None = None) -> None:
    """Defaults to the LOG_LEVEL setting when no level is passed."""
    level = getattr(logging, (log_level or get_settings().log_level).upper(), logging.INFO)
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # basicConfig is a no-op once the root logger has handlers.
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def mask_code(code: str | None) -> str:
    """Keeps the first two characters of a referral code for log correlation."""
    if not code:
        return ""
    visible = code.strip()[:2]
    return f"{visible}***"
