"""Logging setup for the picking assistant.

Modules log through ``logging.getLogger(__name__)``; this module only
configures the root handler once at process start.
"""

import logging
import sys
from enum import Enum


class LogMode(Enum):
    """Output styles for different audiences."""

    TECHNICAL = "technical"
    OPERATOR = "operator"


_FORMATS = {
    LogMode.TECHNICAL: "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    LogMode.OPERATOR: "%(levelname)s: %(message)s",
}

# Third-party loggers that are noisy at INFO.
_NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "aiosqlite",
    "httpx",
    "uvicorn.access",
)


def setup_logging(
    level: str = "INFO",
    mode: LogMode = LogMode.TECHNICAL,
    force: bool = True,
) -> logging.Logger:
    """Configure root logging and return the application logger.

    Args:
        level: Root level name, e.g. "DEBUG" or "WARNING".
        mode: TECHNICAL adds timestamps and logger names; OPERATOR is terse.
        force: Replace handlers installed by an earlier call.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format=_FORMATS[mode],
        handlers=[logging.StreamHandler(sys.stdout)],
        force=force,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logger = logging.getLogger("pickassist")
    logger.setLevel(numeric_level)
    return logger
