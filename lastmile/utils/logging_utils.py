import logging
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from lastmile.settings import settings


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(level: Optional[str] = None) -> logging.Logger:
    """
    The package logger, configured on first use.

    All modules log through logging.getLogger(__name__), so configuring the
    "lastmile" parent here is enough for the whole library.
    """
    logger = logging.getLogger("lastmile")

    # Prevent duplicate handlers when called more than once
    if getattr(logger, "_configured", False):
        if level is not None:
            logger.setLevel(_parse_level(level))
        return logger

    logger.setLevel(_parse_level(level or settings.log_level))
    logger.propagate = False

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)

    logger._configured = True  # type: ignore[attr-defined]
    return logger
