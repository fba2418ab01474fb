"""
Logging setup for swapreactor.

Library modules only call logging.getLogger(__name__); nothing is
configured on import. Applications and the CLI call configure_logging().
"""

import logging
import os

LOG_LEVEL_ENV_VAR = "SWAPREACTOR_LOG_LEVEL"
LOG_FORMAT        = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def get_log_level() -> str:
    """
    Log level from SWAPREACTOR_LOG_LEVEL.
    Defaults to INFO if not set or invalid.
    """
    level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    if level not in _VALID_LEVELS:
        level = "INFO"
    return level


def configure_logging(level: str = None) -> logging.Logger:
    """Attach a stderr handler to the swapreactor logger. Idempotent."""
    logger = logging.getLogger("swapreactor")
    logger.setLevel(level or get_log_level())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
