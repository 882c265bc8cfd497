"""
Logging configuration for the API process and the command-line runner
"""

from typing import Optional
import logging
import sys
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

HANDLER_NAME = "etl-stdout"

# Library loggers that would echo every batch insert or webhook request
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "httpcore")


def setup_logging(level: Optional[str] = None) -> int:
    """
    Send application logs to stdout.

    Safe to call more than once: the stdout handler is added a single time
    and later calls only change the level.

    Args:
        level: Level name overriding settings.LOG_LEVEL (unknown names fall back to INFO)

    Returns:
        The numeric level now in effect
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root = logging.getLogger()
    if not any(handler.get_name() == HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger(__name__).info(f"Logging configured at {logging.getLevelName(log_level)} level")
    return log_level
