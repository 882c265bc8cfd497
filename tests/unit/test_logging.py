"""
Unit tests for logging setup
"""

import logging
import pytest
from core.logging import setup_logging, HANDLER_NAME, NOISY_LOGGERS


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    noisy_levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, noisy_level in noisy_levels.items():
        logging.getLogger(name).setLevel(noisy_level)


def _stdout_handlers():
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


def test_level_override():
    assert setup_logging("debug") == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    assert setup_logging("LOUD") == logging.INFO


def test_repeat_calls_add_one_handler():
    setup_logging("INFO")
    setup_logging("ERROR")
    
    assert len(_stdout_handlers()) == 1
    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("httpx").level == logging.ERROR
