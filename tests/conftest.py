"""
Pytest fixtures shared by the guard tests.
"""

import logging

import pytest

from backup_guard.utils.logging_config import SECURITY_LOGGERS, SecureRotatingFileHandler


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock for rate limiter tests."""
    return FakeClock()


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers and levels installed by setup_logging during a test."""
    root = logging.getLogger()
    saved_level = root.level
    yield

    # Only handlers created by dictConfig; pytest's capture handlers stay in place
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, SecureRotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)

    for name in SECURITY_LOGGERS:
        security_logger = logging.getLogger(name)
        for handler in security_logger.handlers[:]:
            security_logger.removeHandler(handler)
            handler.close()
        security_logger.setLevel(logging.NOTSET)
        security_logger.propagate = True
