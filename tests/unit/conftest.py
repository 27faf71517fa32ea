"""Unit test fixtures (fakes and stubs).

Provides test doubles for time and waiting so unit tests never sleep.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import structlog


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_wait_interrupt() -> MagicMock:
    """Interrupt event whose wait() returns immediately (not interrupted).

    Assert on ``no_wait_interrupt.wait.call_args_list`` to inspect the
    intervals the executor waited for.
    """
    mock = MagicMock(spec=threading.Event)
    mock.wait.return_value = False
    return mock


@pytest.fixture
def restore_logging():
    """Undo configure_logging() after the test (root handlers, level, structlog)."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
