"""Pytest configuration and shared fixtures."""

import os
import sys
import time
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Drop cached settings and CARELINK_ env overrides around each test."""
    from src.settings import get_settings

    for name in ("CARELINK_LOG_LEVEL", "CARELINK_LOG_FORMAT", "CARELINK_PUSH_PROJECT_ID"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


class FakeClock:
    """Epoch-millisecond clock advanced by hand."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def new_york_tz():
    """Run the test with local time in America/New_York."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()

    yield

    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
