"""Shared fixtures: an in-memory store per test and an injectable clock."""

import os

# Must be set before any project module reads core.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JANITOR_ENABLED", "false")

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from hub_engine.repository import RecordStore, build_engine


def millis(text: str, tz: str = "UTC") -> int:
    """'YYYY-MM-DD HH:MM' wall-clock time in ``tz`` -> epoch milliseconds."""
    local = datetime.strptime(text, "%Y-%m-%d %H:%M").replace(tzinfo=ZoneInfo(tz))
    return int(local.timestamp() * 1000)


class FakeClock:
    def __init__(self, text: str, tz: str = "UTC"):
        self.now = millis(text, tz)

    def set(self, text: str, tz: str = "UTC"):
        self.now = millis(text, tz)

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def at():
    return millis


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
async def store():
    record_store = RecordStore(build_engine("sqlite+aiosqlite://"), retries=1)
    await record_store.init_schema()
    yield record_store
    await record_store.dispose()


@pytest.fixture
def alerts():
    """Collects operator notices instead of queueing them."""
    sent = []

    async def alert(text: str):
        sent.append(text)

    alert.sent = sent
    return alert
