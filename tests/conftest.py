"""Shared fixtures: a fixed calendar day and a throwaway SQLite store."""

from datetime import date, datetime

import pytest

from coach.adapters.sqlite_store import SqliteEntityStore


class FakeClock:
    """Settable stand-in for datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def clock(today):
    return FakeClock(datetime(today.year, today.month, today.day, 9, 30))


@pytest.fixture
def store(tmp_path, clock):
    s = SqliteEntityStore(tmp_path / "data" / "coach.sqlite", clock=clock)
    yield s
    s.close()
