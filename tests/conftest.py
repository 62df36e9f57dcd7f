"""Shared test fixtures for lift-editor."""

import datetime
import shutil
from pathlib import Path

import pytest

from lift_editor import LiftRepository
from lift_editor import dates as _dates

FIXTURES = Path(__file__).parent / "fixtures"


class FrozenClock:
    """Stand-in for dates.utcnow that only moves when told to."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += datetime.timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock(monkeypatch):
    """Freeze the entry clock at 2020-01-01T00:00:00Z."""
    frozen = FrozenClock(
        datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
    )
    monkeypatch.setattr(_dates, "utcnow", frozen)
    return frozen


@pytest.fixture
def sonne_file(tmp_path):
    """A writable copy of the single-entry 'Sonne' document."""
    path = tmp_path / "sonne.lift"
    shutil.copy(FIXTURES / "sonne.lift", path)
    return path


@pytest.fixture
def two_entries_file(tmp_path):
    """A writable copy of the two-entry document with unmodelled content."""
    path = tmp_path / "two_entries.lift"
    shutil.copy(FIXTURES / "two_entries.lift", path)
    return path


@pytest.fixture
def repo(sonne_file):
    """Repository opened on the 'Sonne' document."""
    with LiftRepository(sonne_file) as r:
        yield r


@pytest.fixture
def repo_two(two_entries_file):
    """Repository opened on the two-entry document."""
    with LiftRepository(two_entries_file) as r:
        yield r
