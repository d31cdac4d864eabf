"""
Shared pytest fixtures for Kubb Trainer.

Everything touching disk lives under pytest's tmp_path, so tests never
read or write the user's ~/.kubbtrainer directory.
"""

import os
import random
from datetime import datetime, timedelta

import pytest

# Headless runs (no display): let pytest-qt create its QApplication offscreen.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from kubb_trainer.database.db import Database
from kubb_trainer.database.pointers import ActiveSessionPointers
from kubb_trainer.models.session import Session


class FakeClock:
    """Settable stand-in for datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "kubbtrainer.db")
    yield database
    database.close()


@pytest.fixture
def pointers(tmp_path):
    return ActiveSessionPointers(tmp_path / "active_sessions.json")


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 14, 18, 0))  # A Wednesday


@pytest.fixture
def manager(qtbot, db, pointers, clock):
    from kubb_trainer.lifecycle import LifecycleManager
    return LifecycleManager(db, pointers, clock=clock)


@pytest.fixture
def make_practice():
    """Build a completed practice session from a flat list of hit/miss outcomes."""
    def _make(outcomes, target=None, date=None, complete=True):
        kwargs = {}
        if date is not None:
            kwargs = {"date": date, "start_time": date, "created_at": date, "modified_at": date}
        session = Session.practice(target if target is not None else len(outcomes), **kwargs)
        for is_hit in outcomes:
            session.record_throw(is_hit)
        if complete:
            session.complete()
        return session
    return _make


@pytest.fixture
def rng():
    return random.Random(1234)
