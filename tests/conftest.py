"""Pytest configuration and shared fixtures for StreakOne tests.

Provides database fixtures, an in-memory key/value store, repository
fixtures and a fake reminder scheduler so domain logic can be tested
without touching a real data directory.
"""

from __future__ import annotations

import json
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

from streakone.infra.repositories.settings import SQLModelSettingsRepository
from streakone.infra.repositories.streak import BlobStreakRepository
from streakone.models import AppSetting  # noqa: F401  # register table metadata
from streakone.models.streak import StreakRecord
from streakone.services.streaks import format_day

FIXED_TODAY = date(2024, 3, 20)
STORAGE_KEY = "@streak_data"


# =============================================================================
# Storage fakes
# =============================================================================


class InMemoryKeyValueStore:
    """Dictionary-backed key/value store that counts writes."""

    location = "memory"

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class FailingKeyValueStore(InMemoryKeyValueStore):
    """Store whose reads and/or writes raise like a broken database."""

    def __init__(self, initial=None, *, fail_reads: bool = False, fail_writes: bool = True):
        super().__init__(initial)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def _error(self) -> OperationalError:
        return OperationalError("SELECT value FROM app_setting", {}, Exception("disk I/O error"))

    def get_item(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise self._error()
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise self._error()
        super().set_item(key, value)

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("read-only file system")
        super().remove_item(key)


class FakeReminderScheduler:
    """Records schedule/cancel calls instead of talking to a scheduler."""

    def __init__(self, *, fail: bool = False):
        self.scheduled: dict[str, StreakRecord] = {}
        self.cancelled: list[str] = []
        self.fail = fail

    def schedule(self, record: StreakRecord) -> Optional[str]:
        if self.fail:
            raise RuntimeError("notification service unavailable")
        if not record.notification_enabled or not record.notification_time:
            return None
        self.scheduled[record.id] = record
        return f"streak-reminder:{record.id}"

    def cancel(self, streak_id: str) -> None:
        if self.fail:
            raise RuntimeError("notification service unavailable")
        self.cancelled.append(streak_id)
        self.scheduled.pop(streak_id, None)

    def cancel_all(self) -> None:
        self.scheduled.clear()

    def schedule_all(self, records):
        return [job for job in (self.schedule(r) for r in records) if job]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the Callable[[], Session] repositories expect."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def settings_repo(session_factory) -> SQLModelSettingsRepository:
    return SQLModelSettingsRepository(session_factory, location="test.db")


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repo(memory_store) -> BlobStreakRepository:
    """Streak repository over the in-memory store."""
    return BlobStreakRepository(memory_store, key=STORAGE_KEY)


@pytest.fixture
def sql_repo(settings_repo) -> BlobStreakRepository:
    """Streak repository over the real SQLModel key/value table."""
    return BlobStreakRepository(settings_repo, key=STORAGE_KEY)


@pytest.fixture
def reminders() -> FakeReminderScheduler:
    return FakeReminderScheduler()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


def days_back(*offsets: int, today: date = FIXED_TODAY) -> list[str]:
    """Day markers for ``today - offset`` for each offset."""
    return [format_day(today - timedelta(days=offset)) for offset in offsets]


@pytest.fixture
def streak_factory():
    """Factory for unsaved streak records with sensible defaults."""

    counter = {"n": 0}

    def _create_streak(
        name: str = "Read",
        *,
        streak_id: str | None = None,
        done_dates: list[str] | None = None,
        streak: int = 0,
        **extra,
    ) -> StreakRecord:
        counter["n"] += 1
        return StreakRecord(
            id=streak_id or f"streak-test-{counter['n']}",
            name=name,
            done_dates=list(done_dates or []),
            streak=streak,
            created_at="2024-01-01T08:00:00+00:00",
            **extra,
        )

    return _create_streak


def stored_blob(store: InMemoryKeyValueStore, key: str = STORAGE_KEY) -> dict:
    """Decode what the repository wrote."""
    return json.loads(store.data[key])
