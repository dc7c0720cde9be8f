"""Smoke tests for wiring the application context."""

from __future__ import annotations

import logging

import pytest

from streakone import create_app_context
from streakone.config import TestConfig
from streakone.services.stats import summarize
from streakone.services.tracker import create_streak, enable_reminder, mark_done


@pytest.fixture
def ctx(tmp_path, monkeypatch):
    monkeypatch.setenv("STREAKONE_DATA_DIR", str(tmp_path))
    context = create_app_context(TestConfig())
    yield context
    context.shutdown()
    root = logging.getLogger("streakone")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


def test_context_wires_repository_to_database(ctx, today):
    record = create_streak(ctx.streak_repo, "Read")
    mark_done(ctx.streak_repo, record.id, today=today)

    stored = ctx.settings_repo.get_item(ctx.config.STORAGE_KEY)
    assert record.id in stored
    assert ctx.streak_repo.get_streak_by_id(record.id).streak == 1
    assert summarize(ctx.streak_repo.load(), today=today).done_today == 1


def test_context_configures_package_logging(ctx, tmp_path):
    root = logging.getLogger("streakone")
    assert len(root.handlers) == 2

    create_streak(ctx.streak_repo, "Read")
    for handler in root.handlers:
        handler.flush()

    log_text = (tmp_path / "logs" / "streakone.log").read_text(encoding="utf-8")
    assert "Application context created" in log_text
    assert "Created streak" in log_text


def test_start_schedules_enabled_reminders(ctx):
    record = create_streak(ctx.streak_repo, "Read")
    enable_reminder(ctx.streak_repo, record.id, "08:00")

    ctx.start()

    assert ctx.reminders.scheduled_ids() == [record.id]


def test_storage_info_points_at_database(ctx):
    info = ctx.streak_repo.storage_info()
    assert info["backend"] == "SQLModelSettingsRepository"
    assert info["location"] == "sqlite://"
