"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import BlobStreakRepository, SQLModelSettingsRepository
from .logging_config import get_logger, setup_logging
from .services.reminders import APSchedulerReminderScheduler, Notifier

logger = get_logger("context")


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    session_factory: Callable[[], Session]

    settings_repo: SQLModelSettingsRepository
    streak_repo: BlobStreakRepository
    reminders: APSchedulerReminderScheduler

    def start(self) -> None:
        """Start reminders for every streak that has them enabled."""
        self.reminders.start()
        self.reminders.schedule_all(self.streak_repo.load())

    def shutdown(self) -> None:
        self.reminders.stop()


def create_app_context(
    config: Optional[BaseConfig] = None, *, notify: Notifier | None = None
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    setup_logging(config)
    _engine, session_factory = bootstrap_database(config)
    logger.info("Application context created", extra={"database_url": config.DATABASE_URL})

    settings_repo = SQLModelSettingsRepository(session_factory, location=config.DATABASE_URL)
    return AppContext(
        config=config,
        session_factory=session_factory,
        settings_repo=settings_repo,
        streak_repo=BlobStreakRepository(settings_repo, key=config.STORAGE_KEY),
        reminders=APSchedulerReminderScheduler(notify, timezone=config.REMINDER_TIMEZONE),
    )
