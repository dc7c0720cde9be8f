"""Daily reminder scheduling for streaks.

The core talks to reminders only through :class:`ReminderScheduler`.
:class:`APSchedulerReminderScheduler` is the in-process implementation: one
cron job per streak, keyed by the streak id, delivering through a ``notify``
callback supplied by the host application.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Callable, Iterable, Optional, Protocol

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..logging_config import get_logger
from ..models.streak import StreakRecord

logger = get_logger("reminders")

JOB_ID_PREFIX = "streak-reminder:"
_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})")

Notifier = Callable[[str, str, str], None]


class ReminderScheduler(Protocol):
    """Schedules one recurring daily reminder per streak id."""

    def schedule(self, record: StreakRecord) -> Optional[str]:
        """Replace the streak's reminder; None if reminders are off or the time is invalid."""
        ...

    def cancel(self, streak_id: str) -> None:
        """Remove every reminder tagged with ``streak_id``."""
        ...

    def cancel_all(self) -> None:
        ...

    def schedule_all(self, records: Iterable[StreakRecord]) -> list[str]:
        ...


def parse_notification_time(value: str) -> tuple[int, int]:
    """Parse ``"HH:MM"`` (24-hour) into ``(hour, minute)``.

    Raises:
        ValueError: if the string is not a valid time of day
    """

    match = _TIME_PATTERN.fullmatch((value or "").strip())
    if not match:
        raise ValueError(f"Invalid time format: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time values: {hour}:{minute}")
    return hour, minute


def format_notification_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def reminder_content(record: StreakRecord) -> tuple[str, str]:
    """Return the (title, body) shown for a streak's reminder."""

    return (
        f"🔥 {record.name}",
        f"Don't forget to complete your {record.streak} day streak today!",
    )


def reminder_job_id(streak_id: str) -> str:
    return f"{JOB_ID_PREFIX}{streak_id}"


def _log_notification(title: str, body: str, streak_id: str) -> None:
    logger.info("Reminder due: %s - %s", title, body, extra={"streak_id": streak_id})


class APSchedulerReminderScheduler:
    """Reminder scheduler backed by an APScheduler ``BackgroundScheduler``."""

    def __init__(
        self,
        notify: Notifier | None = None,
        *,
        timezone: str | None = None,
        scheduler: BackgroundScheduler | None = None,
    ):
        self.notify = notify or _log_notification
        self.timezone = timezone
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone)

    def start(self, *, paused: bool = False) -> None:
        """Start the background scheduler thread."""
        if self.scheduler.running:
            logger.warning("Reminder scheduler already running")
            return
        self.scheduler.start(paused=paused)
        logger.info("Reminder scheduler started")

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Reminder scheduler stopped")

    def schedule(self, record: StreakRecord) -> Optional[str]:
        self.cancel(record.id)
        if not record.notification_enabled or not record.notification_time:
            return None

        try:
            hour, minute = parse_notification_time(record.notification_time)
        except ValueError as exc:
            logger.error("Not scheduling reminder: %s", exc, extra={"streak_id": record.id})
            return None

        title, body = reminder_content(record)
        job = self.scheduler.add_job(
            func=self._deliver,
            trigger=CronTrigger(hour=hour, minute=minute, timezone=self.timezone),
            args=(title, body, record.id),
            id=reminder_job_id(record.id),
            name=f"Daily reminder for {record.name}",
            replace_existing=True,
        )
        logger.info(
            "Scheduled daily reminder at %s",
            format_notification_time(hour, minute),
            extra={"streak_id": record.id},
        )
        return job.id

    def cancel(self, streak_id: str) -> None:
        job_id = reminder_job_id(streak_id)
        for job in self.scheduler.get_jobs():
            if job.id == job_id:
                self.scheduler.remove_job(job.id)
                logger.info("Cancelled reminder", extra={"streak_id": streak_id})

    def cancel_all(self) -> None:
        for job in self.scheduler.get_jobs():
            if job.id.startswith(JOB_ID_PREFIX):
                self.scheduler.remove_job(job.id)

    def schedule_all(self, records: Iterable[StreakRecord]) -> list[str]:
        """Schedule every streak that has reminders enabled."""
        job_ids = []
        for record in records:
            job_id = self.schedule(record)
            if job_id:
                job_ids.append(job_id)
        return job_ids

    def scheduled_ids(self) -> list[str]:
        """Streak ids that currently have a reminder."""
        return [
            job.id[len(JOB_ID_PREFIX):]
            for job in self.scheduler.get_jobs()
            if job.id.startswith(JOB_ID_PREFIX)
        ]

    def next_fire_time(self, streak_id: str) -> Optional[datetime]:
        """Next time the streak's reminder fires, or None when it has none."""
        job = self.scheduler.get_job(reminder_job_id(streak_id))
        if job is None:
            return None
        return getattr(job, "next_run_time", None)

    def _deliver(self, title: str, body: str, streak_id: str) -> None:
        try:
            self.notify(title, body, streak_id)
        except Exception as exc:
            logger.error(f"Reminder delivery failed: {exc}", exc_info=True)


def sync_reminder(scheduler: ReminderScheduler | None, record: StreakRecord) -> Optional[str]:
    """Bring the scheduler in line with the record's reminder settings.

    Scheduler failures are logged and swallowed so they never turn a
    successful save into a failure.
    """

    if scheduler is None:
        return None
    try:
        if record.notification_enabled and record.notification_time:
            return scheduler.schedule(record)
        scheduler.cancel(record.id)
    except Exception as exc:
        logger.error(f"Reminder sync failed for {record.id}: {exc}", exc_info=True)
    return None


__all__ = [
    "APSchedulerReminderScheduler",
    "JOB_ID_PREFIX",
    "ReminderScheduler",
    "format_notification_time",
    "parse_notification_time",
    "reminder_content",
    "reminder_job_id",
    "sync_reminder",
]
