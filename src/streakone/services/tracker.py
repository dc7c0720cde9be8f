"""Streak use cases: create, mark done, and edit streaks.

Input is validated here, before the repository is touched; invalid input
raises ``ValueError``. Not-found is reported as ``None``/``False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from ..domain.repositories.streak import StreakRepository
from ..logging_config import get_logger
from ..models.streak import UNSET, Milestone, StreakRecord
from .reminders import ReminderScheduler, format_notification_time, parse_notification_time, sync_reminder
from .streaks import (
    as_day,
    calculate_streak,
    check_milestone_reached,
    contains_day,
    default_color,
    format_day,
    generate_streak_id,
)

logger = get_logger("tracker")

MAX_NAME_LENGTH = 50


class StorageError(RuntimeError):
    """The streak collection could not be written."""


@dataclass(frozen=True)
class MarkDoneResult:
    """Outcome of marking a streak done for a day."""

    record: StreakRecord
    already_done: bool = False
    milestone: Optional[Milestone] = None
    saved: bool = True


def validate_name(name: str) -> str:
    """Return the trimmed name, rejecting empty or overlong names."""

    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Streak name cannot be empty")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValueError(f"Streak name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


def validate_target(target_days: Any) -> int:
    if isinstance(target_days, bool) or not isinstance(target_days, int) or target_days <= 0:
        raise ValueError("Target days must be a positive whole number")
    return target_days


def validate_color(color: str) -> str:
    cleaned = (color or "").strip()
    if not cleaned:
        raise ValueError("Color cannot be empty")
    return cleaned


def refresh_streak(record: StreakRecord, *, today: date | None = None) -> StreakRecord:
    """Copy of ``record`` with the cached streak recomputed from its done dates."""

    fresh = calculate_streak(record.done_dates, today=today)
    if fresh == record.streak:
        return record
    return record.model_copy(update={"streak": fresh})


def create_streak(
    repo: StreakRepository,
    name: str,
    *,
    color: str | None = None,
    target_days: int | None = None,
) -> StreakRecord:
    """Create and persist a new, empty streak.

    Raises:
        ValueError: invalid name, color or target
        StorageError: the collection could not be saved
    """

    cleaned = validate_name(name)
    if target_days is not None:
        validate_target(target_days)
    if color is not None:
        color = validate_color(color)
    else:
        color = default_color(len(repo.load()))

    record = StreakRecord(
        id=generate_streak_id(),
        name=cleaned,
        done_dates=[],
        streak=0,
        created_at=datetime.now(timezone.utc).isoformat(),
        color=color,
        target_days=target_days,
    )
    if not repo.add_streak(record):
        raise StorageError(f"Could not save new streak {cleaned!r}")
    logger.info("Created streak", extra={"streak_id": record.id})
    return record


def mark_done(
    repo: StreakRepository, streak_id: str, *, today: date | None = None
) -> Optional[MarkDoneResult]:
    """Mark ``today`` done for a streak.

    Returns None when the streak does not exist. Marking an already-done day
    changes nothing and reports ``already_done``.
    """

    day = as_day(today)
    record = repo.get_streak_by_id(streak_id)
    if record is None:
        return None

    if contains_day(record.done_dates, day):
        return MarkDoneResult(record=refresh_streak(record, today=day), already_done=True)

    # Run that ended yesterday; today extends it by one.
    previous = calculate_streak(record.done_dates, today=day - timedelta(days=1))
    done_dates = [*record.done_dates, format_day(day)]
    new_streak = calculate_streak(done_dates, today=day)
    updated = record.model_copy(update={"done_dates": done_dates, "streak": new_streak})

    if not repo.update_streak(streak_id, {"done_dates": done_dates, "streak": new_streak}):
        logger.warning("Mark done was not saved", extra={"streak_id": streak_id})
        return MarkDoneResult(record=record, saved=False)

    milestone = check_milestone_reached(new_streak, previous)
    if milestone:
        logger.info(
            "Milestone reached",
            extra={"streak_id": streak_id, "milestone": milestone.name, "days": milestone.days},
        )
    return MarkDoneResult(record=updated, milestone=milestone)


def rename_streak(repo: StreakRepository, streak_id: str, name: str) -> bool:
    return repo.update_streak(streak_id, {"name": validate_name(name)})


def set_color(repo: StreakRepository, streak_id: str, color: str) -> bool:
    return repo.update_streak(streak_id, {"color": validate_color(color)})


def set_target(repo: StreakRepository, streak_id: str, target_days: int) -> bool:
    return repo.update_streak(streak_id, {"target_days": validate_target(target_days)})


def clear_target(repo: StreakRepository, streak_id: str) -> bool:
    return repo.update_streak(streak_id, {"target_days": UNSET})


def _save_reminder(
    repo: StreakRepository,
    streak_id: str,
    updates: dict[str, Any],
    scheduler: ReminderScheduler | None,
) -> bool:
    if not repo.update_streak(streak_id, updates):
        return False
    record = repo.get_streak_by_id(streak_id)
    if record is not None:
        sync_reminder(scheduler, refresh_streak(record))
    return True


def enable_reminder(
    repo: StreakRepository,
    streak_id: str,
    notification_time: str,
    scheduler: ReminderScheduler | None = None,
) -> bool:
    """Turn on the daily reminder at ``notification_time`` ("HH:MM")."""

    hour, minute = parse_notification_time(notification_time)
    return _save_reminder(
        repo,
        streak_id,
        {"notification_enabled": True, "notification_time": format_notification_time(hour, minute)},
        scheduler,
    )


def disable_reminder(
    repo: StreakRepository, streak_id: str, scheduler: ReminderScheduler | None = None
) -> bool:
    return _save_reminder(repo, streak_id, {"notification_enabled": False}, scheduler)


def change_reminder_time(
    repo: StreakRepository,
    streak_id: str,
    notification_time: str,
    scheduler: ReminderScheduler | None = None,
) -> bool:
    """Store a new reminder time, rescheduling only if reminders are enabled."""

    hour, minute = parse_notification_time(notification_time)
    return _save_reminder(
        repo,
        streak_id,
        {"notification_time": format_notification_time(hour, minute)},
        scheduler,
    )


def delete_streak(
    repo: StreakRepository, streak_id: str, scheduler: ReminderScheduler | None = None
) -> bool:
    """Delete a streak and drop its reminder."""

    if not repo.delete_streak(streak_id):
        return False
    if scheduler is not None:
        try:
            scheduler.cancel(streak_id)
        except Exception as exc:
            logger.error(f"Could not cancel reminder for {streak_id}: {exc}", exc_info=True)
    return True


__all__ = [
    "MAX_NAME_LENGTH",
    "MarkDoneResult",
    "StorageError",
    "change_reminder_time",
    "clear_target",
    "create_streak",
    "delete_streak",
    "disable_reminder",
    "enable_reminder",
    "mark_done",
    "refresh_streak",
    "rename_streak",
    "set_color",
    "set_target",
    "validate_color",
    "validate_name",
    "validate_target",
]
