"""Aggregate statistics over done dates and whole collections."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Sequence

from ..models.streak import StreakRecord
from .streaks import as_day, calculate_streak, normalize_days

COMPLETION_WINDOW_DAYS = 30


@dataclass(frozen=True)
class StreakStats:
    """Summary numbers for one streak."""

    total_days: int
    current_streak: int
    longest_streak: int
    completion_rate: int


@dataclass(frozen=True)
class CollectionSummary:
    """Summary numbers across every tracked streak."""

    streak_count: int
    total_days: int
    best_current_streak: int
    best_longest_streak: int
    done_today: int


@dataclass(frozen=True)
class CalendarDay:
    day: date
    done: bool
    is_today: bool
    is_past: bool


def longest_streak(done_dates: Iterable[str | date]) -> int:
    """Return the longest run of consecutive marked days."""

    longest = 0
    run = 0
    last_day: date | None = None
    for d in sorted(normalize_days(done_dates)):
        if last_day is not None and d == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = d
    return longest


def completion_rate(
    done_dates: Iterable[str | date],
    *,
    today: date | None = None,
    window: int = COMPLETION_WINDOW_DAYS,
) -> int:
    """Percent of the ``window`` days ending today that were marked done."""

    if window <= 0:
        return 0
    anchor = as_day(today)
    start = anchor - timedelta(days=window - 1)
    recent = [d for d in normalize_days(done_dates) if start <= d <= anchor]
    return min(round(len(recent) / window * 100), 100)


def compute_stats(done_dates: Iterable[str | date], *, today: date | None = None) -> StreakStats:
    days = normalize_days(done_dates)
    return StreakStats(
        total_days=len(days),
        current_streak=calculate_streak(days, today=today),
        longest_streak=longest_streak(days),
        completion_rate=completion_rate(days, today=today),
    )


def summarize(streaks: Sequence[StreakRecord], *, today: date | None = None) -> CollectionSummary:
    """Roll up every streak in the collection into one summary.

    Current streaks are recomputed from done dates rather than trusting the
    cached ``streak`` field.
    """

    anchor = as_day(today)
    per_streak = [compute_stats(record.done_dates, today=anchor) for record in streaks]
    return CollectionSummary(
        streak_count=len(streaks),
        total_days=sum(s.total_days for s in per_streak),
        best_current_streak=max((s.current_streak for s in per_streak), default=0),
        best_longest_streak=max((s.longest_streak for s in per_streak), default=0),
        done_today=sum(1 for record in streaks if anchor in normalize_days(record.done_dates)),
    )


def recent_calendar(
    done_dates: Iterable[str | date], *, today: date | None = None, days: int = 30
) -> list[CalendarDay]:
    """Oldest-first strip of the last ``days`` calendar days ending today."""

    anchor = as_day(today)
    marked = normalize_days(done_dates)
    strip = []
    for offset in range(days - 1, -1, -1):
        day = anchor - timedelta(days=offset)
        strip.append(
            CalendarDay(day=day, done=day in marked, is_today=day == anchor, is_past=day < anchor)
        )
    return strip


__all__ = [
    "COMPLETION_WINDOW_DAYS",
    "CalendarDay",
    "CollectionSummary",
    "StreakStats",
    "completion_rate",
    "compute_stats",
    "longest_streak",
    "recent_calendar",
    "summarize",
]
