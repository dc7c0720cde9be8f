"""Streak math: day markers, streak length, progress and milestones.

Everything here is pure. Functions that depend on the current day accept a
``today`` keyword so callers and tests can pin the calendar.
"""

from __future__ import annotations

import math
import secrets
import string
import time
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..models.streak import Milestone

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTH_NUMBERS = {name.lower(): index for index, name in enumerate(_MONTHS, start=1)}
_ID_ALPHABET = string.digits + string.ascii_lowercase

STREAK_COLORS: tuple[str, ...] = (
    "#22c55e",  # green
    "#3b82f6",  # blue
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#8b5cf6",  # purple
    "#ec4899",  # pink
    "#06b6d4",  # cyan
    "#f97316",  # orange
    "#10b981",  # emerald
    "#6366f1",  # indigo
    "#f43f5e",  # rose
    "#14b8a6",  # teal
    "#a855f7",  # violet
    "#eab308",  # yellow
)

MILESTONES: tuple[Milestone, ...] = (
    Milestone(days=7, name="Bronze", emoji="🌟", color="#cd7f32"),
    Milestone(days=30, name="Silver", emoji="🥈", color="#c0c0c0"),
    Milestone(days=100, name="Gold", emoji="🥇", color="#ffd700"),
    Milestone(days=365, name="Diamond", emoji="💎", color="#b9f2ff"),
)


def current_day() -> date:
    """Return the local calendar day."""

    return date.today()


def as_day(value: date | None = None) -> date:
    """Calendar day of ``value`` (datetimes drop their time); the current day when None."""

    if value is None:
        return current_day()
    if isinstance(value, datetime):
        return value.date()
    return value


def format_day(day: date) -> str:
    """Render a calendar day as a marker, e.g. ``"Mon Jan 15 2024"``."""

    return f"{_WEEKDAYS[day.weekday()]} {_MONTHS[day.month - 1]} {day.day:02d} {day.year:04d}"


def parse_day(value: str) -> Optional[date]:
    """Parse a day marker, returning None when it is not a recognizable date.

    Accepts the verbose marker form written by :func:`format_day` as well as
    ISO dates and ISO datetimes (time of day is discarded).
    """

    if not isinstance(value, str):
        return None
    text = value.strip()
    parts = text.split()
    if len(parts) == 4:
        _, month_name, day_part, year_part = parts
        month = _MONTH_NUMBERS.get(month_name.lower())
        if month is None:
            return None
        try:
            return date(int(year_part), month, int(day_part))
        except ValueError:
            return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def normalize_days(done_dates: Iterable[str | date]) -> set[date]:
    """Return the distinct calendar days in ``done_dates``, skipping junk."""

    days: set[date] = set()
    for marker in done_dates:
        if isinstance(marker, datetime):
            days.add(marker.date())
        elif isinstance(marker, date):
            days.add(marker)
        else:
            parsed = parse_day(marker)
            if parsed is not None:
                days.add(parsed)
    return days


def contains_day(done_dates: Iterable[str | date], day: date) -> bool:
    """Return True when ``day`` is already marked, whatever marker format was used."""

    return day in normalize_days(done_dates)


def calculate_streak(done_dates: Iterable[str | date], *, today: date | None = None) -> int:
    """Count consecutive marked days walking backwards from ``today``.

    The newest distinct day must be today itself, otherwise the chain breaks
    immediately and the result is 0.
    """

    anchor = as_day(today)
    ordered = sorted(normalize_days(done_dates), reverse=True)

    count = 0
    for offset, day in enumerate(ordered):
        if day != anchor - timedelta(days=offset):
            break
        count += 1
    return count


def calculate_progress(current: int, target: int | None) -> int:
    """Percentage of ``target`` reached, rounded half up and clamped to 0..100."""

    if not target or target <= 0:
        return 0
    percent = math.floor(current / target * 100 + 0.5)
    return max(0, min(percent, 100))


def get_motivation_message(progress: int, days_left: int) -> str:
    """Pick an encouragement line for the progress band."""

    if progress >= 100:
        return "🎉 You reached your goal! Great job!"
    if progress >= 90:
        return f"🔥 Almost there! Only {days_left} days left!"
    if progress >= 75:
        return f"💪 You're doing great! {days_left} days left."
    if progress >= 50:
        return "✨ Halfway there! Keep going!"
    if progress >= 25:
        return "🌱 Good start! Keep it up!"
    return "🚀 You've started! Every day matters!"


def get_current_milestone(
    streak: int, milestones: Sequence[Milestone] = MILESTONES
) -> Optional[Milestone]:
    """Highest milestone whose threshold is at or below ``streak``."""

    for milestone in reversed(milestones):
        if streak >= milestone.days:
            return milestone
    return None


def get_next_milestone(
    streak: int, milestones: Sequence[Milestone] = MILESTONES
) -> Optional[Milestone]:
    """Lowest milestone still ahead of ``streak``; None once all are achieved."""

    for milestone in milestones:
        if streak < milestone.days:
            return milestone
    return None


def get_achieved_milestones(
    streak: int, milestones: Sequence[Milestone] = MILESTONES
) -> list[Milestone]:
    return [m for m in milestones if streak >= m.days]


def check_milestone_reached(
    new_streak: int, previous_streak: int, milestones: Sequence[Milestone] = MILESTONES
) -> Optional[Milestone]:
    """Return the lowest milestone crossed going from ``previous_streak`` to ``new_streak``."""

    for milestone in milestones:
        if previous_streak < milestone.days <= new_streak:
            return milestone
    return None


def get_milestone_message(milestone: Milestone) -> str:
    return (
        f"🎉 {milestone.emoji} Congratulations! You've reached {milestone.days} days"
        f" - {milestone.name} milestone!"
    )


def generate_streak_id() -> str:
    """Return ``streak-<epoch millis>-<9 random base36 chars>``."""

    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"streak-{int(time.time() * 1000)}-{suffix}"


def default_color(position: int) -> str:
    """Palette color for the streak at ``position`` in the collection."""

    return STREAK_COLORS[position % len(STREAK_COLORS)]


__all__ = [
    "MILESTONES",
    "STREAK_COLORS",
    "as_day",
    "calculate_progress",
    "calculate_streak",
    "check_milestone_reached",
    "contains_day",
    "current_day",
    "default_color",
    "format_day",
    "generate_streak_id",
    "get_achieved_milestones",
    "get_current_milestone",
    "get_milestone_message",
    "get_motivation_message",
    "get_next_milestone",
    "normalize_days",
    "parse_day",
]
