"""Service module exports."""

from . import reminders, stats, streaks, tracker

__all__ = [
    "reminders",
    "stats",
    "streaks",
    "tracker",
]
