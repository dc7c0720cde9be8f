"""Streak repository protocol."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ...models.streak import StreakRecord


class StreakRepository(Protocol):
    """Repository for the persisted streak collection.

    Every mutation is a full load-modify-save of the collection. Two callers
    interleaving loads and saves lose the earlier write.
    """

    def load(self) -> list[StreakRecord]:
        """Return every streak in creation order; [] when nothing is readable."""
        ...

    def save(self, streaks: list[StreakRecord]) -> bool:
        """Persist the whole collection, returning False on storage failure."""
        ...

    def add_streak(self, record: StreakRecord) -> bool:
        """Append a streak; ValueError when its done dates repeat a day."""
        ...

    def update_streak(self, streak_id: str, updates: Mapping[str, Any]) -> bool:
        """Shallow-merge ``updates`` onto a streak; False when it is not found."""
        ...

    def delete_streak(self, streak_id: str) -> bool:
        """Remove a streak; deleting a missing id still succeeds."""
        ...

    def get_streak_by_id(self, streak_id: str) -> Optional[StreakRecord]:
        """Retrieve a streak by ID."""
        ...

    def clear(self) -> bool:
        """Drop the persisted collection entirely."""
        ...
