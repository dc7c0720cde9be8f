"""Streak repository storing the whole collection as one JSON blob.

The blob lives under a single key of a :class:`KeyValueStore`. Reads accept
the current ``{"streaks": [...]}`` shape plus the two single-streak shapes
written by earlier releases, which are migrated and written back on first
read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ...domain.repositories.key_value import KeyValueStore
from ...logging_config import get_logger
from ...models.streak import (
    BLOB_FIELD_NAMES,
    IMMUTABLE_FIELDS,
    OPTIONAL_FIELDS,
    UNSET,
    StreakRecord,
)
from ...services.streaks import parse_day

logger = get_logger("repositories.streak")

DEFAULT_STORAGE_KEY = "@streak_data"
LEGACY_STREAK_ID = "default-streak"
LEGACY_STREAK_NAME = "My Streak"

STORAGE_ERRORS = (SQLAlchemyError, OSError)


@dataclass(frozen=True)
class CurrentSchema:
    streaks: list[Any]


@dataclass(frozen=True)
class LegacySchema:
    """Single-streak blob: ``doneDates``/``streak``/``lastDate`` at the top level."""

    done_dates: list[str] = field(default_factory=list)
    streak: Optional[int] = None
    last_date: Optional[str] = None


@dataclass(frozen=True)
class Unrecognized:
    reason: str


PersistedSchema = Union[CurrentSchema, LegacySchema, Unrecognized]


def classify_blob(raw: Optional[str]) -> Optional[PersistedSchema]:
    """Decide which historical shape ``raw`` is; None when nothing is stored."""

    if raw is None or raw == "":
        return None
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        return Unrecognized(f"invalid JSON: {exc}")
    if not isinstance(data, dict):
        return Unrecognized(f"expected an object, got {type(data).__name__}")

    streaks = data.get("streaks")
    if isinstance(streaks, list):
        return CurrentSchema(streaks=streaks)

    done_dates = data.get("doneDates")
    last_date = data.get("lastDate")
    if done_dates or last_date:
        if done_dates is not None and not (
            isinstance(done_dates, list) and all(isinstance(d, str) for d in done_dates)
        ):
            return Unrecognized("legacy doneDates is not a list of strings")
        if last_date is not None and not isinstance(last_date, str):
            return Unrecognized("legacy lastDate is not a string")
        streak = data.get("streak")
        if isinstance(streak, bool) or not isinstance(streak, int) or streak < 0:
            streak = None
        return LegacySchema(done_dates=list(done_dates or []), streak=streak, last_date=last_date)

    return Unrecognized("no streaks, doneDates or lastDate field")


def migrate_legacy(legacy: LegacySchema, *, now: datetime | None = None) -> StreakRecord:
    """Turn a single-streak blob into the one record of a new collection."""

    done_dates = legacy.done_dates or ([legacy.last_date] if legacy.last_date else [])
    streak = legacy.streak or (1 if done_dates else 0)
    created = (now or datetime.now(timezone.utc)).isoformat()
    return StreakRecord(
        id=LEGACY_STREAK_ID,
        name=LEGACY_STREAK_NAME,
        done_dates=done_dates,
        streak=streak,
        created_at=created,
    )


def check_distinct_days(done_dates: list[str]) -> None:
    """Raise ``ValueError`` when two markers name the same calendar day."""

    seen = set()
    for marker in done_dates:
        day = parse_day(marker)
        if day is None:
            continue
        if day in seen:
            raise ValueError(f"Done dates repeat the day {day.isoformat()}")
        seen.add(day)


# A stored entry: a parsed record, or the raw JSON value of an entry that
# failed validation and is written back untouched.
Entry = Union[StreakRecord, Any]


def _entry_id(entry: Entry) -> Optional[str]:
    if isinstance(entry, StreakRecord):
        return entry.id
    if isinstance(entry, dict):
        return entry.get("id")
    return None


class BlobStreakRepository:
    """Streak repository over one key of a key/value store.

    No state is cached between calls: each operation reads the blob afresh.
    Storage failures are logged and reported as ``[]``, ``False`` or ``None``.
    Entries that fail validation are hidden from reads but kept in the blob
    by every mutation.
    """

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_STORAGE_KEY):
        self.store = store
        self.key = key

    # Reads
    def load(self) -> list[StreakRecord]:
        try:
            return self._read()
        except STORAGE_ERRORS as exc:
            logger.error("Error loading streak data: %s", exc, exc_info=True)
            return []

    def get_streak_by_id(self, streak_id: str) -> Optional[StreakRecord]:
        for record in self.load():
            if record.id == streak_id:
                return record
        return None

    # Writes
    def save(self, streaks: list[StreakRecord]) -> bool:
        return self._write(streaks)

    def add_streak(self, record: StreakRecord) -> bool:
        """Append ``record``; False on storage failure or when its id is taken.

        Raises:
            ValueError: the record's done dates repeat a calendar day
        """

        check_distinct_days(record.done_dates)
        try:
            entries = self._read_entries()
        except STORAGE_ERRORS as exc:
            logger.error("Error adding streak: %s", exc, exc_info=True)
            return False
        if any(_entry_id(entry) == record.id for entry in entries):
            logger.warning("Refusing to add duplicate streak id", extra={"streak_id": record.id})
            return False
        entries.append(record)
        return self._write(entries)

    def update_streak(self, streak_id: str, updates: Mapping[str, Any]) -> bool:
        """Shallow-merge ``updates`` (attribute names) onto the stored record.

        Mapping an optional field to ``UNSET`` or ``None`` removes it. Unknown
        or immutable field names, repeated done days, and values the record
        rejects raise ``ValueError`` before anything is written.
        """

        unknown = set(updates) - set(BLOB_FIELD_NAMES)
        if unknown:
            raise ValueError(f"Unknown streak fields: {', '.join(sorted(unknown))}")
        frozen = IMMUTABLE_FIELDS.intersection(updates)
        if frozen:
            raise ValueError(f"Streak fields cannot be changed: {', '.join(sorted(frozen))}")
        if "done_dates" in updates and isinstance(updates["done_dates"], list):
            check_distinct_days(updates["done_dates"])

        try:
            entries = self._read_entries()
        except STORAGE_ERRORS as exc:
            logger.error("Error updating streak: %s", exc, exc_info=True)
            return False

        for index, entry in enumerate(entries):
            if isinstance(entry, StreakRecord) and entry.id == streak_id:
                break
        else:
            return False

        merged = entry.model_dump()
        for name, value in updates.items():
            if value is UNSET or (value is None and name in OPTIONAL_FIELDS):
                merged[name] = None
            else:
                merged[name] = value
        entries[index] = StreakRecord.model_validate(merged)
        return self._write(entries)

    def delete_streak(self, streak_id: str) -> bool:
        try:
            entries = self._read_entries()
        except STORAGE_ERRORS as exc:
            logger.error("Error deleting streak: %s", exc, exc_info=True)
            return False
        remaining = [
            entry
            for entry in entries
            if not (isinstance(entry, StreakRecord) and entry.id == streak_id)
        ]
        if len(remaining) == len(entries):
            return True
        return self._write(remaining)

    def clear(self) -> bool:
        try:
            self.store.remove_item(self.key)
        except STORAGE_ERRORS as exc:
            logger.error("Error clearing streak data: %s", exc, exc_info=True)
            return False
        return True

    def storage_info(self) -> dict[str, str]:
        """Describe where the collection is kept (for settings/debug screens)."""

        return {
            "type": "local",
            "backend": type(self.store).__name__,
            "key": self.key,
            "location": getattr(self.store, "location", "local key/value store"),
        }

    # Internals
    def _write(self, entries: list[Entry]) -> bool:
        payload = json.dumps(
            {
                "streaks": [
                    entry.to_blob() if isinstance(entry, StreakRecord) else entry
                    for entry in entries
                ]
            },
            ensure_ascii=False,
        )
        try:
            self.store.set_item(self.key, payload)
        except STORAGE_ERRORS as exc:
            logger.error("Error saving streak data: %s", exc, exc_info=True)
            return False
        return True

    def _read(self) -> list[StreakRecord]:
        """Readable records only; storage errors propagate."""

        return [entry for entry in self._read_entries() if isinstance(entry, StreakRecord)]

    def _read_entries(self) -> list[Entry]:
        """Read and normalize the blob; storage errors propagate."""

        schema = classify_blob(self.store.get_item(self.key))
        if schema is None:
            return []

        if isinstance(schema, CurrentSchema):
            entries: list[Entry] = []
            for position, item in enumerate(schema.streaks):
                if not isinstance(item, dict):
                    logger.warning("Skipping non-object streak entry", extra={"position": position})
                    entries.append(item)
                    continue
                try:
                    entries.append(StreakRecord.from_blob(item))
                except ValidationError as exc:
                    logger.warning(
                        "Skipping malformed streak entry",
                        extra={"position": position, "errors": exc.error_count()},
                    )
                    entries.append(item)
            return entries

        if isinstance(schema, LegacySchema):
            record = migrate_legacy(schema)
            logger.info(
                "Migrated legacy single-streak data",
                extra={"done_days": len(record.done_dates)},
            )
            # Write-through so the migration runs once; a failed write retries next load.
            self._write([record])
            return [record]

        logger.warning("Ignoring unreadable streak data", extra={"reason": schema.reason})
        return []


__all__ = [
    "BlobStreakRepository",
    "CurrentSchema",
    "DEFAULT_STORAGE_KEY",
    "LEGACY_STREAK_ID",
    "LEGACY_STREAK_NAME",
    "LegacySchema",
    "PersistedSchema",
    "Unrecognized",
    "check_distinct_days",
    "classify_blob",
    "migrate_legacy",
]
