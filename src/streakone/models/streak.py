"""Streak records and the shapes they are persisted in."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from sqlmodel import Field, SQLModel

# Python attribute -> key used inside the persisted blob.
BLOB_FIELD_NAMES: dict[str, str] = {
    "id": "id",
    "name": "name",
    "done_dates": "doneDates",
    "streak": "streak",
    "created_at": "createdAt",
    "color": "color",
    "target_days": "targetDays",
    "notification_enabled": "notificationEnabled",
    "notification_time": "notificationTime",
}
_ATTRIBUTE_NAMES = {blob: attr for attr, blob in BLOB_FIELD_NAMES.items()}

class _Unset(Enum):
    UNSET = "UNSET"


# Marks an optional field for removal in a partial update.
UNSET = _Unset.UNSET

OPTIONAL_FIELDS = frozenset({"color", "target_days", "notification_enabled", "notification_time"})
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class StreakRecord(SQLModel):
    """One tracked habit and the calendar days it was completed on."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    done_dates: list[str] = Field(default_factory=list)
    streak: int = Field(default=0, ge=0)
    created_at: str
    color: Optional[str] = None
    target_days: Optional[int] = Field(default=None, gt=0)
    notification_enabled: Optional[bool] = None
    notification_time: Optional[str] = None

    @classmethod
    def from_blob(cls, data: dict[str, Any]) -> "StreakRecord":
        """Build a record from its persisted mapping (camelCase keys)."""

        values = {_ATTRIBUTE_NAMES[key]: value for key, value in data.items() if key in _ATTRIBUTE_NAMES}
        return cls.model_validate(values)

    def to_blob(self) -> dict[str, Any]:
        """Return the persisted mapping; absent optional fields are omitted."""

        blob: dict[str, Any] = {}
        for attr, key in BLOB_FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is None and attr in OPTIONAL_FIELDS:
                continue
            blob[key] = list(value) if attr == "done_dates" else value
        return blob


@dataclass(frozen=True)
class Milestone:
    """A streak length worth celebrating."""

    days: int
    name: str
    emoji: str
    color: str


__all__ = [
    "BLOB_FIELD_NAMES",
    "IMMUTABLE_FIELDS",
    "Milestone",
    "OPTIONAL_FIELDS",
    "StreakRecord",
    "UNSET",
]
