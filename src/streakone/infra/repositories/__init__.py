"""Concrete repository implementations."""

from .settings import SQLModelSettingsRepository
from .streak import BlobStreakRepository

__all__ = [
    "BlobStreakRepository",
    "SQLModelSettingsRepository",
]
