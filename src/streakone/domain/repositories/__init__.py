"""Repository protocol definitions for domain layer."""

from .key_value import KeyValueStore
from .streak import StreakRepository

__all__ = [
    "KeyValueStore",
    "StreakRepository",
]
