"""Model exports."""

from .settings import AppSetting
from .streak import Milestone, StreakRecord

__all__ = [
    "AppSetting",
    "Milestone",
    "StreakRecord",
]
