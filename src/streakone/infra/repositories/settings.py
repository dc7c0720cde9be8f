"""Key/value slots backed by the ``app_setting`` table."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.settings import AppSetting


class SQLModelSettingsRepository:
    """SQLModel-based key/value store.

    Errors from the database propagate; callers decide how to degrade.
    """

    def __init__(self, session_factory: Callable[[], Session], location: str = "local database"):
        self.session_factory = session_factory
        self.location = location

    def get(self, key: str) -> Optional[AppSetting]:
        with self.session_factory() as session:
            setting = session.exec(select(AppSetting).where(AppSetting.key == key)).first()
            if setting:
                session.expunge(setting)
            return setting

    def get_item(self, key: str) -> Optional[str]:
        setting = self.get(key)
        return setting.value if setting else None

    def set_item(self, key: str, value: str, description: str | None = None) -> None:
        with self.session_factory() as session:
            setting = session.exec(select(AppSetting).where(AppSetting.key == key)).first()
            if setting:
                setting.value = value
                setting.updated_at = datetime.now(timezone.utc)
                if description is not None:
                    setting.description = description
            else:
                setting = AppSetting(key=key, value=value, description=description)
            session.add(setting)
            session.commit()

    def remove_item(self, key: str) -> None:
        with self.session_factory() as session:
            setting = session.exec(select(AppSetting).where(AppSetting.key == key)).first()
            if setting:
                session.delete(setting)
                session.commit()


__all__ = ["SQLModelSettingsRepository"]
