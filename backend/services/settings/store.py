"""SQLAlchemy-backed settings store."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database import async_session
from models.database import SystemSetting
from models.enums import SettingCategory
from shared.logging_utils import setup_logging
from shared.models import SettingView

logger = setup_logging("settings-store")

SEED_FILE = Path(__file__).with_name("seed_settings.yaml")


def load_seed_settings(path: Path | str = SEED_FILE) -> list[dict[str, Any]]:
    """Load the packaged seed settings file."""
    with open(path, encoding="utf-8") as stream:
        data = yaml.safe_load(stream) or {}
    return list(data.get("settings", []))


class SettingsStore:
    """Reads and writes ``system_settings`` rows, one session per call."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session):
        self._session_factory = session_factory

    async def get_all(self) -> list[SettingView]:
        async with self._session_factory() as session:
            result = await session.execute(select(SystemSetting).order_by(SystemSetting.key))
            return [SettingView.model_validate(row) for row in result.scalars().all()]

    async def set(
        self,
        key: str,
        value: str,
        description: str | None = None,
        category: str = SettingCategory.GENERAL.value,
    ) -> None:
        """Update ``key`` in place, inserting it when it does not exist yet."""
        async with self._session_factory() as session:
            result = await session.execute(
                update(SystemSetting).where(SystemSetting.key == key).values(value=value)
            )
            if result.rowcount == 0:
                session.add(
                    SystemSetting(key=key, value=value, description=description, category=category)
                )
            await session.commit()

    async def seed(self, entries: list[dict[str, Any]]) -> int:
        """Insert entries whose key is missing; returns the number inserted."""
        async with self._session_factory() as session:
            result = await session.execute(select(SystemSetting.key))
            existing = set(result.scalars().all())
            inserted = 0
            for entry in entries:
                if entry["key"] in existing:
                    continue
                session.add(
                    SystemSetting(
                        key=entry["key"],
                        value=entry["value"],
                        description=entry.get("description"),
                        category=entry.get("category", SettingCategory.GENERAL.value),
                    )
                )
                existing.add(entry["key"])
                inserted += 1
            await session.commit()
        if inserted:
            logger.info(f"Seeded {inserted} system settings")
        return inserted
