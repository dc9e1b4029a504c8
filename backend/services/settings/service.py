"""Cached access to settings with compiled-in prompt defaults."""

from collections.abc import Iterable

from shared.cache import Cache
from shared.config import config
from shared.logging_utils import setup_logging
from shared.models import SettingView

from .defaults import DEFAULT_PROMPTS
from .store import SettingsStore, load_seed_settings

logger = setup_logging("settings-service")

ALL_SETTINGS_KEY = "settings:all"


class SettingsService:
    """Serves settings from a short-lived snapshot of the whole table.

    Reads never raise: when the store is unreachable the last snapshot is
    served even if expired, and with no snapshot an empty list is returned so
    callers fall back to their defaults.
    """

    def __init__(
        self,
        store: SettingsStore | None = None,
        cache: Cache | None = None,
        defaults: dict[str, str] | None = None,
        ttl: int | None = None,
    ):
        self.store = store or SettingsStore()
        self.ttl = ttl if ttl is not None else config.get("settings_cache_ttl", 300)
        self.cache = cache or Cache(default_ttl=self.ttl)
        self.defaults = DEFAULT_PROMPTS if defaults is None else defaults

    async def get_all(self) -> list[SettingView]:
        cached = self.cache.get(ALL_SETTINGS_KEY)
        if cached is not None:
            return cached

        try:
            settings = await self.store.get_all()
        except Exception as e:
            logger.error(f"Failed to fetch settings from store: {e}")
            stale = self.cache.get_stale(ALL_SETTINGS_KEY)
            return stale if stale is not None else []

        self.cache.set(ALL_SETTINGS_KEY, settings, ttl=self.ttl)
        return settings

    async def get_by_category(self, category: str) -> list[SettingView]:
        return [s for s in await self.get_all() if s.category == category]

    async def get(self, key: str) -> str | None:
        for setting in await self.get_all():
            if setting.key == key:
                return setting.value
        return None

    async def get_or_default(self, key: str, default: str) -> str:
        value = await self.get(key)
        return default if value is None else value

    async def get_map(self, keys: Iterable[str]) -> dict[str, str]:
        """Project the requested keys that exist in the store."""
        wanted = set(keys)
        return {s.key: s.value for s in await self.get_all() if s.key in wanted}

    async def get_prompts(self, keys: Iterable[str]) -> dict[str, str]:
        """Like ``get_map`` but fills gaps from the compiled-in defaults."""
        keys = list(keys)
        found = await self.get_map(keys)
        prompts = {}
        for key in keys:
            value = found.get(key) or self.defaults.get(key)
            if value is not None:
                prompts[key] = value
        return prompts

    async def update(self, key: str, value: str) -> bool:
        """Write through to the store and drop the snapshot."""
        try:
            await self.store.set(key, value)
        except Exception as e:
            logger.error(f"Failed to update setting {key}: {e}")
            return False
        finally:
            self.invalidate()
        return True

    def invalidate(self) -> None:
        self.cache.invalidate(ALL_SETTINGS_KEY)

    async def seed_defaults(self) -> int:
        """Insert packaged prompt and tone texts that are not stored yet."""
        inserted = await self.store.seed(load_seed_settings())
        self.invalidate()
        return inserted
