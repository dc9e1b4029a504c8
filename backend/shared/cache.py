"""
Caching utilities for the application.
"""

from datetime import datetime, timedelta
from typing import Any


class Cache:
    """In-memory cache with TTL (Time To Live) support.

    Expired entries stay in place until they are overwritten, invalidated or
    swept by ``cleanup_expired`` so callers can still fall back to them with
    ``get_stale`` when the backing source is unavailable.
    """

    def __init__(self, default_ttl: int = 3600) -> None:
        """Initialize empty cache."""
        self.default_ttl = default_ttl
        self._cache: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> Any | None:
        """
        Get value from cache by key.

        Args:
            key: Cache key

        Returns:
            Cached value if exists and not expired, None otherwise
        """
        item = self._cache.get(key)
        if item is not None and datetime.now() < item["expires"]:
            return item["value"]
        return None

    def get_stale(self, key: str) -> Any | None:
        """Return the last value stored under ``key`` regardless of expiry."""
        item = self._cache.get(key)
        return item["value"] if item is not None else None

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Set value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: the cache's default_ttl)
        """
        ttl = self.default_ttl if ttl is None else ttl
        self._cache[key] = {"value": value, "expires": datetime.now() + timedelta(seconds=ttl)}

    def delete(self, key: str) -> None:
        """
        Delete value from cache.

        Args:
            key: Cache key to delete
        """
        self._cache.pop(key, None)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or everything when no key is given."""
        if key is None:
            self.clear()
        else:
            self.delete(key)

    def clear(self) -> None:
        """Clear all cached values."""
        self._cache.clear()

    def size(self) -> int:
        """
        Get current cache size.

        Returns:
            Number of items in cache
        """
        return len(self._cache)

    def cleanup_expired(self) -> int:
        """
        Remove expired items from cache.

        Returns:
            Number of expired items removed
        """
        now = datetime.now()
        expired_keys = [key for key, item in self._cache.items() if now >= item["expires"]]

        for key in expired_keys:
            del self._cache[key]

        return len(expired_keys)
