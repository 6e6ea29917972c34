# league_board/cache.py
"""
Two-tier TTL cache.

  - volatile tier: per-process dict, zero-latency repeat reads
  - durable tier: optional JsonFileStore, survives restarts and is shared
    between processes (last writer wins)

Every entry carries its own write time and TTL. TTLs are chosen by category,
not by callers, so freshness is tuned in one place (see AppConfig.cache_ttls).
Durable-tier failures never reach callers: they are logged and treated as a
miss, and the volatile tier keeps serving the session.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar, Union

from .durable_store import JsonFileStore
from .errors import DurableStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheCategory(str, Enum):
    STATS = "stats"
    GAMES = "games"
    SEASONS = "seasons"
    TOP_PLAYERS = "topPlayers"
    RATINGS = "ratings"
    PLAYERS = "players"
    DEFAULT = "default"


DEFAULT_TTLS: Dict[str, float] = {
    CacheCategory.STATS.value: 3 * 60,
    CacheCategory.GAMES.value: 5 * 60,
    CacheCategory.SEASONS.value: 30 * 60,
    CacheCategory.TOP_PLAYERS.value: 2 * 60,
    CacheCategory.RATINGS.value: 3 * 60,
    CacheCategory.PLAYERS.value: 10 * 60,
    CacheCategory.DEFAULT.value: 5 * 60,
}


@dataclass
class CacheEntry(Generic[T]):
    """A single cached value, when it was written and how long it stays fresh."""
    value: T
    written_at: float
    ttl: float

    def __post_init__(self) -> None:
        if not self.ttl > 0:
            raise ValueError(f"ttl must be > 0, got {self.ttl}")

    def is_expired(self, now: float) -> bool:
        return now - self.written_at > self.ttl

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "written_at": self.written_at, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CacheEntry":
        try:
            return cls(value=data["value"], written_at=float(data["written_at"]), ttl=float(data["ttl"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise DurableStoreError(f"malformed cache entry: {exc}") from exc


class TieredCache:
    """
    Volatile + durable key/value cache with per-entry TTL and substring invalidation.

    Build one per process and pass it to the services that need it.
    """

    def __init__(
        self,
        durable: Optional[JsonFileStore] = None,
        ttls: Optional[Mapping[str, float]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an empty volatile tier over an optional durable tier."""
        self._store: Dict[str, CacheEntry] = {}
        self._durable = durable
        self._ttls: Dict[str, float] = dict(DEFAULT_TTLS)
        if ttls:
            self._ttls.update({str(k): float(v) for k, v in ttls.items()})
        self._clock = clock

    def ttl_for(self, category: Union[CacheCategory, str]) -> float:
        """Return the TTL in seconds for a category name; unknown names get the default TTL."""
        name = category.value if isinstance(category, CacheCategory) else str(category)
        return self._ttls.get(name, self._ttls[CacheCategory.DEFAULT.value])

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value for key, or None when absent or expired.

        Checks the volatile tier first, then the durable tier. A durable hit is
        promoted into the volatile tier. Expired entries are evicted from the
        tier they were found in.
        """
        now = self._clock()

        entry = self._store.get(key)
        if entry is not None:
            if not entry.is_expired(now):
                logger.debug("cache hit (volatile) %s", key)
                return entry.value
            del self._store[key]

        entry = self._durable_read(key)
        if entry is not None:
            if not entry.is_expired(now):
                self._store[key] = entry
                logger.debug("cache hit (durable) %s", key)
                return entry.value
            self._durable_delete(key)

        logger.debug("cache miss %s", key)
        return None

    def set(
        self,
        key: str,
        value: Any,
        category: Union[CacheCategory, str] = CacheCategory.DEFAULT,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """
        Write value to both tiers stamped with the current time.

        ttl_seconds overrides the category TTL. None values are not cached.
        """
        if value is None:
            return
        ttl = float(ttl_seconds) if ttl_seconds is not None else self.ttl_for(category)
        entry = CacheEntry(value=value, written_at=self._clock(), ttl=ttl)
        self._store[key] = entry
        logger.debug("cache set %s (ttl %.1fs)", key, ttl)

        if self._durable is None:
            return
        try:
            self._durable.write(key, entry.to_dict())
        except DurableStoreError:
            logger.warning("durable cache write failed for %s; keeping volatile copy only", key, exc_info=True)

    def get_or_set(
        self,
        key: str,
        loader: Callable[[], T],
        category: Union[CacheCategory, str] = CacheCategory.DEFAULT,
        ttl_seconds: Optional[float] = None,
    ) -> T:
        """
        Retrieve a cached value if not expired, otherwise compute & store a new value.

        Args:
            key: Cache key.
            loader: Function that returns the value if the cache is stale/missing.
                If it raises, nothing is written.
            category: TTL category for a freshly loaded value.
            ttl_seconds: Explicit TTL override.

        Returns:
            The cached or newly loaded value.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = loader()
        self.set(key, value, category=category, ttl_seconds=ttl_seconds)
        return value

    def invalidate(self, key: str) -> None:
        """Remove key from both tiers."""
        self._store.pop(key, None)
        self._durable_delete(key)
        logger.debug("cache invalidate %s", key)

    def invalidate_pattern(self, substring: str) -> None:
        """Remove every key containing substring (plain substring match) from both tiers."""
        for key in [k for k in self._store if substring in k]:
            del self._store[key]

        if self._durable is not None:
            try:
                self._durable.delete_matching(substring)
            except DurableStoreError:
                logger.warning("durable cache pattern invalidation failed for %r", substring, exc_info=True)
        logger.debug("cache invalidate pattern %r", substring)

    def clear_all(self) -> None:
        """Clear all cached entries in both tiers."""
        self._store.clear()
        if self._durable is not None:
            try:
                self._durable.clear()
            except DurableStoreError:
                logger.warning("durable cache clear failed", exc_info=True)
        logger.debug("cache clear all")

    def _durable_read(self, key: str) -> Optional[CacheEntry]:
        if self._durable is None:
            return None
        try:
            raw = self._durable.read(key)
            return CacheEntry.from_dict(raw) if raw is not None else None
        except DurableStoreError:
            logger.warning("durable cache entry for %s is unreadable; treating as miss", key, exc_info=True)
            self._durable_delete(key)
            return None

    def _durable_delete(self, key: str) -> None:
        if self._durable is None:
            return
        try:
            self._durable.delete(key)
        except DurableStoreError:
            logger.warning("durable cache delete failed for %s", key, exc_info=True)
