# src/allocator/season_cache.py
"""
Demand-driven season cache.

Season data (submissions and items) is refreshed only while a season receives
requests: entries expire `ttl_seconds` after they were loaded, and a season
with no request for longer than the TTL goes inactive and is not refreshed
until the next request. Instances are injected into callers; the allocation
engine never touches the cache.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .empirical_params import SEASON_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: Any = None
    last_refresh: Optional[float] = None
    last_request: float = 0.0
    request_count: int = 0


@dataclass
class CacheStats:
    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    invalidations: int = 0


class SeasonCache:
    """TTL + activity cache of per-season data."""

    def __init__(self, ttl_seconds: float = SEASON_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.stats = CacheStats()
        logger.info(f"SeasonCache initialized with {ttl_seconds}s TTL")

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return entry.last_refresh is None or now - entry.last_refresh > self.ttl_seconds

    def is_active(self, season) -> bool:
        entry = self._entries.get(str(season))
        return entry is not None and self.clock() - entry.last_request <= self.ttl_seconds

    def mark_active(self, season) -> None:
        """Record a request for the season."""
        key = str(season)
        now = self.clock()
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry()
            logger.debug(f"Season {key} created and marked active")
        elif now - entry.last_request > self.ttl_seconds:
            logger.debug(f"Season {key} reactivated after {now - entry.last_request:.0f}s without requests")
        entry.last_request = now
        entry.request_count += 1
        self.stats.total_requests += 1

    def needs_refresh(self, season) -> bool:
        """True when there is no data, or the data expired while the season is active."""
        entry = self._entries.get(str(season))
        if entry is None or entry.data is None:
            return True
        return self._is_expired(entry, self.clock()) and self.is_active(season)

    def get(self, season) -> Optional[Any]:
        """Cached data, or None when missing or expired."""
        entry = self._entries.get(str(season))
        if entry is None or entry.data is None or self._is_expired(entry, self.clock()):
            self.stats.cache_misses += 1
            return None
        self.stats.cache_hits += 1
        return entry.data

    def set(self, season, data: Any) -> None:
        key = str(season)
        entry = self._entries.setdefault(key, CacheEntry(last_request=self.clock()))
        entry.data = data
        entry.last_refresh = self.clock()

    def invalidate(self, season=None) -> None:
        """Drop cached data for one season, or for every season when None."""
        keys = list(self._entries) if season is None else [str(season)]
        for key in keys:
            entry = self._entries.get(key)
            if entry is not None:
                entry.data = None
                entry.last_refresh = None
        self.stats.invalidations += 1
        logger.debug(f"Invalidated cache for {'all seasons' if season is None else season}")

    def get_or_load(self, season, loader: Callable[[Any], Any]) -> Any:
        """Mark the season active and return cached data, loading it on a miss."""
        self.mark_active(season)
        data = self.get(season)
        if data is None:
            data = loader(season)
            self.set(season, data)
        return data
