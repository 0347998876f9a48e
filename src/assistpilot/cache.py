"""Summary: Expiring in-memory cache for weather and news lookups.

Importance: Avoids redundant external calls for recently fetched data.
Alternatives: Use Redis with native key expiry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Iterable

from assistpilot.models import Clock

logger = logging.getLogger(__name__)

CACHE_DOMAINS = ("weather", "news")


@dataclass(frozen=True)
class CacheConfig:
    """Summary: TTL and capacity settings for the expiring cache.

    Importance: Keeps freshness windows configurable per deployment.
    Alternatives: Hardcode TTLs inside the cache class.
    """

    weather_ttl: timedelta = timedelta(minutes=10)
    news_ttl: timedelta = timedelta(minutes=15)
    max_items: int = 50
    trim_margin: int = 10

    def ttl_for(self, domain: str) -> timedelta:
        """Summary: Return the TTL for a cache domain.

        Importance: Weather goes stale faster than headlines.
        Alternatives: Use one TTL for every domain.
        """

        if domain == "weather":
            return self.weather_ttl
        if domain == "news":
            return self.news_ttl
        raise ValueError(f"Unknown cache domain: {domain}")


@dataclass(frozen=True)
class CacheEntry:
    """Summary: A cached lookup result with its validity window.

    Importance: Carries the timestamps needed for lazy expiry and eviction.
    Alternatives: Store (value, expiry) tuples.
    """

    key: str
    value: Any
    created_at: datetime
    expires_at: datetime


class ExpiringCache:
    """Summary: Bounded key-value store with per-domain TTLs.

    Importance: Serves repeated weather and news requests without network calls.
    Alternatives: Use functools.lru_cache with a time-bucketed key.
    """

    def __init__(self, config: CacheConfig | None = None, clock: Clock = datetime.now) -> None:
        """Summary: Initialize an empty cache.

        Importance: The clock is injectable so expiry can be tested deterministically.
        Alternatives: Read the wall clock directly.
        """

        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def config(self) -> CacheConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, domain: str, identifier: str, value: Any) -> None:
        """Summary: Store a value under a normalized key.

        Importance: Records fresh lookups for reuse within the TTL window.
        Alternatives: Let callers build and manage keys themselves.
        """

        key = make_key(domain, identifier)
        now = self._clock()
        if key not in self._entries and len(self._entries) >= self._config.max_items:
            self.cleanup()
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + self._config.ttl_for(domain),
        )

    def get(self, domain: str, identifier: str) -> Any | None:
        """Summary: Return a live cached value or None.

        Importance: Stale entries are dropped lazily on read.
        Alternatives: Run a background sweeper thread.
        """

        entry = self._live_entry(make_key(domain, identifier))
        return entry.value if entry else None

    def has(self, domain: str, identifier: str) -> bool:
        """Summary: Check whether a live entry exists.

        Importance: Lets callers decide on refresh without reading the value.
        Alternatives: Compare get() against None.
        """

        return self._live_entry(make_key(domain, identifier)) is not None

    def remove(self, domain: str, identifier: str) -> bool:
        """Summary: Delete an entry.

        Importance: Allows targeted invalidation.
        Alternatives: Wait for the TTL to elapse.
        """

        return self._entries.pop(make_key(domain, identifier), None) is not None

    def clear(self) -> None:
        """Summary: Drop every entry.

        Importance: Resets cached state for sign-out or tests.
        Alternatives: Recreate the cache object.
        """

        self._entries.clear()

    def force_refresh(self, domain: str, identifier: str) -> None:
        """Summary: Guarantee the next get() for a key misses.

        Importance: Backs explicit user refresh requests.
        Alternatives: Pass a bypass flag through every lookup.
        """

        self.remove(domain, identifier)

    def cleanup(self) -> None:
        """Summary: Purge expired entries, then trim the oldest in bulk.

        Importance: Keeps the store bounded while amortizing eviction work.
        Alternatives: Evict a single least-recent entry per insert.
        """

        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        if len(self._entries) < self._config.max_items:
            if expired:
                logger.debug("Cache cleanup removed %s expired entries.", len(expired))
            return
        target = max(0, self._config.max_items - self._config.trim_margin)
        oldest_first = sorted(self._entries.values(), key=lambda entry: entry.created_at)
        evicted = oldest_first[: len(self._entries) - target]
        for entry in evicted:
            del self._entries[entry.key]
        logger.info(
            "Cache cleanup removed %s expired and %s oldest entries.", len(expired), len(evicted)
        )

    def get_cache_age(self, domain: str, identifier: str) -> timedelta | None:
        """Summary: Return how long ago a live entry was stored.

        Importance: Powers "last updated" hints in clients.
        Alternatives: Return the creation timestamp only.
        """

        entry = self._peek_live(make_key(domain, identifier))
        if entry is None:
            return None
        return self._clock() - entry.created_at

    def get_time_until_expiration(self, domain: str, identifier: str) -> timedelta | None:
        """Summary: Return the remaining lifetime of an entry.

        Importance: Lets clients schedule their own refreshes.
        Alternatives: Expose expires_at directly.
        """

        entry = self._entries.get(make_key(domain, identifier))
        if entry is None:
            return None
        remaining = entry.expires_at - self._clock()
        return remaining if remaining > timedelta(0) else None

    def stats(self) -> dict[str, Any]:
        """Summary: Summarize cache contents.

        Importance: Supports diagnostics over the API and CLI.
        Alternatives: Log counts periodically.
        """

        now = self._clock()
        entries = list(self._entries.values())
        created = [entry.created_at for entry in entries]
        return {
            "total_items": len(entries),
            "weather_items": sum(1 for entry in entries if entry.key.startswith("weather:")),
            "news_items": sum(1 for entry in entries if entry.key.startswith("news:")),
            "expired_items": sum(1 for entry in entries if now > entry.expires_at),
            "oldest_item": min(created).isoformat() if created else None,
            "newest_item": max(created).isoformat() if created else None,
        }

    def preload(self, domain: str, items: Iterable[tuple[str, Any]]) -> None:
        """Summary: Seed the cache with known values.

        Importance: Supports warm starts and demos.
        Alternatives: Fetch every value on first use.
        """

        for identifier, value in items:
            self.set(domain, identifier, value)

    def cached_identifiers(self, domain: str) -> list[str]:
        """Summary: List identifiers stored for a domain.

        Importance: Helps clients show which places or topics are cached.
        Alternatives: Track identifiers in a separate registry.
        """

        prefix = f"{domain}:"
        return [key[len(prefix):] for key in self._entries if key.startswith(prefix)]

    def update_config(self, **changes: Any) -> CacheConfig:
        """Summary: Replace selected configuration values.

        Importance: Allows tuning TTLs at runtime.
        Alternatives: Rebuild the cache with a new config.
        """

        self._config = replace(self._config, **changes)
        return self._config

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _peek_live(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None or self._clock() > entry.expires_at:
            return None
        return entry


def make_key(domain: str, identifier: str) -> str:
    """Summary: Build a case-folded composite cache key.

    Importance: Makes "New York" and "new york" share one entry.
    Alternatives: Hash the identifier.
    """

    if domain not in CACHE_DOMAINS:
        raise ValueError(f"Unknown cache domain: {domain}")
    return f"{domain}:{identifier.strip().casefold()}"
