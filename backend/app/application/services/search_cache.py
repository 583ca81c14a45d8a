"""In-process search result cache with lazy TTL expiry."""

import hashlib
import json
import logging
import time
from collections.abc import Callable
from typing import Any

from app.domain.entities import CacheEntry, SearchPage

logger = logging.getLogger(__name__)


def build_cache_key(fingerprint: dict[str, Any]) -> str:
    """Stable digest of every request-shaping input.

    Keys are sorted so logically identical requests hash identically
    regardless of the order the caller supplied them in.
    """
    canonical = json.dumps(fingerprint, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SearchResultCache:
    """Maps request fingerprints to computed pages.

    Entries expire ``ttl_seconds`` after creation. Expiry is checked on
    lookup, and expired entries are swept after every write. There is no
    locking: concurrent writers for one key store equivalent data and the
    last write wins.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            self._entries.pop(key, None)
            logger.debug("Search cache entry expired: %s", key[:12])
            return None
        return entry

    def put(
        self,
        key: str,
        page: SearchPage,
        aggregations: dict[str, dict[str, int]] | None = None,
    ) -> CacheEntry:
        entry = CacheEntry(key=key, page=page, aggregations=aggregations, created_at=self._clock())
        self._entries[key] = entry
        self._sweep()
        return entry

    def clear(self) -> int:
        """Drop every entry. Returns how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        logger.info("Search cache cleared (%d entries)", removed)
        return removed

    def _sweep(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= self._ttl
