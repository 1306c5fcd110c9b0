"""In-memory response cache.

Entries are rendered responses keyed by cache key. An entry is never
overwritten or expired for the life of the process; there is no capacity
bound. Single-source and broadcast keys live in disjoint namespaces (see
``Query.cache_key``).
"""

from __future__ import annotations

import logging

from price_relay.core.models import CacheKey

logger = logging.getLogger(__name__)


class ResponseCache:
    """Insert-only mapping of cache key → rendered response."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, str] = {}

    def get(self, key: CacheKey) -> str | None:
        return self._entries.get(key)

    def put(self, key: CacheKey, payload: str) -> str:
        """Store ``payload`` unless ``key`` already has one. Returns the stored value."""
        existing = self._entries.setdefault(key, payload)
        if existing is not payload:
            logger.debug("Cache already holds %r, keeping the first payload", key)
        return existing

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
