"""
Session-scoped cache for query results.

One ``QueryCache`` is created per client session (or per server-side render)
and passed explicitly to whatever needs it; there is no module-level instance.
Entries go stale after ``stale_time`` seconds or when invalidated, and the
next ``fetch`` for a stale key calls the fetcher again.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]

DEFAULT_STALE_TIME = 30.0


def query_key(*parts: Hashable, params: Optional[Dict[str, Any]] = None) -> QueryKey:
    """Build a cache key; ``params`` is folded in as sorted pairs."""
    if params is None:
        return tuple(parts)
    return (*parts, tuple(sorted(params.items())))


@dataclass
class CacheEntry:
    data: Any
    updated_at: float
    invalidated: bool = False


class QueryCache:
    """Keyed store of fetched data with staleness, prefix invalidation and hydration."""

    def __init__(self, stale_time: float = DEFAULT_STALE_TIME, clock: Callable[[], float] = time.monotonic):
        self.stale_time = stale_time
        self._clock = clock
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set(self, key: QueryKey, data: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=data, updated_at=self._clock())

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.invalidated:
            return True
        return self._clock() - entry.updated_at >= self.stale_time

    def fetch(self, key: QueryKey, fetcher: Callable[[], Any]) -> Any:
        """Return fresh cached data for ``key`` or call ``fetcher`` and cache its result."""
        with self._lock:
            if not self.is_stale(key):
                return self._entries[key].data

        logger.debug("Cache miss for %s; fetching", key)
        data = fetcher()
        self.set(key, data)
        return data

    def _matching(self, prefix: QueryKey) -> Iterator[Tuple[QueryKey, CacheEntry]]:
        for key, entry in self._entries.items():
            if key[: len(prefix)] == prefix:
                yield key, entry

    def invalidate(self, prefix: QueryKey) -> List[QueryKey]:
        """Mark every entry whose key starts with ``prefix`` stale; returns the keys touched."""
        with self._lock:
            touched = []
            for key, entry in self._matching(prefix):
                entry.invalidated = True
                touched.append(key)
        if touched:
            logger.debug("Invalidated %d cache entries under %s", len(touched), prefix)
        return touched

    def remove(self, prefix: QueryKey) -> None:
        with self._lock:
            for key in [key for key, _ in self._matching(prefix)]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def dehydrate(self) -> Dict[str, Any]:
        """
        Export fresh entries for transfer to another cache (server prefetch -> client).

        Keys are stored as lists so the result round-trips through JSON when
        key parts are JSON scalars.
        """
        with self._lock:
            queries = [
                {"key": _key_to_json(key), "data": entry.data}
                for key, entry in self._entries.items()
                if not entry.invalidated
            ]
        return {"queries": queries}

    def hydrate(self, state: Dict[str, Any]) -> int:
        """Load dehydrated entries, stamping them as fetched now. Returns the count."""
        queries = state.get("queries", [])
        for query in queries:
            self.set(_key_from_json(query["key"]), query["data"])
        return len(queries)


def _key_to_json(key: Any) -> Any:
    if isinstance(key, tuple):
        return [_key_to_json(part) for part in key]
    return key


def _key_from_json(key: Any) -> Any:
    if isinstance(key, list):
        return tuple(_key_from_json(part) for part in key)
    return key
