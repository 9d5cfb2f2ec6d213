# QueryCache port
from __future__ import annotations

import hashlib
import json
import logging
import time
from collections import OrderedDict
from typing import Optional, Protocol, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from config.constant import QUERY_CACHE_MAX_ENTRIES, QUERY_CACHE_PREFIX
from filter_state import FilterState
from search_result import SearchPage

logger = logging.getLogger(__name__)


def make_cache_key(filters: FilterState, page: int, page_size: int,
                   use_backend: bool, language: str) -> str:
    """Stable digest of (filters, page, page size, backend flag, language)."""
    payload = {
        "filters": filters.to_dict(),
        "page": page,
        "page_size": page_size,
        "use_backend": use_backend,
        "language": language,
    }
    raw = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class QueryCache(Protocol):
    async def get(self, key: str) -> Optional[SearchPage]: ...
    async def set(self, key: str, page: SearchPage, ttl_seconds: int) -> None: ...
    async def clear(self) -> None: ...


class MemoryQueryCache:
    """
    Process-local cache with monotonic-clock expiry.

    Expired entries are dropped on every write, and the least recently used
    entry is evicted once ``max_entries`` is reached.
    """

    def __init__(self, clock=time.monotonic, max_entries: int = QUERY_CACHE_MAX_ENTRIES):
        self._clock = clock
        self._max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[float, SearchPage]]" = OrderedDict()

    async def get(self, key: str) -> Optional[SearchPage]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, page = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return page

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    async def set(self, key: str, page: SearchPage, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._purge_expired()
        self._entries[key] = (self._clock() + ttl_seconds, page)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisQueryCache:
    """Redis-backed QueryCache using JSON-encoded pages."""

    def __init__(self, client: Redis, *, prefix: str = QUERY_CACHE_PREFIX):
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[SearchPage]:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as exc:
            logger.warning("Query cache read failed: %s", exc)
            return None
        if not raw:
            return None
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            return SearchPage.from_dict(json.loads(raw))
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Discarding malformed cache entry %s: %s", key, exc)
            return None

    async def set(self, key: str, page: SearchPage, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            await self._client.set(
                self._key(key),
                json.dumps(page.to_dict(), ensure_ascii=False),
                ex=int(ttl_seconds),
            )
        except RedisError as exc:
            logger.warning("Query cache write failed: %s", exc)

    async def clear(self) -> None:
        async for key in self._client.scan_iter(match=f"{self._prefix}*"):
            await self._client.delete(key)


class NoOpQueryCache:
    """Cache that never stores anything."""

    async def get(self, key: str) -> Optional[SearchPage]:
        # pylint: disable=unused-argument
        return None

    async def set(self, key: str, page: SearchPage, ttl_seconds: int) -> None:
        # pylint: disable=unused-argument
        return None

    async def clear(self) -> None:
        return None


__all__ = [
    "make_cache_key",
    "QueryCache",
    "MemoryQueryCache",
    "RedisQueryCache",
    "NoOpQueryCache",
]
