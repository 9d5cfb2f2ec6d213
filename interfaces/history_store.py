# SearchHistoryStore port
from __future__ import annotations

import json
import logging
from typing import Any, List, Protocol, cast

from redis.asyncio import Redis

from config.constant import SEARCH_HISTORY_KEY
from search_core.search_history import SearchHistoryEntry

logger = logging.getLogger(__name__)


class SearchHistoryStore(Protocol):
    async def load(self) -> List[SearchHistoryEntry]: ...
    async def save(self, history: List[SearchHistoryEntry]) -> None: ...


class MemorySearchHistoryStore:
    """History kept for the lifetime of the process."""

    def __init__(self):
        self._history: List[SearchHistoryEntry] = []

    async def load(self) -> List[SearchHistoryEntry]:
        return list(self._history)

    async def save(self, history: List[SearchHistoryEntry]) -> None:
        self._history = list(history)


class RedisSearchHistoryStore:
    """Redis-backed history stored as one JSON list."""

    def __init__(self, client: Redis, *, key: str = SEARCH_HISTORY_KEY):
        self._client = client
        self._key = key

    async def load(self) -> List[SearchHistoryEntry]:
        raw = await self._client.get(self._key)
        if not raw:
            return []
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            payload = cast(List[Any], json.loads(raw))
        except (TypeError, json.JSONDecodeError):
            logger.warning("Discarding malformed search history at %s", self._key)
            return []
        return [SearchHistoryEntry.from_dict(item) for item in payload
                if isinstance(item, dict)]

    async def save(self, history: List[SearchHistoryEntry]) -> None:
        await self._client.set(
            self._key,
            json.dumps([e.to_dict() for e in history], ensure_ascii=False),
        )


__all__ = [
    "SearchHistoryStore",
    "MemorySearchHistoryStore",
    "RedisSearchHistoryStore",
]
