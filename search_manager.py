#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Search Manager - Centralised search orchestration for Archimap.

"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Set

from archimap_exceptions import BackendError, BackendUnavailableError, SearchError
from building.record import Building
from config.settings import SearchConfig
from filter_state import FilterState
from interfaces.history_store import MemorySearchHistoryStore, SearchHistoryStore
from interfaces.query_cache import MemoryQueryCache, QueryCache, make_cache_key
from search_core.debounce import LatestTaskSlot
from search_core.local_filter import filter_buildings, local_search
from search_core.search_history import (
    SearchHistoryEntry,
    popular_searches,
    record_filter_search,
    record_search,
)
from search_core.search_router import SearchRouter
from search_result import SearchPage


# ============================================================================
# SEARCH MANAGER
# ============================================================================

class SearchManager:
    """
    Orchestrates the full search lifecycle:
      • Check the per-query cache
      • Route to the backend (plain or geo) or the local engine
      • Fall back to the local engine when the backend is unreachable
      • Record search history
      • Track performance stats
    """

    def __init__(
        self,
        router: Optional[SearchRouter] = None,
        *,
        config: Optional[SearchConfig] = None,
        cache: Optional[QueryCache] = None,
        history_store: Optional[SearchHistoryStore] = None,
        local_buildings: Optional[Sequence[Building]] = None,
    ):
        """
        Args:
            router: backend router. None means local-only operation.
            config: engine settings; defaults to SearchConfig().
            cache: query cache; defaults to a process-local cache.
            history_store: search history persistence.
            local_buildings: pre-loaded collection for the local engine.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config = config or SearchConfig()
        self.router = router
        self.cache: QueryCache = cache if cache is not None else MemoryQueryCache()
        self.history_store: SearchHistoryStore = (
            history_store if history_store is not None else MemorySearchHistoryStore()
        )
        self.local_buildings: List[Building] = list(local_buildings or [])

        self._debounce = LatestTaskSlot(self.config.local_filter_debounce_s)
        self._prefetch_tasks: Set[asyncio.Task] = set()

        # Stats
        self.stats: Dict[str, Any] = {
            "strategies": {},     # per-strategy stats
            "total_queries": 0,
            "overall_total_ms": 0.0,
            "cached_queries": 0,
            "local_fallbacks": 0,
            "failed_queries": 0,
        }

    # =========================================================================
    # Main search pipeline
    # =========================================================================

    async def search(
        self,
        filters: FilterState,
        *,
        page: int = 1,
        page_size: Optional[int] = None,
        language: Optional[str] = None,
        use_backend: Optional[bool] = None,
        record_history: bool = True,
    ) -> SearchPage:
        """
        Main entry point.

        Raises:
            SearchError: the backend could not serve the query and no local
                collection is available to serve it instead.
        """
        start_time = time.time()
        page = max(page, 1)
        page_size = page_size or self.config.page_size
        language = language or self.config.language
        use_backend = self.config.use_backend if use_backend is None else use_backend
        use_backend = use_backend and self.router is not None

        cache_key = make_cache_key(filters, page, page_size, use_backend, language)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            self.stats["cached_queries"] += 1
            self._update_stats(cached.strategy, (time.time() - start_time) * 1000, True)
            if record_history:
                await self._record_text(filters)
            return replace(cached, buildings=list(cached.buildings), from_cache=True)

        try:
            result = await self._execute(filters, page, page_size, language, use_backend)
        except SearchError:
            self.stats["failed_queries"] += 1
            self._update_stats("failed", (time.time() - start_time) * 1000, False)
            raise

        await self.cache.set(cache_key, replace(result, buildings=list(result.buildings)),
                             self.config.query_cache_ttl_seconds)
        if record_history:
            await self._record_text(filters)

        elapsed_ms = (time.time() - start_time) * 1000
        self._update_stats(result.strategy, elapsed_ms, True)
        self.logger.info(
            "Search page=%d strategy=%s total=%d returned=%d in %.1fms",
            page, result.strategy, result.total, len(result.buildings), elapsed_ms)
        return result

    async def _execute(self, filters: FilterState, page: int, page_size: int,
                       language: str, use_backend: bool) -> SearchPage:
        if not use_backend:
            return local_search(self.local_buildings, filters, language=language,
                                page=page, page_size=page_size)
        try:
            return await self.router.execute(
                filters, language=language, page=page, page_size=page_size)
        except BackendUnavailableError as exc:
            if self.config.serve_local_on_failure and self.local_buildings:
                self.logger.warning(
                    "Backend unreachable, serving local results: %s", exc)
                self.stats["local_fallbacks"] += 1
                return local_search(self.local_buildings, filters, language=language,
                                    page=page, page_size=page_size)
            raise SearchError(f"Search backend unreachable: {exc}") from exc
        except BackendError as exc:
            raise SearchError(f"Search failed: {exc}") from exc

    # =========================================================================
    # Prefetch / debounced local filtering
    # =========================================================================

    def prefetch(self, filters: FilterState, *, page: int,
                 page_size: Optional[int] = None,
                 language: Optional[str] = None) -> asyncio.Task:
        """
        Warm the cache for another page in the background. The task only
        writes to the cache: no history, no stats, no returned state.
        """
        page_size = page_size or self.config.page_size
        language = language or self.config.language
        use_backend = self.config.use_backend and self.router is not None

        async def _warm() -> None:
            key = make_cache_key(filters, page, page_size, use_backend, language)
            if await self.cache.get(key) is not None:
                return
            try:
                result = await self._execute(filters, page, page_size, language, use_backend)
            except SearchError as exc:
                self.logger.warning("Prefetch of page %d failed: %s", page, exc)
                return
            await self.cache.set(key, result, self.config.query_cache_ttl_seconds)

        task = asyncio.get_running_loop().create_task(_warm())
        self._prefetch_tasks.add(task)
        task.add_done_callback(self._prefetch_tasks.discard)
        return task

    def filter_local_debounced(self, filters: FilterState, *,
                               language: Optional[str] = None) -> asyncio.Task:
        """
        Re-filter the local collection after the debounce delay. A newer call
        cancels the pending one, so awaiting a superseded task raises
        ``asyncio.CancelledError``.
        """
        language = language or self.config.language
        snapshot = list(self.local_buildings)
        return self._debounce.submit(
            lambda: filter_buildings(snapshot, filters, language))

    # =========================================================================
    # History
    # =========================================================================

    async def _record_text(self, filters: FilterState) -> None:
        if not filters.text:
            return
        history = await self.history_store.load()
        await self.history_store.save(record_search(history, filters.text))

    async def record_filter_search(self, query: str, kind: str,
                                   fragment: Optional[Dict[str, Any]] = None) -> None:
        """Record an architect or prefecture search with its replay fragment."""
        history = await self.history_store.load()
        await self.history_store.save(
            record_filter_search(history, query, kind, fragment))

    async def get_history(self) -> List[SearchHistoryEntry]:
        return await self.history_store.load()

    async def get_popular_searches(self, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        history = await self.history_store.load()
        return popular_searches(history) if limit is None else popular_searches(history, limit)

    # =========================================================================
    # Stats helpers
    # =========================================================================

    def _update_stats(self, strategy: str, elapsed_ms: float, success: bool):
        """Update per-strategy telemetry."""
        self.stats["total_queries"] += 1
        self.stats["overall_total_ms"] += elapsed_ms

        sstats = self.stats["strategies"].setdefault(strategy, {
            "count": 0,
            "total_ms": 0.0,
            "min_ms": float("inf"),
            "max_ms": 0.0,
            "successes": 0,
            "avg_ms": 0.0,
            "success_rate": 0.0,
        })
        sstats["count"] += 1
        sstats["total_ms"] += elapsed_ms
        sstats["min_ms"] = min(sstats["min_ms"], elapsed_ms)
        sstats["max_ms"] = max(sstats["max_ms"], elapsed_ms)
        if success:
            sstats["successes"] += 1
        sstats["avg_ms"] = sstats["total_ms"] / sstats["count"]
        sstats["success_rate"] = sstats["successes"] / sstats["count"]

    def get_statistics(self) -> Dict[str, Any]:
        total = self.stats["total_queries"]
        stats = dict(self.stats)
        stats["avg_ms"] = self.stats["overall_total_ms"] / total if total > 0 else 0.0
        return stats

    async def clear_cache(self) -> None:
        await self.cache.clear()


__all__ = [
    "SearchManager",
]
