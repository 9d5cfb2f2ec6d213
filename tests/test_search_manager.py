#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for SearchManager
"""

import asyncio

import pytest

from archimap_exceptions import BackendError, SearchError
from config.settings import SearchConfig
from conftest import all_tables, load_buildings
from filter_state import FilterState
from interfaces.building_store import InMemoryBuildingStore
from interfaces.query_cache import MemoryQueryCache, NoOpQueryCache, make_cache_key
from search_core.search_history import ARCHITECT
from search_core.search_router import SearchRouter
from search_manager import SearchManager
from search_result import SearchPage


class BrokenStore(InMemoryBuildingStore):
    """Reachable store whose selects fail with a bad response."""

    async def select(self, plan, **kwargs):
        raise BackendError("HTTP 500: internal error")


def make_manager(store=None, *, local=True, **config_overrides):
    store = store if store is not None else InMemoryBuildingStore(all_tables())
    config = SearchConfig(local_filter_debounce_s=0.01, **config_overrides)
    local_buildings = asyncio.run(load_buildings(InMemoryBuildingStore(all_tables()))) if local else None
    manager = SearchManager(SearchRouter(store), config=config,
                            local_buildings=local_buildings)
    return manager, store


class TestSearchPipeline:
    """Cache, routing and fallback."""

    def test_backend_search(self):
        manager, _ = make_manager()
        page = asyncio.run(manager.search(FilterState(), page_size=2))
        assert page.strategy == "plain"
        assert [b.building_id for b in page.buildings] == [6, 3]
        assert not page.from_cache

    def test_repeat_search_is_served_from_cache(self):
        manager, store = make_manager()

        async def scenario():
            first = await manager.search(FilterState(query="美術館"))
            calls = len(store.calls)
            second = await manager.search(FilterState(query="美術館"))
            return first, second, calls

        first, second, calls = asyncio.run(scenario())
        assert second.from_cache
        assert not first.from_cache
        assert [b.building_id for b in second.buildings] == [b.building_id for b in first.buildings]
        assert len(store.calls) == calls
        assert manager.get_statistics()["cached_queries"] == 1

    def test_callers_cannot_change_cached_pages(self):
        manager, _ = make_manager()

        async def scenario():
            first = await manager.search(FilterState())
            first.buildings.clear()
            second = await manager.search(FilterState())
            second.buildings.clear()
            return await manager.search(FilterState())

        third = asyncio.run(scenario())
        assert third.from_cache
        assert [b.building_id for b in third.buildings] == [6, 3, 2, 1]

    def test_cache_key_covers_page_and_language(self):
        filters = FilterState(query="x")
        keys = {
            make_cache_key(filters, 1, 10, True, "ja"),
            make_cache_key(filters, 2, 10, True, "ja"),
            make_cache_key(filters, 1, 10, True, "en"),
            make_cache_key(filters, 1, 10, False, "ja"),
            make_cache_key(filters, 1, 20, True, "ja"),
        }
        assert len(keys) == 5
        assert make_cache_key(FilterState(prefectures=["b", "a"]), 1, 10, True, "ja") == \
            make_cache_key(FilterState(prefectures=["a", "b"]), 1, 10, True, "ja")

    def test_zero_ttl_disables_cache(self):
        manager, _ = make_manager(query_cache_ttl_seconds=0)

        async def scenario():
            await manager.search(FilterState())
            return await manager.search(FilterState())

        assert not asyncio.run(scenario()).from_cache

    def test_local_mode(self):
        manager, store = make_manager(use_backend=False)
        page = asyncio.run(manager.search(FilterState(prefectures=["東京都"])))
        assert page.strategy == "local"
        assert [b.building_id for b in page.buildings] == [6, 2, 1]
        assert store.calls == []

    def test_local_only_without_router(self):
        buildings = asyncio.run(load_buildings(InMemoryBuildingStore(all_tables())))
        manager = SearchManager(local_buildings=buildings)
        page = asyncio.run(manager.search(FilterState(has_videos=True)))
        assert page.strategy == "local"
        assert [b.building_id for b in page.buildings] == [2]

    def test_outage_serves_local_results(self):
        manager, store = make_manager()
        store.available = False
        page = asyncio.run(manager.search(FilterState(query="美術館")))
        assert page.strategy == "local"
        assert [b.building_id for b in page.buildings] == [3, 2]
        assert manager.get_statistics()["local_fallbacks"] == 1

    def test_outage_without_local_collection_fails(self):
        manager, store = make_manager(local=False)
        store.available = False
        with pytest.raises(SearchError):
            asyncio.run(manager.search(FilterState()))
        assert manager.get_statistics()["failed_queries"] == 1

    def test_outage_with_local_serving_disabled(self):
        manager, store = make_manager(serve_local_on_failure=False)
        store.available = False
        with pytest.raises(SearchError):
            asyncio.run(manager.search(FilterState()))

    def test_backend_error_is_not_masked_by_local(self):
        manager, _ = make_manager(BrokenStore(all_tables()))
        with pytest.raises(SearchError) as excinfo:
            asyncio.run(manager.search(FilterState()))
        assert isinstance(excinfo.value.__cause__, BackendError)

    def test_failed_search_is_not_cached(self):
        manager, store = make_manager(local=False)

        async def scenario():
            store.available = False
            with pytest.raises(SearchError):
                await manager.search(FilterState())
            store.available = True
            return await manager.search(FilterState())

        page = asyncio.run(scenario())
        assert not page.from_cache
        assert page.strategy == "plain"

    def test_statistics(self):
        manager, _ = make_manager()

        async def scenario():
            await manager.search(FilterState())
            await manager.search(FilterState(query="教会"))
            await manager.search(FilterState())

        asyncio.run(scenario())
        stats = manager.get_statistics()
        assert stats["total_queries"] == 3
        assert stats["strategies"]["plain"]["count"] == 3
        assert stats["strategies"]["plain"]["success_rate"] == 1.0
        assert stats["avg_ms"] >= 0

    def test_clear_cache(self):
        cache = MemoryQueryCache()
        manager = SearchManager(SearchRouter(InMemoryBuildingStore(all_tables())), cache=cache)

        async def scenario():
            await manager.search(FilterState())
            size = len(cache)
            await manager.clear_cache()
            return size

        assert asyncio.run(scenario()) == 1
        assert len(cache) == 0


class TestMemoryQueryCache:
    """Expiry against an injected clock."""

    def test_entries_expire(self):
        now = [100.0]
        cache = MemoryQueryCache(clock=lambda: now[0])

        async def scenario():
            await cache.set("k", SearchPage(total=3), 60)
            hit = await cache.get("k")
            now[0] += 61
            miss = await cache.get("k")
            return hit, miss

        hit, miss = asyncio.run(scenario())
        assert hit.total == 3
        assert miss is None

    def test_writes_drop_expired_entries(self):
        now = [0.0]
        cache = MemoryQueryCache(clock=lambda: now[0])

        async def scenario():
            for i in range(50):
                await cache.set(f"k{i}", SearchPage(total=i), 1)
                now[0] += 2

        asyncio.run(scenario())
        assert len(cache) == 1

    def test_least_recently_used_entry_is_evicted(self):
        cache = MemoryQueryCache(clock=lambda: 0.0, max_entries=2)

        async def scenario():
            await cache.set("a", SearchPage(total=1), 60)
            await cache.set("b", SearchPage(total=2), 60)
            await cache.get("a")
            await cache.set("c", SearchPage(total=3), 60)
            return [await cache.get(k) for k in ("a", "b", "c")]

        a, b, c = asyncio.run(scenario())
        assert len(cache) == 2
        assert (a.total, b, c.total) == (1, None, 3)

    def test_noop_cache(self):
        manager = SearchManager(SearchRouter(InMemoryBuildingStore(all_tables())),
                                cache=NoOpQueryCache())

        async def scenario():
            await manager.search(FilterState())
            return await manager.search(FilterState())

        assert not asyncio.run(scenario()).from_cache


class TestPrefetchAndDebounce:
    """Background work."""

    def test_prefetch_warms_cache(self):
        manager, store = make_manager()

        async def scenario():
            await manager.prefetch(FilterState(), page=2, page_size=2)
            calls = len(store.calls)
            page = await manager.search(FilterState(), page=2, page_size=2,
                                        record_history=False)
            return page, calls

        page, calls = asyncio.run(scenario())
        assert page.from_cache
        assert [b.building_id for b in page.buildings] == [2, 1]
        assert len(store.calls) == calls
        assert manager.get_statistics()["total_queries"] == 1

    def test_prefetch_failure_is_logged_not_raised(self, caplog):
        manager, store = make_manager(local=False)
        store.available = False

        async def scenario():
            await manager.prefetch(FilterState(), page=2)

        asyncio.run(scenario())
        assert "Prefetch of page 2 failed" in caplog.text

    def test_debounce_keeps_only_last_submission(self):
        manager, _ = make_manager()

        async def scenario():
            first = manager.filter_local_debounced(FilterState(query="教会"))
            second = manager.filter_local_debounced(FilterState(query="美術館"))
            result = await second
            with pytest.raises(asyncio.CancelledError):
                await first
            return result

        result = asyncio.run(scenario())
        assert [b.building_id for b in result] == [2, 3]
        assert manager._debounce.superseded == 1


class TestHistory:
    """History recorded by searches."""

    def test_text_searches_are_recorded(self):
        manager, _ = make_manager()

        async def scenario():
            await manager.search(FilterState(query="美術館"))
            await manager.search(FilterState(query="教会"))
            await manager.search(FilterState(query="美術館"))
            await manager.search(FilterState())
            return await manager.get_history(), await manager.get_popular_searches()

        history, popular = asyncio.run(scenario())
        assert [e.query for e in history] == ["教会", "美術館"]
        assert popular[0].query == "美術館"
        assert popular[0].count == 2

    def test_record_history_flag(self):
        manager, _ = make_manager()
        asyncio.run(manager.search(FilterState(query="x"), record_history=False))
        assert asyncio.run(manager.get_history()) == []

    def test_filter_searches(self):
        manager, _ = make_manager()

        async def scenario():
            await manager.record_filter_search("安藤忠雄", ARCHITECT)
            return await manager.get_history()

        history = asyncio.run(scenario())
        assert history[0].kind == ARCHITECT
        assert history[0].filters == {"architects": ["安藤忠雄"]}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
