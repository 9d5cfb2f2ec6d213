"""
Interfaces package exports.
"""

from .building_store import (
    BuildingStore,
    InMemoryBuildingStore,
    RestBuildingStore,
    SelectResult,
)
from .query_cache import (
    MemoryQueryCache,
    NoOpQueryCache,
    QueryCache,
    RedisQueryCache,
    make_cache_key,
)
from .history_store import (
    MemorySearchHistoryStore,
    RedisSearchHistoryStore,
    SearchHistoryStore,
)

__all__ = [
    "BuildingStore",
    "InMemoryBuildingStore",
    "RestBuildingStore",
    "SelectResult",
    "MemoryQueryCache",
    "NoOpQueryCache",
    "QueryCache",
    "RedisQueryCache",
    "make_cache_key",
    "MemorySearchHistoryStore",
    "RedisSearchHistoryStore",
    "SearchHistoryStore",
]
