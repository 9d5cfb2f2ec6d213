# search_core/__init__.py

"""
Search core package.

Provides:
- QueryPlan / QueryPlanner   backend-neutral query plans built from a FilterState
- GeoProximitySearch         ranked geo search with bounding-box fallback
- filter_buildings()         in-memory filter engine with the same semantics
- pagination_range()         compact page-button sequence
- record_search()            capped, deduplicated search history
- SearchRouter               plain / geo routing against a BuildingStore

Submodules are imported directly (``from search_core.query_plan import ...``);
the names below are for type checkers only so importing the package stays
free of import cycles with ``interfaces`` and ``architects``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .debounce import LatestTaskSlot
    from .geo_search import GeoProximitySearch, haversine_km
    from .local_filter import filter_buildings, local_search
    from .pagination import calculate_pagination, pagination_range
    from .query_plan import QueryPlan
    from .query_planner import QueryPlanner
    from .search_history import record_filter_search, record_search
    from .search_router import SearchRouter

__all__ = [
    "LatestTaskSlot",
    "GeoProximitySearch",
    "haversine_km",
    "filter_buildings",
    "local_search",
    "calculate_pagination",
    "pagination_range",
    "QueryPlan",
    "QueryPlanner",
    "record_filter_search",
    "record_search",
    "SearchRouter",
]
