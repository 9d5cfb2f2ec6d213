# search_core/search_router.py
"""
Backend search routing.

``execute`` picks the path from the FilterState:

    current location set  -> GeoProximitySearch (ranked, else bounding box)
    otherwise             -> plain filtered query, newest building first

The detail, suggestion, architect-page and health operations share the same
store and planner.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from archimap_exceptions import BuildingNotFoundError, InvalidRecordError
from architects.model import IndividualArchitect
from architects.resolver import ArchitectNameResolver
from building.transform import transform_building, transform_rows
from config.constant import (
    BUILDING_SELECT,
    BUILDINGS_TABLE,
    DEFAULT_PAGE_SIZE,
    GEO_FALLBACK_RECLIP,
    GEO_PRIMARY_TIMEOUT_S,
    SUGGESTION_LIMIT,
)
from filter_state import FilterState
from interfaces.building_store import BuildingStore
from search_result import BuildingDetail, SearchPage
from .geo_search import BoundingBoxGeoSearch, GeoProximitySearch, RankedGeoSearch
from .query_plan import AnyOf, Eq, Ilike, NotNull, QueryPlan, in_set
from .query_planner import QueryPlanner, post_transform_filter

NEWEST_FIRST = "building_id.desc"


class SearchRouter:
    """Routes a FilterState to the plain or geo path against one store."""

    def __init__(
        self,
        store: BuildingStore,
        *,
        geo_timeout_s: float = GEO_PRIMARY_TIMEOUT_S,
        geo_fallback_reclip: bool = GEO_FALLBACK_RECLIP,
    ):
        self.store = store
        self.resolver = ArchitectNameResolver(store)
        self.planner = QueryPlanner(self.resolver)
        self.geo = GeoProximitySearch(
            RankedGeoSearch(store, self.planner),
            BoundingBoxGeoSearch(store, self.planner, reclip=geo_fallback_reclip),
            timeout_s=geo_timeout_s,
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def execute(self, filters: FilterState, *, language: str = "ja",
                      page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> SearchPage:
        page = max(page, 1)
        if filters.current_location is not None:
            return await self.geo.search(filters, language, page, page_size)
        return await self.plain_search(filters, language=language,
                                       page=page, page_size=page_size)

    async def plain_search(self, filters: FilterState, *, language: str = "ja",
                           page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> SearchPage:
        plan = await self.planner.build_plan(filters, language)
        offset = (page - 1) * page_size
        result = await self.store.select(
            plan, order=NEWEST_FIRST, offset=offset, limit=page_size, count=True)

        buildings = post_transform_filter(transform_rows(result.rows), filters)
        total = result.total if result.total is not None else offset + len(result.rows)
        return SearchPage(buildings=buildings, total=total, page=page,
                          page_size=page_size, strategy="plain")

    # ------------------------------------------------------------------
    # Detail lookups
    # ------------------------------------------------------------------

    async def _get_one(self, plan: QueryPlan, label: str) -> BuildingDetail:
        rows = (await self.store.select(plan, limit=1)).rows
        if not rows:
            raise BuildingNotFoundError(f"No building with {label}")
        try:
            building = transform_building(rows[0])
        except InvalidRecordError as exc:
            raise BuildingNotFoundError(f"Building with {label} is invalid: {exc}") from exc
        architects = await self.resolver.architects_for_building(building.building_id)
        return BuildingDetail(building=building, architects=architects)

    async def get_building(self, building_id: int) -> BuildingDetail:
        plan = QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT).where(
            Eq("building_id", building_id))
        return await self._get_one(plan, f"id {building_id}")

    async def get_building_by_slug(self, slug: str) -> BuildingDetail:
        plan = QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT).where(Eq("slug", slug))
        return await self._get_one(plan, f"slug {slug!r}")

    # ------------------------------------------------------------------
    # Suggestions / architect page
    # ------------------------------------------------------------------

    async def search_suggestions(self, text: str, *, language: str = "ja",
                                 limit: int = SUGGESTION_LIMIT) -> List[str]:
        """Distinct building titles containing ``text``, in the chosen language."""
        text = (text or "").strip()
        if not text:
            return []
        plan = QueryPlan(BUILDINGS_TABLE, select="building_id,title,titleEn").where(
            AnyOf((Ilike("title", text), Ilike("titleEn", text))))
        rows = (await self.store.select(plan, order=NEWEST_FIRST, limit=limit * 3)).rows

        suggestions: List[str] = []
        for row in rows:
            title = row.get("titleEn") if language == "en" else row.get("title")
            title = title or row.get("title") or ""
            if title and title not in suggestions:
                suggestions.append(title)
            if len(suggestions) >= limit:
                break
        return suggestions

    async def buildings_by_architect_slug(
        self, slug: str, *, language: str = "ja", page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[IndividualArchitect, SearchPage]:
        """Architect page: slug -> individual -> credited buildings, newest first."""
        individual = await self.resolver.individual_by_slug(slug)
        building_ids = await self.resolver.building_ids_for_individuals(
            [individual.individual_id])
        id_clause = in_set("building_id", building_ids)
        if id_clause is None:
            return individual, SearchPage(page=page, page_size=page_size,
                                          strategy="architect")

        plan = QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT).where(
            NotNull("lat"), NotNull("lng"), id_clause)
        offset = (max(page, 1) - 1) * page_size
        result = await self.store.select(
            plan, order=NEWEST_FIRST, offset=offset, limit=page_size, count=True)
        total = result.total if result.total is not None else offset + len(result.rows)
        self.logger.debug("Architect %s has %d buildings", slug, total)
        return individual, SearchPage(
            buildings=transform_rows(result.rows), total=total, page=page,
            page_size=page_size, strategy="architect")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health_check(self) -> Dict[str, Any]:
        """One-row health check; BackendUnavailableError propagates."""
        start = time.time()
        plan = QueryPlan(BUILDINGS_TABLE, select="building_id")
        await self.store.select(plan, limit=1)
        return {
            "status": "ok",
            "latency_ms": (time.time() - start) * 1000,
        }

    @property
    def last_geo_strategy(self) -> Optional[str]:
        return self.geo.last_strategy or None


__all__ = [
    "SearchRouter",
    "NEWEST_FIRST",
]
