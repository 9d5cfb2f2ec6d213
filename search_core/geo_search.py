#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
GeoProximitySearch - buildings within a radius, nearest first.

Two strategies behind one protocol:

    RankedGeoSearch        primary. The backend ranking function filters,
                           sorts and paginates before transfer and returns
                           rows with ``distance`` attached.
    BoundingBoxGeoSearch   fallback. Fetch everything inside the lat/lng box,
                           compute haversine distance for every candidate,
                           sort, then slice the page locally.

GeoProximitySearch races the primary against a timeout and switches to the
fallback on failure or timeout. Callers only see a SearchPage; the
``strategy`` field records which path produced it.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, replace
from typing import List, Protocol, Tuple

from archimap_exceptions import BackendError, RankingUnavailableError
from building.record import Building
from building.transform import transform_rows
from config.constant import (
    BUILDING_SELECT,
    BUILDINGS_TABLE,
    EARTH_RADIUS_KM,
    GEO_FALLBACK_RECLIP,
    GEO_PRIMARY_TIMEOUT_S,
    GEO_RANKING_RPC,
    KM_PER_DEGREE,
)
from filter_state import FilterState
from interfaces.building_store import BuildingStore
from search_result import SearchPage
from .query_plan import AnyOf, Between, Clause, QueryPlan, in_set
from .query_planner import QueryPlanner, post_transform_filter

logger = logging.getLogger(__name__)


# ============================================================================
# GEOMETRY
# ============================================================================


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in km on a sphere of radius EARTH_RADIUS_KM."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def lng_ranges(self) -> Tuple[Tuple[float, float], ...]:
        """Longitude intervals within [-180, 180], split at the antimeridian."""
        if self.max_lng - self.min_lng >= 360:
            return ((-180.0, 180.0),)
        if self.min_lng < -180:
            return ((self.min_lng + 360, 180.0), (-180.0, self.max_lng))
        if self.max_lng > 180:
            return ((self.min_lng, 180.0), (-180.0, self.max_lng - 360))
        return ((self.min_lng, self.max_lng),)

    def contains(self, lat: float, lng: float) -> bool:
        return (self.min_lat <= lat <= self.max_lat
                and any(low <= lng <= high for low, high in self.lng_ranges()))

    def clauses(self) -> Tuple[Clause, Clause]:
        ranges = self.lng_ranges()
        if len(ranges) == 1:
            lng: Clause = Between("lng", *ranges[0])
        else:
            lng = AnyOf(tuple(Between("lng", low, high) for low, high in ranges))
        return Between("lat", self.min_lat, self.max_lat), lng


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Rectangular superset of the circle of ``radius_km`` around (lat, lng)."""
    lat_delta = radius_km / KM_PER_DEGREE
    lng_delta = radius_km / (KM_PER_DEGREE * math.cos(math.radians(lat)))
    return BoundingBox(
        min_lat=lat - lat_delta,
        max_lat=lat + lat_delta,
        min_lng=lng - lng_delta,
        max_lng=lng + lng_delta,
    )


# ============================================================================
# STRATEGIES
# ============================================================================


class GeoSearchStrategy(Protocol):
    name: str

    async def search(self, filters: FilterState, language: str,
                     page: int, page_size: int) -> SearchPage: ...


class RankedGeoSearch:
    """Primary path: the backend distance ranking function."""

    name = "ranked"

    def __init__(self, store: BuildingStore, planner: QueryPlanner):
        self.store = store
        self.planner = planner

    async def _hydrate(self, rows: List[dict]) -> List[dict]:
        """Attach credit and photo embeds to ranked rows, keeping rank order."""
        id_clause = in_set("building_id", (r["building_id"] for r in rows
                                           if r.get("building_id") is not None))
        if id_clause is None:
            return rows
        plan = QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT).where(id_clause)
        embedded = {r.get("building_id"): r for r in (await self.store.select(plan)).rows}
        hydrated = []
        for row in rows:
            full = dict(row)
            extra = embedded.get(row.get("building_id"), {})
            for key in ("building_architects", "photos"):
                if key in extra:
                    full[key] = extra[key]
            hydrated.append(full)
        return hydrated

    @staticmethod
    def _total(rows: List[dict], offset: int) -> int:
        if rows and rows[0].get("total_count") is not None:
            return int(rows[0]["total_count"])
        return offset + len(rows)

    async def search(self, filters: FilterState, language: str,
                     page: int, page_size: int) -> SearchPage:
        offset = (page - 1) * page_size
        params = self.planner.ranking_params(filters, language, offset, page_size)
        rows = await self.store.rpc(GEO_RANKING_RPC, params)

        try:
            total = self._total(rows, offset)
            buildings = transform_rows(await self._hydrate(rows))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise RankingUnavailableError(f"Malformed ranking response: {exc}") from exc

        buildings = post_transform_filter(buildings, filters)
        # The ranking function has no area parameter
        if filters.areas:
            buildings = [b for b in buildings if b.area_for(language) in filters.areas]
        buildings.sort(key=lambda b: b.distance if b.distance is not None else math.inf)
        return SearchPage(buildings=buildings, total=total, page=page,
                          page_size=page_size, strategy=self.name)


class BoundingBoxGeoSearch:
    """Fallback path: bounding-box prefilter, haversine, local sort and slice."""

    name = "bounding_box"

    def __init__(self, store: BuildingStore, planner: QueryPlanner,
                 reclip: bool = GEO_FALLBACK_RECLIP):
        self.store = store
        self.planner = planner
        self.reclip = reclip

    async def rank(self, filters: FilterState, language: str) -> Tuple[List[Building], int]:
        """Every candidate, sorted by distance, plus the count of skipped rows."""
        center = filters.current_location
        box = bounding_box(center.lat, center.lng, filters.radius)
        plan = (await self.planner.build_plan(filters, language)).where(*box.clauses())
        rows = (await self.store.select(plan)).rows
        logger.debug("Bounding box %s -> %d candidate rows", box, len(rows))

        buildings = transform_rows(rows)
        skipped = len(rows) - len(buildings)
        buildings = post_transform_filter(buildings, filters)

        ranked = []
        for building in buildings:
            distance = haversine_km(center.lat, center.lng, building.lat, building.lng)
            if self.reclip and distance > filters.radius:
                continue
            ranked.append(replace(building, distance=distance))
        ranked.sort(key=lambda b: b.distance)
        return ranked, skipped

    async def search(self, filters: FilterState, language: str,
                     page: int, page_size: int) -> SearchPage:
        ranked, skipped = await self.rank(filters, language)
        start = (page - 1) * page_size
        return SearchPage(
            buildings=ranked[start:start + page_size],
            total=len(ranked) + skipped,
            page=page,
            page_size=page_size,
            strategy=self.name,
        )


# ============================================================================
# PRIMARY / FALLBACK SELECTION
# ============================================================================


class GeoProximitySearch:
    """Runs the primary strategy under a timeout, falling back on any failure."""

    def __init__(self, primary: GeoSearchStrategy, fallback: GeoSearchStrategy,
                 timeout_s: float = GEO_PRIMARY_TIMEOUT_S):
        self.primary = primary
        self.fallback = fallback
        self.timeout_s = timeout_s
        self.last_strategy: str = ""
        self.logger = logging.getLogger(self.__class__.__name__)

    async def search(self, filters: FilterState, language: str,
                     page: int, page_size: int) -> SearchPage:
        if filters.current_location is None:
            raise ValueError("Geo search requires a current location")
        try:
            result = await asyncio.wait_for(
                self.primary.search(filters, language, page, page_size),
                timeout=self.timeout_s,
            )
        except (BackendError, asyncio.TimeoutError) as exc:
            self.logger.warning(
                "Primary geo search (%s) failed, degrading to %s: %s",
                self.primary.name, self.fallback.name,
                str(exc) or exc.__class__.__name__)
            result = await self.fallback.search(filters, language, page, page_size)
        self.last_strategy = result.strategy
        return result


__all__ = [
    "haversine_km",
    "BoundingBox",
    "bounding_box",
    "GeoSearchStrategy",
    "RankedGeoSearch",
    "BoundingBoxGeoSearch",
    "GeoProximitySearch",
]
