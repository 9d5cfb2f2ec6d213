#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for geo proximity search (ranked primary, bounding-box fallback)
"""

import asyncio
import math

import pytest

from archimap_exceptions import BackendUnavailableError
from architects.resolver import ArchitectNameResolver
from config.constant import BUILDINGS_TABLE, GEO_RANKING_RPC
from conftest import CENTER_LAT, CENTER_LNG, _base_row, all_tables, north_of_center
from filter_state import FilterState, GeoPoint
from interfaces.building_store import InMemoryBuildingStore
from search_core.geo_search import (
    BoundingBoxGeoSearch,
    GeoProximitySearch,
    RankedGeoSearch,
    bounding_box,
    haversine_km,
)
from search_core.query_plan import AnyOf
from search_core.query_planner import QueryPlanner

CENTER = GeoPoint(CENTER_LAT, CENTER_LNG)


def ranking_handler(rows):
    """Stand-in for the backend ranking function over raw building rows."""
    def handler(params):
        ranked = []
        for row in rows:
            if row.get("lat") is None:
                continue
            distance = haversine_km(params["search_lat"], params["search_lng"],
                                    row["lat"], row["lng"])
            if distance > params["search_radius"]:
                continue
            if params["search_exclude_residential"] and "住宅" in row["buildingTypes"].split("/"):
                continue
            ranked.append(dict(row, distance=distance))
        ranked.sort(key=lambda r: r["distance"])
        start = params["page_start"]
        page = ranked[start:start + params["page_limit"]]
        for row in page:
            row["total_count"] = len(ranked)
        return page
    return handler


def slow_handler(delay_s):
    async def handler(params):
        await asyncio.sleep(delay_s)
        return []
    return handler


def boundary_rows():
    corner_lat = CENTER_LAT + 0.04
    corner_lng = CENTER_LNG + 0.05
    return [
        _base_row(building_id=101, title="inside", lat=north_of_center(4.9)),
        _base_row(building_id=102, title="outside", lat=north_of_center(5.1)),
        # Inside the bounding box but about 6.3 km away
        _base_row(building_id=103, title="corner", lat=corner_lat, lng=corner_lng),
    ]


def destination(lat, lng, bearing_deg, km):
    """Point reached travelling `km` from (lat, lng) on an initial bearing."""
    delta = km / 6371.0
    theta = math.radians(bearing_deg)
    phi1 = math.radians(lat)
    phi2 = math.asin(math.sin(phi1) * math.cos(delta)
                     + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    lambda2 = math.radians(lng) + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2))
    return math.degrees(phi2), math.degrees(lambda2)


def make_geo(store, *, reclip=True, timeout_s=5.0):
    planner = QueryPlanner(ArchitectNameResolver(store))
    return GeoProximitySearch(
        RankedGeoSearch(store, planner),
        BoundingBoxGeoSearch(store, planner, reclip=reclip),
        timeout_s=timeout_s,
    )


def run_search(geo, filters, page=1, page_size=10, language="ja"):
    return asyncio.run(geo.search(filters, language, page, page_size))


class TestGeometry:
    """Distance and bounding box helpers."""

    def test_haversine(self):
        assert haversine_km(35.0, 139.0, 35.0, 139.0) == 0.0
        assert haversine_km(CENTER_LAT, CENTER_LNG, north_of_center(4.9), CENTER_LNG) == \
            pytest.approx(4.9, abs=1e-9)
        # Tokyo station -> Osaka station
        assert 390 < haversine_km(35.6812, 139.7671, 34.7025, 135.4959) < 410

    def test_bounding_box_contains_circle(self):
        box = bounding_box(CENTER_LAT, CENTER_LNG, 5.0)
        for bearing in range(0, 360, 15):
            lat, lng = destination(CENTER_LAT, CENTER_LNG, bearing, 4.9)
            assert haversine_km(CENTER_LAT, CENTER_LNG, lat, lng) == pytest.approx(4.9)
            assert box.contains(lat, lng)
        assert box.contains(CENTER_LAT + 0.04, CENTER_LNG + 0.05)


    def test_bounding_box_splits_at_antimeridian(self):
        box = bounding_box(-17.0, 179.99, 5.0)
        assert box.max_lng > 180
        low, high = box.lng_ranges()
        assert high == (-180.0, pytest.approx(box.max_lng - 360))
        assert low[1] == 180.0
        assert box.contains(-17.0, -179.98)
        assert not box.contains(-17.0, 0.0)
        _, lng_clause = box.clauses()
        assert isinstance(lng_clause, AnyOf)

    def test_bounding_box_without_seam_is_one_range(self):
        box = bounding_box(CENTER_LAT, CENTER_LNG, 5.0)
        assert box.lng_ranges() == ((box.min_lng, box.max_lng),)


class TestRadiusBoundary:
    """4.9 km is inside a 5 km radius and 5.1 km is not, on both paths."""

    def setup_method(self):
        rows = boundary_rows()
        self.filters = FilterState(current_location=CENTER, radius=5)
        self.ranked_store = InMemoryBuildingStore(
            {BUILDINGS_TABLE: rows}, rpc_handlers={GEO_RANKING_RPC: ranking_handler(rows)})
        self.fallback_store = InMemoryBuildingStore({BUILDINGS_TABLE: rows})

    def test_ranked_path(self):
        geo = make_geo(self.ranked_store)
        page = run_search(geo, self.filters)
        assert geo.last_strategy == "ranked"
        assert [b.building_id for b in page.buildings] == [101]
        assert page.total == 1

    def test_fallback_path_reclips_to_circle(self):
        geo = make_geo(self.fallback_store, reclip=True)
        page = run_search(geo, self.filters)
        assert geo.last_strategy == "bounding_box"
        assert [b.building_id for b in page.buildings] == [101]

    def test_fallback_without_reclip_keeps_box_corners(self):
        geo = make_geo(self.fallback_store, reclip=False)
        page = run_search(geo, self.filters)
        assert [b.building_id for b in page.buildings] == [101, 103]
        assert page.buildings[1].distance > 5


class TestGeoProximitySearch:
    """Primary/fallback selection and ordering."""

    def setup_method(self):
        self.tables = all_tables()
        self.rows = self.tables[BUILDINGS_TABLE]

    def test_ranked_results_are_hydrated_and_sorted(self):
        store = InMemoryBuildingStore(
            self.tables, rpc_handlers={GEO_RANKING_RPC: ranking_handler(self.rows)})
        geo = make_geo(store)
        page = run_search(geo, FilterState(current_location=CENTER))

        assert page.strategy == "ranked"
        assert [b.building_id for b in page.buildings] == [1, 2, 6]
        distances = [b.distance for b in page.buildings]
        assert distances == sorted(distances)
        assert not page.buildings[0].is_legacy
        assert len(page.buildings[0].photos) == 1

    def test_ranked_pagination_uses_total_count(self):
        store = InMemoryBuildingStore(
            self.tables, rpc_handlers={GEO_RANKING_RPC: ranking_handler(self.rows)})
        page = run_search(make_geo(store), FilterState(current_location=CENTER),
                          page=2, page_size=2)
        assert [b.building_id for b in page.buildings] == [6]
        assert page.total == 3

    def test_missing_ranking_function_falls_back(self):
        store = InMemoryBuildingStore(self.tables)
        geo = make_geo(store)
        page = run_search(geo, FilterState(current_location=CENTER, exclude_residential=False))
        assert page.strategy == "bounding_box"
        assert [b.building_id for b in page.buildings] == [1, 4, 2, 6]
        assert "rpc:" + GEO_RANKING_RPC in store.calls

    @pytest.mark.parametrize("bad_rows", [
        [{"building_id": 1, "distance": 1.0, "total_count": "n/a"}],
        ["not a row"],
    ])
    def test_malformed_ranking_response_falls_back(self, bad_rows):
        store = InMemoryBuildingStore(
            self.tables, rpc_handlers={GEO_RANKING_RPC: lambda params: bad_rows})
        geo = make_geo(store)
        page = run_search(geo, FilterState(current_location=CENTER))
        assert page.strategy == "bounding_box"
        assert [b.building_id for b in page.buildings] == [1, 2, 6]

    def test_fallback_finds_buildings_across_antimeridian(self):
        center = GeoPoint(-17.0, 179.99)
        west = destination(center.lat, center.lng, 270, 2.0)
        east_lat, east_lng = destination(center.lat, center.lng, 90, 3.0)
        east = (east_lat, east_lng - 360)
        rows = [
            _base_row(building_id=201, title="west", lat=west[0], lng=west[1]),
            _base_row(building_id=202, title="east", lat=east[0], lng=east[1]),
        ]
        geo = make_geo(InMemoryBuildingStore({BUILDINGS_TABLE: rows}))
        page = run_search(geo, FilterState(current_location=center))
        assert east[1] < -179
        assert [b.building_id for b in page.buildings] == [201, 202]
        assert page.buildings[1].distance == pytest.approx(3.0, abs=1e-6)

    def test_timeout_falls_back(self):
        store = InMemoryBuildingStore(
            self.tables, rpc_handlers={GEO_RANKING_RPC: slow_handler(1.0)})
        geo = make_geo(store, timeout_s=0.05)
        page = run_search(geo, FilterState(current_location=CENTER))
        assert page.strategy == "bounding_box"
        assert geo.last_strategy == "bounding_box"

    def test_fallback_pagination(self):
        geo = make_geo(InMemoryBuildingStore(self.tables))
        filters = FilterState(current_location=CENTER, exclude_residential=False)
        page = run_search(geo, filters, page=2, page_size=3)
        assert [b.building_id for b in page.buildings] == [6]
        assert page.total == 4

    def test_fallback_applies_facets(self):
        geo = make_geo(InMemoryBuildingStore(self.tables))
        filters = FilterState(current_location=CENTER, has_videos=True)
        page = run_search(geo, filters)
        assert [b.building_id for b in page.buildings] == [2]

    def test_areas_are_applied_on_ranked_path(self):
        store = InMemoryBuildingStore(
            self.tables, rpc_handlers={GEO_RANKING_RPC: ranking_handler(self.rows)})
        page = run_search(make_geo(store), FilterState(current_location=CENTER, areas=["中部"]))
        assert page.buildings == []

    def test_unavailable_store_propagates_from_fallback(self):
        store = InMemoryBuildingStore(self.tables, available=False)
        with pytest.raises(BackendUnavailableError):
            run_search(make_geo(store), FilterState(current_location=CENTER))

    def test_location_required(self):
        with pytest.raises(ValueError):
            run_search(make_geo(InMemoryBuildingStore(self.tables)), FilterState())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
