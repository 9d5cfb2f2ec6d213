#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Search buildings from the command line.

Runs against the configured PostgREST backend (SUPABASE_URL /
SUPABASE_ANON_KEY), or against a JSON fixture of table rows:

    {"buildings_table_2": [...], "architects_table": [...], ...}

Usage:
  python cli/search_buildings.py --q 美術館 --prefecture 東京都
  python cli/search_buildings.py --fixture tables.json --lat 35.68 --lng 139.65
  python cli/search_buildings.py --fixture tables.json --local --url-query "q=museum&page=2"
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from archimap_exceptions import ArchimapError
from building.transform import transform_rows
from clients import ClientManager
from config import BUILDING_SELECT, BUILDINGS_TABLE, SearchConfig
from filter_state import FilterState, GeoPoint, from_query_string
from interfaces.building_store import InMemoryBuildingStore, RestBuildingStore
from interfaces.history_store import RedisSearchHistoryStore
from interfaces.query_cache import RedisQueryCache
from search_core.query_plan import QueryPlan
from search_core.search_router import SearchRouter
from search_manager import SearchManager
from search_result import SearchPage


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search architecture building records.")
    parser.add_argument("--url-query", help="Filters as a URL query string (overrides flags).")
    parser.add_argument("--q", default="", help="Free-text query.")
    parser.add_argument("--radius", type=float, default=None, help="Radius in km.")
    parser.add_argument("--lat", type=float, help="Center latitude.")
    parser.add_argument("--lng", type=float, help="Center longitude.")
    parser.add_argument("--architect", action="append", default=[], help="Architect name (repeatable).")
    parser.add_argument("--type", dest="building_types", action="append", default=[],
                        help="Building type (repeatable).")
    parser.add_argument("--prefecture", action="append", default=[], help="Prefecture (repeatable).")
    parser.add_argument("--area", action="append", default=[], help="Area (repeatable).")
    parser.add_argument("--has-photos", action="store_true", help="Only buildings with photos.")
    parser.add_argument("--has-videos", action="store_true", help="Only buildings with videos.")
    parser.add_argument("--year", type=int, help="Exact completion year.")
    parser.add_argument("--include-residential", action="store_true",
                        help="Do not exclude residential buildings.")
    parser.add_argument("--page", type=int, default=1, help="Page number (1-based).")
    parser.add_argument("--page-size", type=int, help="Results per page.")
    parser.add_argument("--language", choices=("ja", "en"), help="Result language.")
    parser.add_argument("--fixture", help="JSON file of table rows to search instead of the backend.")
    parser.add_argument("--local", action="store_true",
                        help="Use the in-memory filter engine over the fixture buildings.")
    parser.add_argument("--json", action="store_true", help="Print the page as JSON.")
    parser.add_argument("--log-level", default=None, help="Logging level.")
    return parser.parse_args()


def _filters_from_args(args: argparse.Namespace) -> tuple[FilterState, int]:
    if args.url_query:
        return from_query_string(args.url_query)
    location = None
    if args.lat is not None and args.lng is not None:
        location = GeoPoint(args.lat, args.lng)
    filters = FilterState(
        query=args.q,
        radius=args.radius,
        current_location=location,
        architects=args.architect,
        building_types=args.building_types,
        prefectures=args.prefecture,
        areas=args.area,
        has_photos=args.has_photos,
        has_videos=args.has_videos,
        completion_year=args.year,
        exclude_residential=not args.include_residential,
    )
    return filters, args.page


def _load_fixture(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, list):
        return {BUILDINGS_TABLE: data}
    if not isinstance(data, dict):
        raise SystemExit(f"Fixture must be a list of rows or a table mapping: {path}")
    return data


def _print_page(page: SearchPage, language: str) -> None:
    for building in page.buildings:
        distance = f"{building.distance:7.2f} km  " if building.distance is not None else ""
        names = " / ".join(building.credits.display_names(language))
        print(f"{building.building_id:>6}  {distance}{building.display_title(language)}  [{names}]")
    pages = " ".join(str(p) for p in page.pagination)
    print(f"-- {len(page.buildings)} of {page.total} ({page.strategy}) pages: {pages}")


async def _run(args: argparse.Namespace, config: SearchConfig) -> int:
    filters, page_number = _filters_from_args(args)

    if args.fixture:
        fixture = Path(args.fixture)
        if not fixture.exists():
            raise SystemExit(f"Fixture not found: {fixture}")
        tables = _load_fixture(fixture)
        store = InMemoryBuildingStore(tables)
        # Embed credits and photos before transforming for the local engine
        rows = (await store.select(QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT))).rows
        manager = SearchManager(
            SearchRouter(store, geo_timeout_s=config.geo_primary_timeout_s,
                         geo_fallback_reclip=config.geo_fallback_reclip),
            config=config,
            local_buildings=transform_rows(rows),
        )
    else:
        config.validate()
        store = RestBuildingStore(ClientManager.get_http(config.http_timeout_s))
        cache = history = None
        if config.redis_enabled:
            redis = ClientManager.get_redis()
            cache = RedisQueryCache(redis)
            history = RedisSearchHistoryStore(redis)
        manager = SearchManager(
            SearchRouter(store, geo_timeout_s=config.geo_primary_timeout_s,
                         geo_fallback_reclip=config.geo_fallback_reclip),
            config=config,
            cache=cache,
            history_store=history,
        )

    try:
        page = await manager.search(
            filters,
            page=page_number,
            page_size=args.page_size,
            language=args.language,
            use_backend=not args.local,
        )
    finally:
        await ClientManager.close()

    language = args.language or config.language
    if args.json:
        print(json.dumps(page.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_page(page, language)
    return 0


def main() -> int:
    args = parse_args()
    config = SearchConfig.from_env()
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )
    if args.local and not args.fixture:
        raise SystemExit("--local requires --fixture")
    try:
        return asyncio.run(_run(args, config))
    except ArchimapError as exc:
        logging.getLogger("search_buildings").error("Search failed: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
