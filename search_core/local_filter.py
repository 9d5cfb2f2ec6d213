#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
LocalFilterEngine - the backend's filter semantics over an in-memory list.

Used when the backend is not used or cannot be reached. Predicates run in
the same precedence as the backend plan and must include and exclude the
same buildings:

    text -> architects -> building types -> prefectures -> areas
    -> photos -> videos -> year -> residential -> radius + distance sort

``filter_buildings`` keeps input order when there is no location, so a state
with no active facets returns the input unchanged. ``local_search`` applies
the backend's id-descending order before paginating.
"""

from dataclasses import replace
from typing import Callable, List, Sequence

from architects.names import legacy_name_matches
from building.record import Building
from config.constant import BUILDING_TYPE_DELIMITER, DEFAULT_PAGE_SIZE
from filter_state import FilterState
from search_result import SearchPage
from .geo_search import haversine_km

Predicate = Callable[[Building], bool]


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


# ============================================================================
# PREDICATES
# ============================================================================


def matches_text(building: Building, text: str, language: str) -> bool:
    fields = [
        building.title,
        building.title_en,
        building.location_for(language),
        BUILDING_TYPE_DELIMITER.join(building.building_types_for(language)),
        building.architect_details,
    ]
    if any(_contains(f, text) for f in fields):
        return True
    return any(_contains(name, text) for name in building.credits.member_names())


def matches_architects(building: Building, selected: Sequence[str], language: str) -> bool:
    """
    A credited member's name in the language column contains a selected
    name, or the stored architect string matches it. The stored string
    matches when it contains the name or one of its segments is contained
    in the name.
    """
    members = building.credits.member_names(language)
    for wanted in selected:
        wanted = wanted.strip()
        if not wanted:
            continue
        if any(_contains(name, wanted) for name in members):
            return True
        if _contains(building.architect_details, wanted):
            return True
        if legacy_name_matches(building.architect_details, [wanted]):
            return True
    return False


def matches_building_types(building: Building, selected: Sequence[str], language: str) -> bool:
    joined = BUILDING_TYPE_DELIMITER.join(building.building_types_for(language))
    return any(_contains(joined, t) for t in selected)


def build_predicates(filters: FilterState, language: str) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.text:
        predicates.append(lambda b: matches_text(b, filters.text, language))
    if filters.architects:
        predicates.append(lambda b: matches_architects(b, filters.architects, language))
    if filters.building_types:
        predicates.append(
            lambda b: matches_building_types(b, filters.building_types, language))
    if filters.prefectures:
        predicates.append(lambda b: b.prefecture_for(language) in filters.prefectures)
    if filters.areas:
        predicates.append(lambda b: b.area_for(language) in filters.areas)
    if filters.has_photos:
        predicates.append(lambda b: b.has_photos)
    if filters.has_videos:
        predicates.append(lambda b: b.has_video)
    if filters.completion_year is not None:
        predicates.append(lambda b: b.completion_year == filters.completion_year)
    if filters.exclude_residential:
        predicates.append(lambda b: not b.is_residential)
    return predicates


# ============================================================================
# ENGINE
# ============================================================================


def filter_buildings(buildings: Sequence[Building], filters: FilterState,
                     language: str = "ja") -> List[Building]:
    """Pure, synchronous filter over an in-memory collection."""
    predicates = build_predicates(filters, language)
    results = [b for b in buildings if all(p(b) for p in predicates)]

    center = filters.current_location
    if center is None:
        return results

    ranked = []
    for building in results:
        distance = haversine_km(center.lat, center.lng, building.lat, building.lng)
        if distance <= filters.radius:
            ranked.append(replace(building, distance=distance))
    ranked.sort(key=lambda b: b.distance)
    return ranked


def paginate(buildings: Sequence[Building], page: int, page_size: int) -> List[Building]:
    start = (max(page, 1) - 1) * page_size
    return list(buildings[start:start + page_size])


def local_search(buildings: Sequence[Building], filters: FilterState, *,
                 language: str = "ja", page: int = 1,
                 page_size: int = DEFAULT_PAGE_SIZE) -> SearchPage:
    """Filter, order like the backend, and paginate."""
    results = filter_buildings(buildings, filters, language)
    if filters.current_location is None:
        results.sort(key=lambda b: b.building_id, reverse=True)
    return SearchPage(
        buildings=paginate(results, page, page_size),
        total=len(results),
        page=page,
        page_size=page_size,
        strategy="local",
    )


__all__ = [
    "matches_text",
    "matches_architects",
    "matches_building_types",
    "build_predicates",
    "filter_buildings",
    "paginate",
    "local_search",
]
