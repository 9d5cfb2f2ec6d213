# search_core/query_planner.py
"""
QueryPlanner - FilterState -> QueryPlan for the buildings table.

Clause order is canonical:

    coordinates present
    free-text OR-group (title, location, building type, legacy architect
        string, and building ids resolved from architect names)
    architect facet (resolved ids OR legacy string contains the name OR
        a legacy segment is contained in the name)
    building types (OR of substrings)
    prefectures, areas (membership on the language column)
    videos, completion year
    residential exclusion (both languages)

Has-photos is not a storage clause. It is checked after transformation
(``post_transform_filter``) because photo attachments only exist on the
transformed record.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from architects.resolver import ArchitectNameResolver
from building.record import Building, column_for
from config.constant import (
    BUILDING_SELECT,
    BUILDINGS_TABLE,
    RESIDENTIAL_TYPE_EN,
    RESIDENTIAL_TYPE_JA,
)
from filter_state import FilterState
from .query_plan import (
    AnyOf,
    Clause,
    Eq,
    Ilike,
    ListContains,
    Not,
    NotEmpty,
    NotNull,
    QueryPlan,
    SegmentWithin,
    in_set,
)

logger = logging.getLogger(__name__)


def residential_exclusion() -> List[Clause]:
    return [
        Not(ListContains("buildingTypes", RESIDENTIAL_TYPE_JA)),
        Not(ListContains("buildingTypesEn", RESIDENTIAL_TYPE_EN)),
    ]


def post_transform_filter(buildings: Iterable[Building], filters: FilterState) -> List[Building]:
    """Predicates that can only be evaluated on transformed records."""
    if not filters.has_photos:
        return list(buildings)
    return [b for b in buildings if b.has_photos]


class QueryPlanner:
    """Builds backend query plans and ranking parameters from a FilterState."""

    def __init__(self, resolver: ArchitectNameResolver):
        self.resolver = resolver

    # ------------------------------------------------------------------
    # Clause builders
    # ------------------------------------------------------------------

    async def text_clause(self, text: str, language: str) -> Optional[Clause]:
        if not text:
            return None
        group: List[Clause] = [
            Ilike("title", text),
            Ilike("titleEn", text),
            Ilike(column_for("location", language), text),
            Ilike(column_for("building_types", language), text),
            Ilike("architectDetails", text),
        ]
        building_ids = await self.resolver.resolve_building_ids([text], None)
        id_clause = in_set("building_id", building_ids)
        if id_clause is not None:
            group.append(id_clause)
        return AnyOf(tuple(group))

    async def architect_clause(self, names: Iterable[str], language: str) -> Optional[Clause]:
        names = [n for n in names if n]
        if not names:
            return None
        group: List[Clause] = []
        building_ids = await self.resolver.resolve_building_ids(names, language)
        id_clause = in_set("building_id", building_ids)
        if id_clause is not None:
            group.append(id_clause)
        group.extend(Ilike("architectDetails", n) for n in names)
        group.extend(SegmentWithin("architectDetails", n) for n in names)
        return AnyOf(tuple(group))

    @staticmethod
    def facet_clauses(filters: FilterState, language: str) -> List[Clause]:
        clauses: List[Clause] = []
        if filters.building_types:
            type_column = column_for("building_types", language)
            clauses.append(AnyOf(tuple(Ilike(type_column, t) for t in filters.building_types)))
        if filters.prefectures:
            clauses.append(in_set(column_for("prefecture", language), filters.prefectures))
        if filters.areas:
            clauses.append(in_set(column_for("area", language), filters.areas))
        if filters.has_videos:
            clauses.extend([NotNull("youtubeUrl"), NotEmpty("youtubeUrl")])
        if filters.completion_year is not None:
            clauses.append(Eq("completionYears", filters.completion_year))
        if filters.exclude_residential:
            clauses.extend(residential_exclusion())
        return clauses

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    async def build_plan(self, filters: FilterState, language: str) -> QueryPlan:
        """
        AND of every active facet. Architect resolution runs first (text,
        then facet); each resolution is its own sequential chain of hops.
        """
        plan = QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT).where(
            NotNull("lat"), NotNull("lng"))

        text = await self.text_clause(filters.text, language)
        if text is not None:
            plan = plan.where(text)
        architects = await self.architect_clause(filters.architects, language)
        if architects is not None:
            plan = plan.where(architects)
        plan = plan.where(*self.facet_clauses(filters, language))

        logger.debug("Query plan: %s", plan.describe())
        return plan

    @staticmethod
    def ranking_params(filters: FilterState, language: str,
                       offset: int, page_size: int) -> Dict[str, Any]:
        """Parameters for the distance ranking function."""
        if filters.current_location is None:
            raise ValueError("ranking_params requires a current location")
        return {
            "search_lat": filters.current_location.lat,
            "search_lng": filters.current_location.lng,
            "search_radius": filters.radius,
            "search_query": filters.text or None,
            "search_architects": list(filters.architects) or None,
            "search_building_types": list(filters.building_types) or None,
            "search_prefectures": list(filters.prefectures) or None,
            "search_has_videos": filters.has_videos,
            "search_completion_year": filters.completion_year,
            "search_exclude_residential": filters.exclude_residential,
            "search_language": language,
            "page_start": offset,
            "page_limit": page_size,
        }


__all__ = [
    "QueryPlanner",
    "post_transform_filter",
    "residential_exclusion",
]
