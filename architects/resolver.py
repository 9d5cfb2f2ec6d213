#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ArchitectNameResolver - name substrings -> building ids, and back.

Forward (search):
    1. architect_names           name column ilike any substring -> name_id
    2. architect_name_relations  name_id in (...)                -> architect_id
    3. building_architects       architect_id in (...)           -> building_id

Reverse (detail view):
    building_architects -> architect_name_relations -> architect_names,
    loaded into an ArchitectIndex and deduplicated by individual id.

Each hop depends on the previous hop's ids, so hops run one after another.
An empty hop ends the traversal with an empty result.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from archimap_exceptions import ArchitectNotFoundError
from config.constant import (
    ARCHITECT_COMPOSITION_TABLE,
    BUILDING_CREDITS_TABLE,
    INDIVIDUAL_ARCHITECTS_TABLE,
)
from interfaces.building_store import BuildingStore
from search_core.query_plan import AnyOf, Eq, Ilike, QueryPlan, in_set
from .hierarchy import ArchitectIndex
from .model import IndividualArchitect

NAME_COLUMNS = {
    "ja": ("architect_name",),
    "en": ("architect_name_en",),
    None: ("architect_name", "architect_name_en"),
}


class ArchitectNameResolver:
    """Three-hop architect resolution against a BuildingStore."""

    def __init__(self, store: BuildingStore):
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Forward
    # ------------------------------------------------------------------

    async def match_individual_ids(self, names: Iterable[str],
                                   language: Optional[str] = None) -> Set[int]:
        needles = [n.strip() for n in names if n and n.strip()]
        if not needles:
            return set()
        columns = NAME_COLUMNS.get(language, NAME_COLUMNS[None])
        group = AnyOf(tuple(Ilike(col, n) for col in columns for n in needles))
        plan = QueryPlan(INDIVIDUAL_ARCHITECTS_TABLE, select="name_id").where(group)
        result = await self.store.select(plan)
        return {int(r["name_id"]) for r in result.rows if r.get("name_id") is not None}

    async def composite_ids_for(self, individual_ids: Iterable[int]) -> Set[int]:
        clause = in_set("name_id", individual_ids)
        if clause is None:
            return set()
        plan = QueryPlan(ARCHITECT_COMPOSITION_TABLE, select="architect_id").where(clause)
        result = await self.store.select(plan)
        return {int(r["architect_id"]) for r in result.rows if r.get("architect_id") is not None}

    async def building_ids_for_composites(self, composite_ids: Iterable[int]) -> Set[int]:
        clause = in_set("architect_id", composite_ids)
        if clause is None:
            return set()
        plan = QueryPlan(BUILDING_CREDITS_TABLE, select="building_id").where(clause)
        result = await self.store.select(plan)
        return {int(r["building_id"]) for r in result.rows if r.get("building_id") is not None}

    async def building_ids_for_individuals(self, individual_ids: Iterable[int]) -> Set[int]:
        composite_ids = await self.composite_ids_for(individual_ids)
        if not composite_ids:
            return set()
        return await self.building_ids_for_composites(composite_ids)

    async def resolve_building_ids(self, names: Iterable[str],
                                   language: Optional[str] = None) -> Set[int]:
        """
        Building ids whose credited individuals match any of ``names``.

        ``language`` selects the name column; None searches both (free text).
        """
        names = list(names)
        individual_ids = await self.match_individual_ids(names, language)
        if not individual_ids:
            self.logger.debug("No individual architects match %s", names)
            return set()
        building_ids = await self.building_ids_for_individuals(individual_ids)
        self.logger.debug(
            "Architect names %s -> %d individuals -> %d buildings",
            names, len(individual_ids), len(building_ids))
        return building_ids

    # ------------------------------------------------------------------
    # Reverse
    # ------------------------------------------------------------------

    async def architects_for_building(self, building_id: int) -> List[IndividualArchitect]:
        credit_plan = QueryPlan(BUILDING_CREDITS_TABLE).where(Eq("building_id", building_id))
        credits = (await self.store.select(credit_plan)).rows
        if not credits:
            return []

        composite_clause = in_set(
            "architect_id", (c.get("architect_id") for c in credits if c.get("architect_id") is not None))
        if composite_clause is None:
            return []
        composition_plan = QueryPlan(ARCHITECT_COMPOSITION_TABLE).where(composite_clause)
        compositions = (await self.store.select(composition_plan)).rows

        name_clause = in_set(
            "name_id", (c.get("name_id") for c in compositions if c.get("name_id") is not None))
        if name_clause is None:
            return []
        individual_plan = QueryPlan(INDIVIDUAL_ARCHITECTS_TABLE).where(name_clause)
        individuals = (await self.store.select(individual_plan)).rows

        index = ArchitectIndex.from_rows(
            individual_rows=individuals,
            composition_rows=compositions,
            credit_rows=credits,
        )
        return index.architects_for_building(int(building_id))

    async def individual_by_slug(self, slug: str) -> IndividualArchitect:
        plan = QueryPlan(INDIVIDUAL_ARCHITECTS_TABLE).where(Eq("slug", slug))
        rows = (await self.store.select(plan, limit=1)).rows
        if not rows:
            raise ArchitectNotFoundError(f"No architect with slug {slug!r}")
        index = ArchitectIndex.from_rows(individual_rows=rows)
        return next(iter(index.individuals_by_id.values()))


__all__ = [
    "ArchitectNameResolver",
]
