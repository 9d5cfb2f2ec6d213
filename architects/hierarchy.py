#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ArchitectIndex - an arena of architect entities plus index maps.

    individuals_by_id           name_id      -> IndividualArchitect
    composites_by_id            architect_id -> CompositeArchitect (no members)
    composition_by_composite    architect_id -> [CompositionLink]
    credits_by_building         building_id  -> [CreditLink]

Every hop of the forward traversal (names -> individuals -> composites ->
buildings) and of the reverse traversal (building -> credits -> compositions ->
individuals) is a set lookup over these maps. ``ArchitectNameResolver`` fills
an index from the rows it fetched; tests and local mode fill one directly.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Set

from .model import CompositeArchitect, IndividualArchitect


@dataclass(frozen=True)
class CompositionLink:
    composite_id: int
    individual_id: int
    order_index: int = 0


@dataclass(frozen=True)
class CreditLink:
    building_id: int
    composite_id: int
    credit_order: int = 0


def _name_matches(individual: IndividualArchitect, needle: str,
                  language: Optional[str]) -> bool:
    if language == "ja":
        haystacks = [individual.name_ja]
    elif language == "en":
        haystacks = [individual.name_en]
    else:
        haystacks = [individual.name_ja, individual.name_en]
    return any(needle in (h or "").lower() for h in haystacks)


class ArchitectIndex:
    """In-memory arena over the three architect relations."""

    def __init__(self):
        self.individuals_by_id: Dict[int, IndividualArchitect] = {}
        self.composites_by_id: Dict[int, CompositeArchitect] = {}
        self.composition_by_composite: Dict[int, List[CompositionLink]] = defaultdict(list)
        self.composites_by_individual: Dict[int, Set[int]] = defaultdict(set)
        self.credits_by_building: Dict[int, List[CreditLink]] = defaultdict(list)
        self.buildings_by_composite: Dict[int, Set[int]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def add_individual(self, individual: IndividualArchitect) -> None:
        self.individuals_by_id[individual.individual_id] = individual

    def add_composite(self, composite: CompositeArchitect) -> None:
        self.composites_by_id[composite.composite_id] = composite

    def add_composition(self, link: CompositionLink) -> None:
        self.composition_by_composite[link.composite_id].append(link)
        self.composites_by_individual[link.individual_id].add(link.composite_id)

    def add_credit(self, link: CreditLink) -> None:
        self.credits_by_building[link.building_id].append(link)
        self.buildings_by_composite[link.composite_id].add(link.building_id)

    @classmethod
    def from_rows(
        cls,
        *,
        individual_rows: Iterable[Dict[str, Any]] = (),
        composite_rows: Iterable[Dict[str, Any]] = (),
        composition_rows: Iterable[Dict[str, Any]] = (),
        credit_rows: Iterable[Dict[str, Any]] = (),
    ) -> "ArchitectIndex":
        """Build an index from raw table rows (column names as stored)."""
        index = cls()
        for row in individual_rows:
            index.add_individual(IndividualArchitect(
                individual_id=int(row["name_id"]),
                name_ja=row.get("architect_name") or "",
                name_en=row.get("architect_name_en") or "",
                slug=row.get("slug") or "",
            ))
        for row in composite_rows:
            index.add_composite(CompositeArchitect(
                composite_id=int(row["architect_id"]),
                name_ja=row.get("architectJa") or "",
                name_en=row.get("architectEn") or "",
                slug=row.get("slug") or "",
            ))
        for row in composition_rows:
            index.add_composition(CompositionLink(
                composite_id=int(row["architect_id"]),
                individual_id=int(row["name_id"]),
                order_index=int(row.get("order_index") or 0),
            ))
        for row in credit_rows:
            index.add_credit(CreditLink(
                building_id=int(row["building_id"]),
                composite_id=int(row["architect_id"]),
                credit_order=int(row.get("architect_order") or 0),
            ))
        return index

    # ------------------------------------------------------------------
    # Forward traversal
    # ------------------------------------------------------------------

    def match_individuals(self, names: Iterable[str],
                          language: Optional[str] = None) -> Set[int]:
        needles = [n.strip().lower() for n in names if n and n.strip()]
        if not needles:
            return set()
        return {
            ind_id
            for ind_id, individual in self.individuals_by_id.items()
            if any(_name_matches(individual, n, language) for n in needles)
        }

    def composites_for_individuals(self, individual_ids: Iterable[int]) -> Set[int]:
        out: Set[int] = set()
        for ind_id in individual_ids:
            out |= self.composites_by_individual.get(ind_id, set())
        return out

    def buildings_for_composites(self, composite_ids: Iterable[int]) -> Set[int]:
        out: Set[int] = set()
        for comp_id in composite_ids:
            out |= self.buildings_by_composite.get(comp_id, set())
        return out

    def buildings_for_individuals(self, individual_ids: Iterable[int]) -> Set[int]:
        composites = self.composites_for_individuals(individual_ids)
        if not composites:
            return set()
        return self.buildings_for_composites(composites)

    def buildings_for_names(self, names: Iterable[str],
                            language: Optional[str] = None) -> Set[int]:
        individuals = self.match_individuals(names, language)
        if not individuals:
            return set()
        return self.buildings_for_individuals(individuals)

    # ------------------------------------------------------------------
    # Reverse traversal
    # ------------------------------------------------------------------

    def architects_for_building(self, building_id: int) -> List[IndividualArchitect]:
        """
        Individuals credited on a building, one entry per individual id,
        ordered by order_index ascending (credit order breaks ties).
        """
        candidates = []
        for credit in self.credits_by_building.get(building_id, []):
            for link in self.composition_by_composite.get(credit.composite_id, []):
                individual = self.individuals_by_id.get(link.individual_id)
                if individual is None:
                    continue
                candidates.append((link.order_index, credit.credit_order, individual))

        candidates.sort(key=lambda c: (c[0], c[1], c[2].individual_id))
        seen: Set[int] = set()
        result: List[IndividualArchitect] = []
        for order_index, _, individual in candidates:
            if individual.individual_id in seen:
                continue
            seen.add(individual.individual_id)
            if individual.order_index != order_index:
                individual = replace(individual, order_index=order_index)
            result.append(individual)
        return result

    def individual_by_slug(self, slug: str) -> Optional[IndividualArchitect]:
        for individual in self.individuals_by_id.values():
            if individual.slug == slug:
                return individual
        return None


__all__ = [
    "CompositionLink",
    "CreditLink",
    "ArchitectIndex",
]
