#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
SearchPage - the result container every search path returns.

    buildings   at most ``page_size`` transformed records
    total       matching rows reported by the backend, counted *before*
                invalid records were skipped, so ``len(buildings)`` and
                ``total`` may legitimately disagree
    strategy    which path produced the page: plain, ranked,
                bounding_box or local
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from architects.model import IndividualArchitect
from building.record import Building
from config.constant import DEFAULT_PAGE_SIZE
from search_core.pagination import PageItem, pagination_range, total_pages_for


@dataclass
class SearchPage:
    buildings: List[Building] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    strategy: str = "plain"

    # Set by SearchManager when the page came out of the query cache
    from_cache: bool = False

    @property
    def total_pages(self) -> int:
        return total_pages_for(self.total, self.page_size)

    @property
    def pagination(self) -> List[PageItem]:
        return pagination_range(self.page, self.total_pages)

    def to_dict(self) -> Dict[str, Any]:
        """Convert page to a JSON-safe dict (cache storage, CLI output)."""
        return {
            "buildings": [b.to_dict() for b in self.buildings],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "strategy": self.strategy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchPage":
        return cls(
            buildings=[Building.from_dict(b) for b in data.get("buildings", [])],
            total=int(data.get("total", 0)),
            page=int(data.get("page", 1)),
            page_size=int(data.get("page_size", DEFAULT_PAGE_SIZE)),
            strategy=data.get("strategy", "plain"),
        )

    def __repr__(self) -> str:
        return (
            f"SearchPage(page={self.page}/{self.total_pages}, total={self.total}, "
            f"strategy={self.strategy!r}, buildings={len(self.buildings)} items, "
            f"from_cache={self.from_cache})"
        )


@dataclass
class BuildingDetail:
    """A single building plus its deduplicated individual architects."""

    building: Building
    architects: List[IndividualArchitect] = field(default_factory=list)


__all__ = [
    "SearchPage",
    "BuildingDetail",
]
