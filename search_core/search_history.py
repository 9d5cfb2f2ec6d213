# search_core/search_history.py
"""
SearchHistoryAggregator - a capped, deduplicated, frequency-counting log.

The history is a plain list, newest first. Every function returns a new list
and leaves its input untouched.

    text entries                  record_search()
    architect / prefecture ones   record_filter_search(), which also stores
                                  the filter fragment needed to replay them
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from config.constant import POPULAR_SEARCH_LIMIT, SEARCH_HISTORY_LIMIT
from filter_state import FilterState, merge_sets

TEXT = "text"
ARCHITECT = "architect"
PREFECTURE = "prefecture"
ENTRY_KINDS = (TEXT, ARCHITECT, PREFECTURE)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SearchHistoryEntry:
    query: str
    searched_at: str
    count: int = 1
    kind: str = TEXT
    filters: Dict[str, Any] = field(default_factory=dict, hash=False, compare=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "searched_at": self.searched_at,
            "count": self.count,
            "kind": self.kind,
            "filters": dict(self.filters),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchHistoryEntry":
        kind = data.get("kind") or TEXT
        return cls(
            query=str(data.get("query", "")),
            searched_at=str(data.get("searched_at", "")),
            count=int(data.get("count", 1)),
            kind=kind if kind in ENTRY_KINDS else TEXT,
            filters=dict(data.get("filters") or {}),
        )


def _record(history: Sequence[SearchHistoryEntry], query: str, kind: str,
            filters: Dict[str, Any], now: Optional[str], limit: int
            ) -> List[SearchHistoryEntry]:
    timestamp = now or _now_iso()
    entries = list(history)
    for i, entry in enumerate(entries):
        if entry.kind == kind and entry.query == query:
            entries[i] = replace(
                entry,
                count=entry.count + 1,
                searched_at=timestamp,
                filters=dict(filters) if filters else entry.filters,
            )
            return entries
    new_entry = SearchHistoryEntry(
        query=query, searched_at=timestamp, count=1, kind=kind, filters=dict(filters))
    return [new_entry] + entries[:max(limit - 1, 0)]


def record_search(history: Sequence[SearchHistoryEntry], query: str, *,
                  now: Optional[str] = None,
                  limit: int = SEARCH_HISTORY_LIMIT) -> List[SearchHistoryEntry]:
    """
    Increment a matching text entry in place, or prepend a new one and keep
    the newest ``limit`` entries. Blank queries leave the history unchanged.
    """
    query = (query or "").strip()
    if not query:
        return list(history)
    return _record(history, query, TEXT, {}, now, limit)


def record_filter_search(history: Sequence[SearchHistoryEntry], query: str,
                         kind: str, filters: Optional[Dict[str, Any]] = None, *,
                         now: Optional[str] = None,
                         limit: int = SEARCH_HISTORY_LIMIT) -> List[SearchHistoryEntry]:
    """Record an architect or prefecture search together with its replay fragment."""
    if kind not in (ARCHITECT, PREFECTURE):
        raise ValueError(f"Unsupported history entry kind: {kind!r}")
    query = (query or "").strip()
    if not query:
        return list(history)
    fragment = dict(filters) if filters else default_fragment(query, kind)
    return _record(history, query, kind, fragment, now, limit)


def default_fragment(query: str, kind: str) -> Dict[str, Any]:
    if kind == ARCHITECT:
        return {"architects": [query]}
    if kind == PREFECTURE:
        return {"prefectures": [query]}
    return {}


def popular_searches(history: Sequence[SearchHistoryEntry],
                     limit: int = POPULAR_SEARCH_LIMIT) -> List[SearchHistoryEntry]:
    """Most frequent entries first; more recent wins a tie."""
    ordered = sorted(history, key=lambda e: e.searched_at, reverse=True)
    ordered.sort(key=lambda e: e.count, reverse=True)
    return ordered[:limit]


def replay_filters(entry: SearchHistoryEntry,
                   base: Optional[FilterState] = None) -> FilterState:
    """Rebuild the FilterState a history entry stands for."""
    base = base or FilterState()
    if entry.kind == TEXT:
        return base.with_changes(query=entry.query)
    fragment = entry.filters or default_fragment(entry.query, entry.kind)
    return base.with_changes(
        query="",
        architects=merge_sets(base.architects, fragment.get("architects") or ()),
        prefectures=merge_sets(base.prefectures, fragment.get("prefectures") or ()),
    )


__all__ = [
    "TEXT",
    "ARCHITECT",
    "PREFECTURE",
    "SearchHistoryEntry",
    "record_search",
    "record_filter_search",
    "default_fragment",
    "popular_searches",
    "replay_filters",
]
