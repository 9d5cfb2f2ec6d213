#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for search history aggregation
"""

import pytest

from filter_state import FilterState
from search_core.search_history import (
    ARCHITECT,
    PREFECTURE,
    TEXT,
    SearchHistoryEntry,
    popular_searches,
    record_filter_search,
    record_search,
    replay_filters,
)


class TestRecordSearch:
    """Capped, deduplicated, frequency-counting text history."""

    def test_blank_query_is_ignored(self):
        assert record_search([], "   ") == []

    def test_new_query_is_prepended(self):
        history = record_search([], "美術館", now="t1")
        history = record_search(history, "教会", now="t2")
        assert [e.query for e in history] == ["教会", "美術館"]
        assert all(e.count == 1 for e in history)

    def test_repeat_increments_in_place(self):
        history = record_search([], "美術館", now="t1")
        history = record_search(history, "教会", now="t2")
        history = record_search(history, "  美術館 ", now="t3")

        assert [e.query for e in history] == ["教会", "美術館"]
        museum = history[1]
        assert museum.count == 2
        assert museum.searched_at == "t3"

    def test_input_is_not_mutated(self):
        original = record_search([], "a", now="t1")
        record_search(original, "a", now="t2")
        assert original[0].count == 1

    def test_limit_evicts_oldest(self):
        history = []
        for i in range(21):
            history = record_search(history, f"q{i}", now=f"t{i:02d}")
        assert len(history) == 20
        assert history[0].query == "q20"
        assert "q0" not in [e.query for e in history]

    def test_repeat_does_not_grow(self):
        history = record_search([], "a", now="t1")
        history = record_search(history, "a", now="t2")
        assert len(history) == 1
        assert history[0].count == 2


class TestFilterSearches:
    """Architect and prefecture history entries."""

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            record_filter_search([], "安藤忠雄", "color")

    def test_default_fragment_and_replay(self):
        history = record_filter_search([], "安藤忠雄", ARCHITECT, now="t1")
        entry = history[0]
        assert entry.kind == ARCHITECT
        assert entry.filters == {"architects": ["安藤忠雄"]}

        base = FilterState(query="old", prefectures=["東京都"])
        replayed = replay_filters(entry, base)
        assert replayed.query == ""
        assert replayed.architects == ("安藤忠雄",)
        assert replayed.prefectures == ("東京都",)

    def test_same_text_different_kind_is_separate(self):
        history = record_search([], "東京都", now="t1")
        history = record_filter_search(history, "東京都", PREFECTURE, now="t2")
        assert len(history) == 2
        assert {e.kind for e in history} == {TEXT, PREFECTURE}

    def test_text_replay_sets_query(self):
        entry = SearchHistoryEntry(query="museum", searched_at="t1")
        assert replay_filters(entry).query == "museum"


class TestPopularSearches:
    """Ordering by frequency, then recency."""

    def test_order(self):
        history = [
            SearchHistoryEntry("a", "2024-01-01", count=2),
            SearchHistoryEntry("b", "2024-03-01", count=5),
            SearchHistoryEntry("c", "2024-02-01", count=2),
            SearchHistoryEntry("d", "2024-04-01", count=1),
        ]
        assert [e.query for e in popular_searches(history)] == ["b", "c", "a", "d"]
        assert [e.query for e in popular_searches(history, 2)] == ["b", "c"]

    def test_round_trip(self):
        entry = SearchHistoryEntry("安藤", "t1", count=3, kind=ARCHITECT,
                                   filters={"architects": ["安藤"]})
        assert SearchHistoryEntry.from_dict(entry.to_dict()) == entry

    def test_unknown_kind_in_payload_becomes_text(self):
        entry = SearchHistoryEntry.from_dict({"query": "x", "kind": "bogus"})
        assert entry.kind == TEXT


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
