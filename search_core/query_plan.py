# search_core/query_plan.py
"""
Backend-neutral query plans.

A QueryPlan is an AND of clauses over one table. Each clause can

    * evaluate itself against a raw row dict   (``matches``)  - in-memory store
    * render itself as a PostgREST condition   (``condition``) - REST store

so the same plan drives both stores and the two can never drift apart.

Rendering follows PostgREST filter syntax:

    column=op.value                  top-level column filter
    and=(or(a.ilike.*x*,b.eq.1),...) top-level logic tree for grouped clauses
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from config.constant import BUILDING_TYPE_DELIMITER, FULL_WIDTH_SPACE

# Characters that would break a PostgREST logic tree
_RESERVED = str.maketrans({",": " ", "(": " ", ")": " ", '"': " "})


def sanitise_term(value: Any) -> str:
    return str(value).translate(_RESERVED).strip()


def _norm(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _quote(value: Any) -> str:
    text = _norm(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


# ============================================================================
# CLAUSES
# ============================================================================


@dataclass(frozen=True)
class Ilike:
    """Case-insensitive substring match."""

    column: str
    value: str

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        if cell is None:
            return False
        return self.value.strip().lower() in str(cell).lower()

    def condition(self) -> str:
        return f"{self.column}.ilike.*{sanitise_term(self.value)}*"


@dataclass(frozen=True)
class Eq:
    column: str
    value: Any

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        return cell is not None and _norm(cell) == _norm(self.value)

    def condition(self) -> str:
        return f"{self.column}.eq.{sanitise_term(_norm(self.value))}"


@dataclass(frozen=True)
class InSet:
    column: str
    values: Tuple[Any, ...]

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        if cell is None:
            return False
        return _norm(cell) in {_norm(v) for v in self.values}

    def condition(self) -> str:
        rendered = ",".join(_quote(v) for v in self.values)
        return f"{self.column}.in.({rendered})"


@dataclass(frozen=True)
class NotNull:
    column: str

    def matches(self, row: Dict[str, Any]) -> bool:
        return row.get(self.column) is not None

    def condition(self) -> str:
        return f"{self.column}.not.is.null"


@dataclass(frozen=True)
class NotEmpty:
    """Value is present and not blank."""

    column: str

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        return cell is not None and str(cell).strip() != ""

    def condition(self) -> str:
        return f"{self.column}.neq."


@dataclass(frozen=True)
class Between:
    """Inclusive numeric range."""

    column: str
    low: float
    high: float

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        try:
            number = float(cell)
        except (TypeError, ValueError):
            return False
        return self.low <= number <= self.high

    def condition(self) -> str:
        return f"and({self.column}.gte.{self.low},{self.column}.lte.{self.high})"


@dataclass(frozen=True)
class ListContains:
    """
    A delimited list column holds ``value`` as a whole element
    (case-insensitive). ``"住宅/美術館"`` contains ``"住宅"`` but
    ``"集合住宅"`` does not.
    """

    column: str
    value: str
    delimiter: str = BUILDING_TYPE_DELIMITER

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        if cell is None:
            return False
        needle = self.value.strip().lower()
        return any(
            part.strip().lower() == needle
            for part in str(cell).split(self.delimiter)
        )

    def condition(self) -> str:
        v = sanitise_term(self.value)
        d = self.delimiter
        col = self.column
        return (
            f"or({col}.ilike.{v},{col}.ilike.{v}{d}*,"
            f"{col}.ilike.*{d}{v},{col}.ilike.*{d}{v}{d}*)"
        )


@dataclass(frozen=True)
class SegmentWithin:
    """
    Some delimited element of the column is contained in ``value``
    (case-insensitive). The reverse of ListContains: ``"安藤忠雄　隈研吾"``
    qualifies for ``"安藤忠雄建築研究所"`` because its first element does.

    Rendered as one ``imatch`` over every substring of ``value`` anchored at
    element boundaries.
    """

    column: str
    value: str
    delimiter: str = FULL_WIDTH_SPACE

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        needle = self.value.strip().lower()
        if cell is None or not needle:
            return False
        return any(
            part.strip().lower() in needle
            for part in str(cell).split(self.delimiter)
            if part.strip()
        )

    def pattern(self) -> str:
        text = self.value.strip()
        subs = {text[i:j] for i in range(len(text)) for j in range(i + 1, len(text) + 1)}
        alternatives = "|".join(re.escape(s) for s in sorted(subs, key=lambda s: (-len(s), s)))
        d = re.escape(self.delimiter)
        return f"(^|{d})[[:space:]]*({alternatives})[[:space:]]*({d}|$)"

    def condition(self) -> str:
        return f"{self.column}.imatch.{_quote(self.pattern())}"


@dataclass(frozen=True)
class Not:
    clause: "Clause"

    def matches(self, row: Dict[str, Any]) -> bool:
        return not self.clause.matches(row)

    def condition(self) -> str:
        inner = self.clause.condition()
        if inner.startswith(("or(", "and(")):
            return f"not.{inner}"
        column, rest = inner.split(".", 1)
        return f"{column}.not.{rest}"


@dataclass(frozen=True)
class AnyOf:
    """OR-group of clauses. An empty group matches nothing."""

    clauses: Tuple["Clause", ...]

    def matches(self, row: Dict[str, Any]) -> bool:
        return any(c.matches(row) for c in self.clauses)

    def condition(self) -> str:
        return "or(" + ",".join(c.condition() for c in self.clauses) + ")"


Clause = Union[Ilike, Eq, InSet, NotNull, NotEmpty, Between, ListContains,
               SegmentWithin, Not, AnyOf]

_COLUMN_CLAUSES = (Ilike, Eq, InSet, NotNull, NotEmpty)


# ============================================================================
# PLAN
# ============================================================================


@dataclass(frozen=True)
class QueryPlan:
    table: str
    select: str = "*"
    clauses: Tuple[Clause, ...] = field(default_factory=tuple)

    def where(self, *clauses: Clause) -> "QueryPlan":
        return replace(self, clauses=self.clauses + tuple(clauses))

    def matches(self, row: Dict[str, Any]) -> bool:
        return all(c.matches(row) for c in self.clauses)

    def to_postgrest_params(self) -> List[Tuple[str, str]]:
        """
        Simple column clauses become ``column=op.value`` pairs; grouped or
        negated-group clauses are collected into a single ``and=(...)`` tree.
        """
        params: List[Tuple[str, str]] = []
        tree: List[str] = []
        for clause in self.clauses:
            if isinstance(clause, _COLUMN_CLAUSES):
                column, rest = clause.condition().split(".", 1)
                params.append((column, rest))
            elif isinstance(clause, Not) and isinstance(clause.clause, _COLUMN_CLAUSES):
                column, rest = clause.condition().split(".", 1)
                params.append((column, rest))
            else:
                tree.append(clause.condition())
        if tree:
            params.append(("and", "(" + ",".join(tree) + ")"))
        return params

    def describe(self) -> str:
        """Readable one-line summary for debug logs."""
        return f"{self.table}: " + " AND ".join(c.condition() for c in self.clauses)


def in_set(column: str, values) -> Optional[InSet]:
    """InSet over sorted unique values, or None when there are none."""
    unique = sorted({v for v in values}, key=_norm)
    return InSet(column, tuple(unique)) if unique else None


__all__ = [
    "Ilike",
    "Eq",
    "InSet",
    "NotNull",
    "NotEmpty",
    "Between",
    "ListContains",
    "SegmentWithin",
    "Not",
    "AnyOf",
    "Clause",
    "QueryPlan",
    "in_set",
    "sanitise_term",
]
