#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Architect data model.

Architect identity is three levels deep:

    IndividualArchitect  <- composition (order_index) ->  CompositeArchitect
    CompositeArchitect   <- credit (architect_order)  ->  Building

A building's credits come in one of two shapes depending on whether the record
has been migrated into the composition hierarchy:

    ComposedCredits         credit rows exist; names come from the hierarchy
    LegacyDelimitedCredits  only the stored ``architectDetails`` string exists;
                            names come from splitting it on the full-width space
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .names import split_legacy_names


@dataclass(frozen=True)
class IndividualArchitect:
    individual_id: int
    name_ja: str
    name_en: str = ""
    slug: str = ""
    order_index: int = 0

    def name_for(self, language: str) -> str:
        if language == "en" and self.name_en:
            return self.name_en
        return self.name_ja

    def to_dict(self) -> Dict[str, Any]:
        return {
            "individual_id": self.individual_id,
            "name_ja": self.name_ja,
            "name_en": self.name_en,
            "slug": self.slug,
            "order_index": self.order_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndividualArchitect":
        return cls(
            individual_id=int(data["individual_id"]),
            name_ja=data.get("name_ja", ""),
            name_en=data.get("name_en", ""),
            slug=data.get("slug", ""),
            order_index=int(data.get("order_index", 0)),
        )


@dataclass(frozen=True)
class CompositeArchitect:
    composite_id: int
    name_ja: str
    name_en: str = ""
    slug: str = ""
    credit_order: int = 0
    members: Tuple[IndividualArchitect, ...] = field(default_factory=tuple)

    def name_for(self, language: str) -> str:
        if language == "en" and self.name_en:
            return self.name_en
        return self.name_ja

    def to_dict(self) -> Dict[str, Any]:
        return {
            "composite_id": self.composite_id,
            "name_ja": self.name_ja,
            "name_en": self.name_en,
            "slug": self.slug,
            "credit_order": self.credit_order,
            "members": [m.to_dict() for m in self.members],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompositeArchitect":
        return cls(
            composite_id=int(data["composite_id"]),
            name_ja=data.get("name_ja", ""),
            name_en=data.get("name_en", ""),
            slug=data.get("slug", ""),
            credit_order=int(data.get("credit_order", 0)),
            members=tuple(
                IndividualArchitect.from_dict(m) for m in data.get("members", [])
            ),
        )


# ============================================================================
# CREDIT VARIANTS
# ============================================================================


@dataclass(frozen=True)
class ComposedCredits:
    """Credits resolved through the composition hierarchy."""

    composites: Tuple[CompositeArchitect, ...] = ()

    kind = "composed"

    def names(self) -> Tuple[str, ...]:
        """All searchable names: composite names plus member names, both languages."""
        out: list[str] = []
        for comp in self.composites:
            out.extend([comp.name_ja, comp.name_en])
            for member in comp.members:
                out.extend([member.name_ja, member.name_en])
        return tuple(dict.fromkeys(n for n in out if n))

    def member_names(self, language: Optional[str] = None) -> Tuple[str, ...]:
        """Individual member names in one language, or both when None."""
        out: list[str] = []
        for comp in self.composites:
            for member in comp.members:
                if language in (None, "ja"):
                    out.append(member.name_ja)
                if language in (None, "en"):
                    out.append(member.name_en)
        return tuple(dict.fromkeys(n for n in out if n))

    def display_names(self, language: str) -> Tuple[str, ...]:
        return tuple(c.name_for(language) for c in self.composites)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "composites": [c.to_dict() for c in self.composites],
        }


@dataclass(frozen=True)
class LegacyDelimitedCredits:
    """Credits held only as a full-width-space delimited name string."""

    raw: str = ""

    kind = "legacy"

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(split_legacy_names(self.raw))

    def names(self) -> Tuple[str, ...]:
        return self.segments

    def member_names(self, language: Optional[str] = None) -> Tuple[str, ...]:
        # pylint: disable=unused-argument
        return ()

    def display_names(self, language: str) -> Tuple[str, ...]:
        # pylint: disable=unused-argument
        return self.segments

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "raw": self.raw}


ArchitectCredits = Union[ComposedCredits, LegacyDelimitedCredits]


def credits_from_dict(data: Dict[str, Any]) -> ArchitectCredits:
    if data.get("kind") == ComposedCredits.kind:
        return ComposedCredits(
            composites=tuple(
                CompositeArchitect.from_dict(c) for c in data.get("composites", [])
            )
        )
    return LegacyDelimitedCredits(raw=data.get("raw", ""))


__all__ = [
    "IndividualArchitect",
    "CompositeArchitect",
    "ComposedCredits",
    "LegacyDelimitedCredits",
    "ArchitectCredits",
    "credits_from_dict",
]
