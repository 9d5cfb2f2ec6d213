"""
Architect identity package exports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .model import (
    ArchitectCredits,
    ComposedCredits,
    CompositeArchitect,
    IndividualArchitect,
    LegacyDelimitedCredits,
)
from .names import legacy_name_matches, names_overlap, split_legacy_names
from .hierarchy import ArchitectIndex, CompositionLink, CreditLink

if TYPE_CHECKING:
    from .resolver import ArchitectNameResolver

__all__ = [
    "ArchitectCredits",
    "ComposedCredits",
    "CompositeArchitect",
    "IndividualArchitect",
    "LegacyDelimitedCredits",
    "legacy_name_matches",
    "names_overlap",
    "split_legacy_names",
    "ArchitectIndex",
    "CompositionLink",
    "CreditLink",
    "ArchitectNameResolver",
]
