"""
Command-line entry points for building search.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .search_buildings import main, parse_args

__all__ = ["main", "parse_args"]
