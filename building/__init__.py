"""
Building record package exports.
"""

from .record import LANGUAGE_COLUMNS, Building, Photo, column_for
from .transform import (
    parse_comma_separated,
    parse_slash_separated,
    parse_year,
    transform_building,
    transform_rows,
)

__all__ = [
    "LANGUAGE_COLUMNS",
    "Building",
    "Photo",
    "column_for",
    "parse_comma_separated",
    "parse_slash_separated",
    "parse_year",
    "transform_building",
    "transform_rows",
]
