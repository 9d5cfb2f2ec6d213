#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Row -> Building transformation.

Two list encodings live side by side in a building row and must never be
mixed up:

    buildingTypes / buildingTypesEn      slash-delimited   "住宅/美術館"
    parentBuildingTypes / structures ... comma-delimited   "文化施設, 住宅"

A row without usable coordinates is invalid. ``transform_building`` raises
``InvalidRecordError`` for it; ``transform_rows`` logs and skips it so one bad
record never fails a page.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from archimap_exceptions import InvalidRecordError
from architects.model import (
    ArchitectCredits,
    ComposedCredits,
    CompositeArchitect,
    IndividualArchitect,
    LegacyDelimitedCredits,
)
from config.constant import BUILDING_TYPE_DELIMITER, CATEGORY_DELIMITER
from .record import Building, Photo

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^\s*(\d{3,4})\s*$")


# ============================================================================
# FIELD PARSERS
# ============================================================================


def _split(value: Any, delimiter: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        parts: Iterable[Any] = value
    else:
        parts = str(value).split(delimiter)
    return tuple(str(p).strip() for p in parts if p is not None and str(p).strip())


def parse_comma_separated(value: Any) -> Tuple[str, ...]:
    """Generic category fields: parentBuildingTypes, parentStructures, structures."""
    return _split(value, CATEGORY_DELIMITER)


def parse_slash_separated(value: Any) -> Tuple[str, ...]:
    """Building type fields: buildingTypes, buildingTypesEn."""
    return _split(value, BUILDING_TYPE_DELIMITER)


def parse_year(value: Any) -> Optional[int]:
    """Completion year from a nullable string. Malformed values yield None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    match = _YEAR_RE.match(str(value))
    return int(match.group(1)) if match else None


def parse_coordinate(value: Any, name: str, limit: float) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRecordError(f"{name} is missing")
    if isinstance(value, bool):
        raise InvalidRecordError(f"{name} is not numeric: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRecordError(f"{name} is not numeric: {value!r}") from exc
    if math.isnan(number) or math.isinf(number):
        raise InvalidRecordError(f"{name} is not finite: {value!r}")
    if abs(number) > limit:
        raise InvalidRecordError(f"{name} out of range: {number}")
    return number


def _text(row: Dict[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float_or_none(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


# ============================================================================
# ARCHITECT CREDITS
# ============================================================================


def _parse_individual(relation: Dict[str, Any]) -> Optional[IndividualArchitect]:
    names = relation.get("architect_names")
    if isinstance(names, list):
        names = names[0] if names else None
    if not isinstance(names, dict) or names.get("name_id") is None:
        return None
    return IndividualArchitect(
        individual_id=_int(names.get("name_id")),
        name_ja=_text(names, "architect_name"),
        name_en=_text(names, "architect_name_en"),
        slug=_text(names, "slug"),
        order_index=_int(relation.get("order_index")),
    )


def _parse_composite(credit: Dict[str, Any]) -> Optional[CompositeArchitect]:
    comp = credit.get("architects_table")
    if isinstance(comp, list):
        comp = comp[0] if comp else None
    if not isinstance(comp, dict):
        return None
    members = [
        m for m in (
            _parse_individual(rel)
            for rel in comp.get("architect_name_relations") or []
        ) if m is not None
    ]
    members.sort(key=lambda m: m.order_index)
    return CompositeArchitect(
        composite_id=_int(comp.get("architect_id", credit.get("architect_id"))),
        name_ja=_text(comp, "architectJa"),
        name_en=_text(comp, "architectEn"),
        slug=_text(comp, "slug"),
        credit_order=_int(credit.get("architect_order")),
        members=tuple(members),
    )


def parse_credits(row: Dict[str, Any]) -> ArchitectCredits:
    """
    Pick the credit variant from the record's migration state: credit rows
    present means composed, otherwise the legacy delimited string.
    """
    credit_rows = row.get("building_architects") or []
    composites = [
        c for c in (_parse_composite(cr) for cr in credit_rows) if c is not None
    ]
    if composites:
        composites.sort(key=lambda c: c.credit_order)
        return ComposedCredits(composites=tuple(composites))
    return LegacyDelimitedCredits(raw=_text(row, "architectDetails"))


def _parse_photos(row: Dict[str, Any], building_id: int) -> Tuple[Photo, ...]:
    photos = []
    for item in row.get("photos") or []:
        if not isinstance(item, dict) or item.get("id") is None:
            continue
        photos.append(Photo(
            photo_id=_int(item.get("id")),
            building_id=_int(item.get("building_id"), building_id),
            url=_text(item, "url"),
            thumbnail_url=_text(item, "thumbnail_url"),
            likes=_int(item.get("likes")),
        ))
    return tuple(photos)


# ============================================================================
# TRANSFORMATION
# ============================================================================


def transform_building(row: Dict[str, Any]) -> Building:
    """Convert one backend row into a Building, or raise InvalidRecordError."""
    if not isinstance(row, dict):
        raise InvalidRecordError(f"Row is not a mapping: {type(row).__name__}")
    if row.get("building_id") is None:
        raise InvalidRecordError("building_id is missing")
    try:
        building_id = int(row["building_id"])
    except (TypeError, ValueError) as exc:
        raise InvalidRecordError(
            f"building_id is not an integer: {row['building_id']!r}") from exc

    lat = parse_coordinate(row.get("lat"), "lat", 90.0)
    lng = parse_coordinate(row.get("lng"), "lng", 180.0)

    return Building(
        building_id=building_id,
        lat=lat,
        lng=lng,
        title=_text(row, "title"),
        title_en=_text(row, "titleEn"),
        uid=_text(row, "uid"),
        slug=_text(row, "slug"),
        thumbnail_url=_text(row, "thumbnailUrl"),
        youtube_url=_text(row, "youtubeUrl"),
        completion_year=parse_year(row.get("completionYears")),
        parent_building_types=parse_comma_separated(row.get("parentBuildingTypes")),
        building_types=parse_slash_separated(row.get("buildingTypes")),
        building_types_en=parse_slash_separated(row.get("buildingTypesEn")),
        parent_structures=parse_comma_separated(row.get("parentStructures")),
        structures=parse_comma_separated(row.get("structures")),
        prefecture=_text(row, "prefectures"),
        prefecture_en=_text(row, "prefecturesEn"),
        area=_text(row, "areas"),
        area_en=_text(row, "areasEn"),
        location=_text(row, "location"),
        location_en=_text(row, "locationEn_from_datasheetChunkEn"),
        architect_details=_text(row, "architectDetails"),
        credits=parse_credits(row),
        photos=_parse_photos(row, building_id),
        likes=_int(row.get("likes")),
        distance=_float_or_none(row.get("distance")),
        created_at=_text(row, "created_at"),
        updated_at=_text(row, "updated_at"),
    )


def transform_rows(rows: Iterable[Dict[str, Any]]) -> List[Building]:
    """Transform a page of rows, skipping (and logging) invalid records."""
    buildings: List[Building] = []
    for row in rows:
        try:
            buildings.append(transform_building(row))
        except InvalidRecordError as exc:
            row_id = row.get("building_id") if isinstance(row, dict) else None
            logger.warning("Skipping invalid building record %s: %s", row_id, exc)
    return buildings


__all__ = [
    "parse_comma_separated",
    "parse_slash_separated",
    "parse_year",
    "parse_coordinate",
    "parse_credits",
    "transform_building",
    "transform_rows",
]
