#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FilterState - the immutable description of one search.

Every core function takes a FilterState instead of reading shared state. The
list facets are sets semantically: they are normalised to sorted, de-duplicated
tuples on construction so two states that select the same members compare (and
hash, and cache) as equal regardless of input order.

The URL codec mirrors the query string the UI pushes on every change:

    q, radius (omitted at default), architects, buildingTypes, prefectures,
    areas (comma-joined), hasPhotos / hasVideos ("true"), lat + lng (only
    together), year, excludeResidential ("false" only when switched off),
    page (omitted at 1)

Malformed numbers are ignored rather than rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import parse_qs, urlencode

from config.constant import DEFAULT_RADIUS_KM

SET_FIELDS = ("architects", "building_types", "prefectures", "areas")

# FilterState attribute -> URL parameter
_URL_SET_PARAMS = {
    "architects": "architects",
    "building_types": "buildingTypes",
    "prefectures": "prefectures",
    "areas": "areas",
}


def _as_set_tuple(values: Any) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    cleaned = {str(v).strip() for v in values if v is not None and str(v).strip()}
    return tuple(sorted(cleaned))


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class FilterState:
    query: str = ""
    radius: float = DEFAULT_RADIUS_KM
    current_location: Optional[GeoPoint] = None
    architects: Tuple[str, ...] = field(default_factory=tuple)
    building_types: Tuple[str, ...] = field(default_factory=tuple)
    prefectures: Tuple[str, ...] = field(default_factory=tuple)
    areas: Tuple[str, ...] = field(default_factory=tuple)
    has_photos: bool = False
    has_videos: bool = False
    completion_year: Optional[int] = None
    exclude_residential: bool = True

    def __post_init__(self):
        for name in SET_FIELDS:
            object.__setattr__(self, name, _as_set_tuple(getattr(self, name)))
        object.__setattr__(self, "query", self.query or "")
        if self.radius is None or self.radius <= 0 or math.isnan(self.radius):
            object.__setattr__(self, "radius", DEFAULT_RADIUS_KM)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        return self.query.strip()

    @property
    def has_location(self) -> bool:
        return self.current_location is not None

    def has_active_facets(self) -> bool:
        return bool(
            self.text
            or self.current_location is not None
            or self.architects
            or self.building_types
            or self.prefectures
            or self.areas
            or self.has_photos
            or self.has_videos
            or self.completion_year is not None
            or self.exclude_residential
        )

    def with_changes(self, **changes: Any) -> "FilterState":
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Serialisation (cache keys, history fragments)
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "radius": self.radius,
            "current_location": (
                self.current_location.to_dict() if self.current_location else None
            ),
            "architects": list(self.architects),
            "building_types": list(self.building_types),
            "prefectures": list(self.prefectures),
            "areas": list(self.areas),
            "has_photos": self.has_photos,
            "has_videos": self.has_videos,
            "completion_year": self.completion_year,
            "exclude_residential": self.exclude_residential,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterState":
        location = data.get("current_location")
        return cls(
            query=data.get("query", ""),
            radius=data.get("radius", DEFAULT_RADIUS_KM),
            current_location=(
                GeoPoint(float(location["lat"]), float(location["lng"]))
                if location else None
            ),
            architects=data.get("architects") or (),
            building_types=data.get("building_types") or (),
            prefectures=data.get("prefectures") or (),
            areas=data.get("areas") or (),
            has_photos=bool(data.get("has_photos", False)),
            has_videos=bool(data.get("has_videos", False)),
            completion_year=data.get("completion_year"),
            exclude_residential=bool(data.get("exclude_residential", True)),
        )


# ============================================================================
# URL CODEC
# ============================================================================


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not str(raw).strip():
        return None
    try:
        number = float(raw)
    except ValueError:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    text = str(raw).strip()
    if not text.lstrip("-").isdigit():
        return None
    return int(text)


def _split_param(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return _as_set_tuple(raw.split(","))


def to_query_params(filters: FilterState, page: int = 1) -> Dict[str, str]:
    """Encode a FilterState (and page) as URL query parameters."""
    params: Dict[str, str] = {}
    if filters.text:
        params["q"] = filters.query
    if filters.radius != DEFAULT_RADIUS_KM:
        params["radius"] = _format_number(filters.radius)
    for attr, key in _URL_SET_PARAMS.items():
        values = getattr(filters, attr)
        if values:
            params[key] = ",".join(values)
    if filters.has_photos:
        params["hasPhotos"] = "true"
    if filters.has_videos:
        params["hasVideos"] = "true"
    if filters.current_location is not None:
        params["lat"] = _format_number(filters.current_location.lat)
        params["lng"] = _format_number(filters.current_location.lng)
    if filters.completion_year is not None:
        params["year"] = str(filters.completion_year)
    if not filters.exclude_residential:
        params["excludeResidential"] = "false"
    if page and page != 1:
        params["page"] = str(page)
    return params


def from_query_params(params: Mapping[str, Any]) -> Tuple[FilterState, int]:
    """
    Decode URL query parameters into (FilterState, page).

    Accepts plain ``{key: value}`` mappings or ``parse_qs`` output
    (``{key: [value, ...]}``); for lists the first value wins.
    """
    def get(key: str) -> Optional[str]:
        value = params.get(key)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return None if value is None else str(value)

    radius = _parse_float(get("radius"))
    lat = _parse_float(get("lat"))
    lng = _parse_float(get("lng"))
    location = None
    if lat is not None and lng is not None and abs(lat) <= 90 and abs(lng) <= 180:
        location = GeoPoint(lat, lng)

    page = _parse_int(get("page"))
    filters = FilterState(
        query=get("q") or "",
        radius=radius if radius is not None and radius > 0 else DEFAULT_RADIUS_KM,
        current_location=location,
        architects=_split_param(get("architects")),
        building_types=_split_param(get("buildingTypes")),
        prefectures=_split_param(get("prefectures")),
        areas=_split_param(get("areas")),
        has_photos=get("hasPhotos") == "true",
        has_videos=get("hasVideos") == "true",
        completion_year=_parse_int(get("year")),
        exclude_residential=get("excludeResidential") != "false",
    )
    return filters, page if page is not None and page >= 1 else 1


def to_query_string(filters: FilterState, page: int = 1) -> str:
    return urlencode(to_query_params(filters, page))


def from_query_string(query_string: str) -> Tuple[FilterState, int]:
    return from_query_params(parse_qs(query_string.lstrip("?")))


def merge_sets(current: Iterable[str], *more: Iterable[str]) -> Tuple[str, ...]:
    """Union of facet selections, normalised like FilterState does."""
    combined = list(current)
    for values in more:
        combined.extend(values)
    return _as_set_tuple(combined)


__all__ = [
    "GeoPoint",
    "FilterState",
    "to_query_params",
    "from_query_params",
    "to_query_string",
    "from_query_string",
    "merge_sets",
]
