#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Building record - the immutable snapshot every search path returns.

Rows from the data store are converted into ``Building`` by
``building.transform``; geo search attaches ``distance`` with
``dataclasses.replace``. Nothing in the engine mutates a Building.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from architects.model import (
    ArchitectCredits,
    ComposedCredits,
    LegacyDelimitedCredits,
    credits_from_dict,
)
from config.constant import RESIDENTIAL_TYPE_EN, RESIDENTIAL_TYPE_JA


# Backend column per language-selected field
LANGUAGE_COLUMNS: Dict[str, Dict[str, str]] = {
    "ja": {
        "title": "title",
        "location": "location",
        "building_types": "buildingTypes",
        "prefecture": "prefectures",
        "area": "areas",
    },
    "en": {
        "title": "titleEn",
        "location": "locationEn_from_datasheetChunkEn",
        "building_types": "buildingTypesEn",
        "prefecture": "prefecturesEn",
        "area": "areasEn",
    },
}


def column_for(field_name: str, language: str) -> str:
    return LANGUAGE_COLUMNS.get(language, LANGUAGE_COLUMNS["ja"])[field_name]


@dataclass(frozen=True)
class Photo:
    photo_id: int
    building_id: int
    url: str = ""
    thumbnail_url: str = ""
    likes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "photo_id": self.photo_id,
            "building_id": self.building_id,
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "likes": self.likes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Photo":
        return cls(
            photo_id=int(data["photo_id"]),
            building_id=int(data["building_id"]),
            url=data.get("url", ""),
            thumbnail_url=data.get("thumbnail_url", ""),
            likes=int(data.get("likes", 0)),
        )


@dataclass(frozen=True)
class Building:
    building_id: int
    lat: float
    lng: float
    title: str = ""
    title_en: str = ""
    uid: str = ""
    slug: str = ""
    thumbnail_url: str = ""
    youtube_url: str = ""
    completion_year: Optional[int] = None
    parent_building_types: Tuple[str, ...] = ()
    building_types: Tuple[str, ...] = ()
    building_types_en: Tuple[str, ...] = ()
    parent_structures: Tuple[str, ...] = ()
    structures: Tuple[str, ...] = ()
    prefecture: str = ""
    prefecture_en: str = ""
    area: str = ""
    area_en: str = ""
    location: str = ""
    location_en: str = ""
    architect_details: str = ""
    credits: ArchitectCredits = field(default_factory=LegacyDelimitedCredits)
    photos: Tuple[Photo, ...] = ()
    likes: int = 0
    distance: Optional[float] = None
    created_at: str = ""
    updated_at: str = ""

    # ------------------------------------------------------------------
    # Language-selected fields (no cross-language fallback)
    # ------------------------------------------------------------------

    def location_for(self, language: str) -> str:
        return self.location_en if language == "en" else self.location

    def prefecture_for(self, language: str) -> str:
        return self.prefecture_en if language == "en" else self.prefecture

    def area_for(self, language: str) -> str:
        return self.area_en if language == "en" else self.area

    def building_types_for(self, language: str) -> Tuple[str, ...]:
        return self.building_types_en if language == "en" else self.building_types

    def display_title(self, language: str) -> str:
        if language == "en" and self.title_en:
            return self.title_en
        return self.title

    # ------------------------------------------------------------------
    # Derived facts
    # ------------------------------------------------------------------

    @property
    def photo_count(self) -> int:
        """Attached photos, counting the thumbnail when nothing else is attached."""
        if self.photos:
            return len(self.photos)
        return 1 if self.thumbnail_url.strip() else 0

    @property
    def has_photos(self) -> bool:
        return self.photo_count > 0

    @property
    def has_video(self) -> bool:
        return bool(self.youtube_url.strip())

    @property
    def is_residential(self) -> bool:
        if any(t.strip() == RESIDENTIAL_TYPE_JA for t in self.building_types):
            return True
        return any(
            t.strip().lower() == RESIDENTIAL_TYPE_EN for t in self.building_types_en
        )

    @property
    def is_legacy(self) -> bool:
        return isinstance(self.credits, LegacyDelimitedCredits)

    def architect_names(self) -> Tuple[str, ...]:
        return self.credits.names()

    # ------------------------------------------------------------------
    # Serialisation (query cache)
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "building_id": self.building_id,
            "lat": self.lat,
            "lng": self.lng,
            "title": self.title,
            "title_en": self.title_en,
            "uid": self.uid,
            "slug": self.slug,
            "thumbnail_url": self.thumbnail_url,
            "youtube_url": self.youtube_url,
            "completion_year": self.completion_year,
            "parent_building_types": list(self.parent_building_types),
            "building_types": list(self.building_types),
            "building_types_en": list(self.building_types_en),
            "parent_structures": list(self.parent_structures),
            "structures": list(self.structures),
            "prefecture": self.prefecture,
            "prefecture_en": self.prefecture_en,
            "area": self.area,
            "area_en": self.area_en,
            "location": self.location,
            "location_en": self.location_en,
            "architect_details": self.architect_details,
            "credits": self.credits.to_dict(),
            "photos": [p.to_dict() for p in self.photos],
            "likes": self.likes,
            "distance": self.distance,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Building":
        tuple_fields = (
            "parent_building_types",
            "building_types",
            "building_types_en",
            "parent_structures",
            "structures",
        )
        kwargs = dict(data)
        for name in tuple_fields:
            kwargs[name] = tuple(kwargs.get(name) or ())
        kwargs["credits"] = credits_from_dict(kwargs.get("credits") or {})
        kwargs["photos"] = tuple(
            Photo.from_dict(p) for p in kwargs.get("photos") or ()
        )
        return cls(**kwargs)

    def __repr__(self) -> str:
        return (
            f"Building(id={self.building_id}, title={self.title!r}, "
            f"lat={self.lat}, lng={self.lng}, distance={self.distance})"
        )


__all__ = [
    "LANGUAGE_COLUMNS",
    "column_for",
    "Photo",
    "Building",
    "ComposedCredits",
    "LegacyDelimitedCredits",
]
