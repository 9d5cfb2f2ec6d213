#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Constants for Archimap search configuration.
"""

from __future__ import annotations

# ===========================================================================
# BACKEND TABLES
# ===========================================================================
BUILDINGS_TABLE = "buildings_table_2"
COMPOSITE_ARCHITECTS_TABLE = "architects_table"
BUILDING_CREDITS_TABLE = "building_architects"
INDIVIDUAL_ARCHITECTS_TABLE = "architect_names"
ARCHITECT_COMPOSITION_TABLE = "architect_name_relations"
PHOTOS_TABLE = "photos"
GEO_RANKING_RPC = "search_buildings_with_distance"

# Embedded select used for every building fetch
BUILDING_SELECT = (
    "*,"
    "building_architects(architect_id,architect_order,"
    "architects_table(architect_id,architectJa,architectEn,slug,"
    "architect_name_relations(order_index,"
    "architect_names(name_id,architect_name,architect_name_en,slug)))),"
    "photos(*)"
)

# ===========================================================================
# SEARCH DEFAULTS
# ===========================================================================
DEFAULT_RADIUS_KM = 5
DEFAULT_PAGE_SIZE = 10
DEFAULT_LANGUAGE = "ja"
SEARCH_HISTORY_LIMIT = 20
SUGGESTION_LIMIT = 10
POPULAR_SEARCH_LIMIT = 10
PAGINATION_WINDOW = 2
PAGINATION_ELLIPSIS = "..."

# ===========================================================================
# GEO SEARCH
# ===========================================================================
EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.32
GEO_PRIMARY_TIMEOUT_S = 30.0
# Re-filter bounding-box candidates by exact haversine radius
GEO_FALLBACK_RECLIP = True

# ===========================================================================
# TEXT / CATEGORY PARSING
# ===========================================================================
FULL_WIDTH_SPACE = "　"
BUILDING_TYPE_DELIMITER = "/"
CATEGORY_DELIMITER = ","
RESIDENTIAL_TYPE_JA = "住宅"
RESIDENTIAL_TYPE_EN = "housing"

# ===========================================================================
# CACHE / DEBOUNCE
# ===========================================================================
QUERY_CACHE_TTL_SECONDS = 60
QUERY_CACHE_PREFIX = "archimap:query:"
QUERY_CACHE_MAX_ENTRIES = 500
SEARCH_HISTORY_KEY = "archimap:history"
LOCAL_FILTER_DEBOUNCE_S = 0.5
HTTP_TIMEOUT_S = 30.0

__all__ = [
    "BUILDINGS_TABLE",
    "COMPOSITE_ARCHITECTS_TABLE",
    "BUILDING_CREDITS_TABLE",
    "INDIVIDUAL_ARCHITECTS_TABLE",
    "ARCHITECT_COMPOSITION_TABLE",
    "PHOTOS_TABLE",
    "GEO_RANKING_RPC",
    "BUILDING_SELECT",
    "DEFAULT_RADIUS_KM",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_LANGUAGE",
    "SEARCH_HISTORY_LIMIT",
    "SUGGESTION_LIMIT",
    "POPULAR_SEARCH_LIMIT",
    "PAGINATION_WINDOW",
    "PAGINATION_ELLIPSIS",
    "EARTH_RADIUS_KM",
    "KM_PER_DEGREE",
    "GEO_PRIMARY_TIMEOUT_S",
    "GEO_FALLBACK_RECLIP",
    "FULL_WIDTH_SPACE",
    "BUILDING_TYPE_DELIMITER",
    "CATEGORY_DELIMITER",
    "RESIDENTIAL_TYPE_JA",
    "RESIDENTIAL_TYPE_EN",
    "QUERY_CACHE_TTL_SECONDS",
    "QUERY_CACHE_PREFIX",
    "QUERY_CACHE_MAX_ENTRIES",
    "SEARCH_HISTORY_KEY",
    "LOCAL_FILTER_DEBOUNCE_S",
    "HTTP_TIMEOUT_S",
]
