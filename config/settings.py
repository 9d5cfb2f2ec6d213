#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration settings for Archimap search.
Environment-driven, with validation.
"""

from dataclasses import dataclass
import os

from archimap_exceptions import ConfigError
from .constant import (
    DEFAULT_LANGUAGE,
    DEFAULT_PAGE_SIZE,
    GEO_FALLBACK_RECLIP,
    GEO_PRIMARY_TIMEOUT_S,
    HTTP_TIMEOUT_S,
    LOCAL_FILTER_DEBOUNCE_S,
    QUERY_CACHE_TTL_SECONDS,
)


# Try to load a local .env if python-dotenv is available; otherwise, ignore
try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception:  # pylint: disable=broad-except
    pass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


# ===========================================================================
# SEARCH CONFIGURATION
# ===========================================================================


@dataclass
class SearchConfig:
    """Centralised configuration for the search engine."""

    supabase_url: str = ""
    supabase_key: str = ""

    redis_host: str = ""
    redis_port: int = 0
    redis_username: str = ""
    redis_password: str = ""

    page_size: int = DEFAULT_PAGE_SIZE
    language: str = DEFAULT_LANGUAGE
    use_backend: bool = True
    serve_local_on_failure: bool = True

    http_timeout_s: float = HTTP_TIMEOUT_S
    geo_primary_timeout_s: float = GEO_PRIMARY_TIMEOUT_S
    geo_fallback_reclip: bool = GEO_FALLBACK_RECLIP
    local_filter_debounce_s: float = LOCAL_FILTER_DEBOUNCE_S
    query_cache_ttl_seconds: int = QUERY_CACHE_TTL_SECONDS

    log_level: str = "INFO"

    # -----------------------------------------------------------------------
    # ENVIRONMENT LOADERS
    # -----------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "SearchConfig":
        defaults = cls()
        try:
            redis_port = int(os.getenv("REDIS_PORT") or 0)
            page_size = int(os.getenv("PAGE_SIZE", defaults.page_size))
            http_timeout = float(
                os.getenv("HTTP_TIMEOUT_S", defaults.http_timeout_s))
            geo_timeout = float(
                os.getenv("GEO_PRIMARY_TIMEOUT_S", defaults.geo_primary_timeout_s))
            debounce = float(
                os.getenv("LOCAL_FILTER_DEBOUNCE_S",
                          defaults.local_filter_debounce_s))
            cache_ttl = int(
                os.getenv("QUERY_CACHE_TTL_SECONDS",
                          defaults.query_cache_ttl_seconds))
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting: {exc}") from exc

        return cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_ANON_KEY", ""),
            redis_host=os.getenv("REDIS_HOST", ""),
            redis_port=redis_port,
            redis_username=os.getenv("REDIS_USERNAME", ""),
            redis_password=os.getenv("REDIS_PASSWORD", ""),
            page_size=page_size,
            language=os.getenv("SEARCH_LANGUAGE", defaults.language),
            use_backend=_env_bool("USE_BACKEND", defaults.use_backend),
            serve_local_on_failure=_env_bool(
                "SERVE_LOCAL_ON_FAILURE", defaults.serve_local_on_failure),
            http_timeout_s=http_timeout,
            geo_primary_timeout_s=geo_timeout,
            geo_fallback_reclip=_env_bool(
                "GEO_FALLBACK_RECLIP", defaults.geo_fallback_reclip),
            local_filter_debounce_s=debounce,
            query_cache_ttl_seconds=cache_ttl,
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        )

    @property
    def redis_enabled(self) -> bool:
        return bool(self.redis_host and self.redis_port)

    # -----------------------------------------------------------------------
    # VALIDATION
    # -----------------------------------------------------------------------

    def validate(self) -> None:
        if self.use_backend and not self.supabase_url:
            raise ConfigError("SUPABASE_URL not set")
        if self.use_backend and not self.supabase_key:
            raise ConfigError("SUPABASE_ANON_KEY not set")
        if self.page_size <= 0:
            raise ConfigError("page_size must be > 0")
        if self.language not in ("ja", "en"):
            raise ConfigError(f"Unsupported language: {self.language}")
        if self.geo_primary_timeout_s <= 0:
            raise ConfigError("geo_primary_timeout_s must be > 0")
        if self.local_filter_debounce_s < 0:
            raise ConfigError("local_filter_debounce_s must be >= 0")
        if self.query_cache_ttl_seconds < 0:
            raise ConfigError("query_cache_ttl_seconds must be >= 0")


__all__ = [
    "SearchConfig",
]
