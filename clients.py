#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Client initialisation for the PostgREST data store and Redis.
"""

import os
from typing import Optional

import httpx
from redis.asyncio import Redis

from archimap_exceptions import ConfigError
from config.constant import HTTP_TIMEOUT_S


class ClientManager:
    """Manages lazy-loaded clients for the data store and Redis."""

    _http: Optional[httpx.AsyncClient] = None
    _redis: Optional[Redis] = None

    @classmethod
    def get_http(cls, timeout_s: float = HTTP_TIMEOUT_S) -> httpx.AsyncClient:
        """
        Lazy-load the PostgREST HTTP client.
        Only creates client when first needed.
        """
        if cls._http is not None:
            return cls._http

        base_url = os.environ.get("SUPABASE_URL", "").rstrip("/")
        api_key = os.environ.get("SUPABASE_ANON_KEY")
        if not base_url or not api_key:
            raise ConfigError(
                "SUPABASE_URL or SUPABASE_ANON_KEY is not set. "
                "Set them in the environment or pass a store explicitly in tests."
            )

        cls._http = httpx.AsyncClient(
            base_url=f"{base_url}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout_s),
        )
        return cls._http

    @classmethod
    def get_redis(cls) -> Redis:
        """
        Lazy-load Redis client.
        Only creates client when first needed.
        """
        if cls._redis is not None:
            return cls._redis
        redis_host = os.environ.get("REDIS_HOST")
        redis_port = os.environ.get("REDIS_PORT", "")
        redis_username = os.environ.get("REDIS_USERNAME", "")
        redis_password = os.environ.get("REDIS_PASSWORD", "")

        if not redis_host or not redis_port:
            raise ConfigError(
                "REDIS_HOST or REDIS_PORT not set"
            )
        try:
            port = int(redis_port)
        except ValueError as exc:
            raise ConfigError(f"Invalid REDIS_PORT: {redis_port}") from exc

        cls._redis = Redis(
            host=redis_host,
            port=port,
            decode_responses=True,
            username=redis_username or None,
            password=redis_password or None,
            health_check_interval=30,
        )
        return cls._redis

    @classmethod
    async def close(cls) -> None:
        """Close any open clients (used by the CLI on exit)."""
        if cls._http is not None:
            await cls._http.aclose()
            cls._http = None
        if cls._redis is not None:
            await cls._redis.aclose()
            cls._redis = None


def get_http() -> httpx.AsyncClient:
    """Lazy-load the data store HTTP client."""
    return ClientManager.get_http()


def get_redis() -> Redis:
    """Lazy-load Redis client."""
    return ClientManager.get_redis()
