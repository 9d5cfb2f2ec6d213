import asyncio

import httpx


class ArchimapError(Exception):
    """Base exception for Archimap search."""


class ConfigError(ArchimapError):
    """Raised when configuration is missing or invalid."""


class InvalidRecordError(ArchimapError):
    """Raised when a single backend row cannot be turned into a Building."""


class BackendError(ArchimapError):
    """Raised when a backend call fails (bad status, malformed payload)."""


class BackendUnavailableError(BackendError):
    """Raised when the data store cannot be reached at all."""


class RankingUnavailableError(BackendError):
    """Raised when the distance ranking function fails or is missing."""


class BuildingNotFoundError(ArchimapError):
    """Raised when a building cannot be found by id or slug."""


class ArchitectNotFoundError(ArchimapError):
    """Raised when an architect slug does not resolve."""


class SearchError(ArchimapError):
    """Raised when a whole search query fails."""


def wrap_exception(error: Exception) -> BackendError:
    """
    Map non-archimap exceptions raised by store calls to BackendError types.
    Transport failures and timeouts mean the store is unreachable.
    """
    if isinstance(error, BackendError):
        return error

    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError,
                          TimeoutError, ConnectionError)):
        return BackendUnavailableError(str(error) or error.__class__.__name__)

    if isinstance(error, httpx.HTTPStatusError):
        return BackendError(
            f"HTTP {error.response.status_code}: {error.response.text[:200]}"
        )

    if isinstance(error, (ValueError, KeyError, TypeError)):
        return BackendError(f"Malformed backend payload: {error}")

    return BackendError(str(error))
