# BuildingStore port
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

import httpx

from archimap_exceptions import (
    BackendError,
    BackendUnavailableError,
    RankingUnavailableError,
    wrap_exception,
)
from config.constant import (
    ARCHITECT_COMPOSITION_TABLE,
    BUILDING_CREDITS_TABLE,
    BUILDINGS_TABLE,
    COMPOSITE_ARCHITECTS_TABLE,
    INDIVIDUAL_ARCHITECTS_TABLE,
    PHOTOS_TABLE,
)
from search_core.query_plan import QueryPlan

logger = logging.getLogger(__name__)

RpcHandler = Callable[[Dict[str, Any]], Union[List[Dict[str, Any]], Awaitable[List[Dict[str, Any]]]]]


@dataclass
class SelectResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    # Exact count of matching rows when requested, before offset/limit
    total: Optional[int] = None


class BuildingStore(Protocol):
    async def select(
        self,
        plan: QueryPlan,
        *,
        order: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        count: bool = False,
    ) -> SelectResult: ...
    async def rpc(self, name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]: ...


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """``0-9/123`` -> 123; ``*/0`` -> 0; unknown totals -> None."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    return int(total) if total.isdigit() else None


class RestBuildingStore:
    """PostgREST (Supabase REST) store over an httpx AsyncClient."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def select(
        self,
        plan: QueryPlan,
        *,
        order: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        count: bool = False,
    ) -> SelectResult:
        params = [("select", plan.select)] + plan.to_postgrest_params()
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        if offset:
            params.append(("offset", str(offset)))
        headers = {"Prefer": "count=exact"} if count else {}

        logger.debug("GET %s", plan.describe())
        try:
            response = await self._client.get(
                f"/{plan.table}", params=params, headers=headers)
            response.raise_for_status()
            rows = response.json()
        except Exception as error:  # pylint: disable=broad-except
            raise wrap_exception(error) from error

        if not isinstance(rows, list):
            raise BackendError(f"Expected a list of rows from {plan.table}")
        total = parse_content_range(response.headers.get("content-range")) if count else None
        return SelectResult(rows=rows, total=total)

    async def rpc(self, name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            response = await self._client.post(f"/rpc/{name}", json=params)
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPStatusError as error:
            raise RankingUnavailableError(
                f"rpc {name} failed with HTTP {error.response.status_code}"
            ) from error
        except Exception as error:  # pylint: disable=broad-except
            raise wrap_exception(error) from error

        if not isinstance(rows, list):
            raise RankingUnavailableError(f"rpc {name} returned a non-list payload")
        return rows


# ============================================================================
# IN-MEMORY STORE
# ============================================================================


class InMemoryBuildingStore:
    """
    Table dicts evaluated with ``QueryPlan.matches``. Building rows get the
    same embeds the REST select asks for (credits -> composites -> members,
    photos). RPCs are served by registered handlers.
    """

    def __init__(
        self,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        *,
        rpc_handlers: Optional[Dict[str, RpcHandler]] = None,
        available: bool = True,
    ):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            k: list(v) for k, v in (tables or {}).items()
        }
        self.rpc_handlers: Dict[str, RpcHandler] = dict(rpc_handlers or {})
        self.available = available
        self.calls: List[str] = []

    def _check_available(self) -> None:
        if not self.available:
            raise BackendUnavailableError("data store is unreachable")

    # ------------------------------------------------------------------
    # Embeds
    # ------------------------------------------------------------------

    def _members(self, composite_id: Any) -> List[Dict[str, Any]]:
        names = {r.get("name_id"): r for r in self.tables.get(INDIVIDUAL_ARCHITECTS_TABLE, [])}
        out = []
        for rel in self.tables.get(ARCHITECT_COMPOSITION_TABLE, []):
            if rel.get("architect_id") != composite_id:
                continue
            out.append({
                "order_index": rel.get("order_index"),
                "architect_names": names.get(rel.get("name_id")),
            })
        return out

    def _embed_building(self, row: Dict[str, Any]) -> Dict[str, Any]:
        building_id = row.get("building_id")
        composites = {
            r.get("architect_id"): r for r in self.tables.get(COMPOSITE_ARCHITECTS_TABLE, [])
        }
        credits = []
        for credit in self.tables.get(BUILDING_CREDITS_TABLE, []):
            if credit.get("building_id") != building_id:
                continue
            comp = composites.get(credit.get("architect_id"))
            embedded = None
            if comp is not None:
                embedded = dict(comp)
                embedded["architect_name_relations"] = self._members(comp.get("architect_id"))
            credits.append({
                "architect_id": credit.get("architect_id"),
                "architect_order": credit.get("architect_order"),
                "architects_table": embedded,
            })
        out = dict(row)
        out["building_architects"] = credits
        out["photos"] = [
            dict(p) for p in self.tables.get(PHOTOS_TABLE, [])
            if p.get("building_id") == building_id
        ]
        return out

    # ------------------------------------------------------------------
    # BuildingStore
    # ------------------------------------------------------------------

    async def select(
        self,
        plan: QueryPlan,
        *,
        order: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        count: bool = False,
    ) -> SelectResult:
        self._check_available()
        self.calls.append(plan.table)
        rows = [r for r in self.tables.get(plan.table, []) if plan.matches(r)]

        if order:
            column, _, direction = order.partition(".")
            rows.sort(
                key=lambda r: (r.get(column) is None, r.get(column)),
                reverse=direction == "desc",
            )
        total = len(rows) if count else None
        end = None if limit is None else offset + limit
        rows = rows[offset:end]

        if plan.table == BUILDINGS_TABLE:
            rows = [self._embed_building(r) for r in rows]
        else:
            rows = [dict(r) for r in rows]
        return SelectResult(rows=rows, total=total)

    async def rpc(self, name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        self._check_available()
        self.calls.append(f"rpc:{name}")
        handler = self.rpc_handlers.get(name)
        if handler is None:
            raise RankingUnavailableError(f"rpc {name} is not available")
        result = handler(params)
        if inspect.isawaitable(result):
            result = await result
        return list(result)


__all__ = [
    "SelectResult",
    "BuildingStore",
    "RestBuildingStore",
    "InMemoryBuildingStore",
    "parse_content_range",
]
