"""
Proxy Runtime - Access to the running proxy engine

@.architecture
Incoming: core/sync/reconciler.py, core/sync/controller.py, app.py --- {snapshot requests, (group, node) selection writes, RuntimeSettings}
Processing: snapshot(), set_group_node(), check_health(), parse_clash_proxies() --- {5 jobs: group_ordering, http_communication, error_mapping, health_checking, state_simulation}
Outgoing: Clash external controller (HTTP GET /proxies, PUT /proxies/{group}), core/sync/reconciler.py --- {ProxySnapshot, NotFoundError, FetchError}

Handles:
- Reading live group state in engine order (GLOBAL first, then GLOBAL.all order)
- Per-group node selection
- In-memory engine for the memory backend and tests
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

import httpx

from ..errors import FetchError, NotFoundError
from ...utils.http import HTTPClient
from .models import GLOBAL_GROUP, ProxyGroupState, ProxySnapshot

logger = logging.getLogger(__name__)


class ProxyRuntime(ABC):
    """Contract for the running proxy engine."""

    @abstractmethod
    async def snapshot(self) -> ProxySnapshot:
        """Fetch the current state of every proxy group."""

    @abstractmethod
    async def set_group_node(self, group_name: str, node_name: str) -> None:
        """
        Select `node_name` in `group_name`.

        Raises:
            NotFoundError: If the group or node is unknown to the engine
        """

    async def check_health(self) -> Dict[str, Any]:
        return {'healthy': True, 'message': 'Proxy runtime available'}

    async def close(self) -> None:
        return None


# =============================================================================
# Clash External Controller
# =============================================================================

def parse_clash_proxies(payload: Dict[str, Any]) -> ProxySnapshot:
    """
    Build a snapshot from a Clash `GET /proxies` payload.

    Groups follow the order of GLOBAL's member list; only members that are
    themselves groups (carry an `all` list) are kept. Without a GLOBAL entry
    every group is kept in payload order.
    """
    records: Dict[str, Dict[str, Any]] = payload.get("proxies") or {}
    global_record = records.get(GLOBAL_GROUP)

    if global_record and global_record.get("all"):
        names = [
            name for name in global_record["all"]
            if (records.get(name) or {}).get("all")
        ]
    else:
        names = [
            name for name, record in records.items()
            if name != GLOBAL_GROUP and record.get("all")
        ]

    groups = [_group_state(name, records[name]) for name in names]
    global_group = _group_state(GLOBAL_GROUP, global_record) if global_record else None
    return ProxySnapshot(global_group=global_group, groups=groups)


def _group_state(name: str, record: Dict[str, Any]) -> ProxyGroupState:
    return ProxyGroupState(
        name=record.get("name") or name,
        now=record.get("now") or "",
        type=record.get("type") or "Selector",
        all=list(record.get("all") or []),
    )


class ClashProxyRuntime(ProxyRuntime):
    """
    Proxy runtime backed by the Clash external-controller REST API.

    Args:
        http: HTTP client configured with the controller base url and the
            bearer secret header
    """

    def __init__(self, http: HTTPClient):
        self._http = http

    async def snapshot(self) -> ProxySnapshot:
        try:
            response = await self._http.get("/proxies")
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Proxy runtime returned {e.response.status_code}",
                detail=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Proxy runtime unreachable: {e}") from e

        try:
            snapshot = parse_clash_proxies(response.json())
        except ValueError as e:
            raise FetchError(f"Invalid proxies payload: {e}") from e

        logger.debug(f"Fetched proxy snapshot with {len(snapshot.groups)} groups")
        return snapshot

    async def set_group_node(self, group_name: str, node_name: str) -> None:
        path = f"/proxies/{quote(group_name, safe='')}"
        try:
            await self._http.put(path, json={"name": node_name})
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (400, 404):
                raise NotFoundError(
                    f"Cannot select '{node_name}' in group '{group_name}'",
                    detail=e.response.text,
                ) from e
            raise FetchError(
                f"Proxy runtime returned {e.response.status_code} for group '{group_name}'",
                detail=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Proxy runtime unreachable: {e}") from e

        logger.info(f"Runtime group '{group_name}' -> '{node_name}'")

    async def check_health(self) -> Dict[str, Any]:
        healthy = await self._http.health_check("/version")
        return {
            'healthy': healthy,
            'message': 'Proxy runtime reachable' if healthy else 'Proxy runtime unreachable',
            'controller_url': self._http.config.base_url,
        }

    async def close(self) -> None:
        await self._http.close()


# =============================================================================
# In-Memory Engine
# =============================================================================

class InMemoryProxyRuntime(ProxyRuntime):
    """
    Proxy runtime kept in process memory.

    Every call is recorded in `calls`; successful selections also land in
    `writes`.
    """

    def __init__(
        self,
        groups: Iterable[ProxyGroupState] = (),
        global_group: Optional[ProxyGroupState] = None,
    ):
        self._groups: List[ProxyGroupState] = list(groups)
        self._global = global_group
        self.calls: List[Tuple[str, ...]] = []
        self.writes: List[Tuple[str, str]] = []

    async def snapshot(self) -> ProxySnapshot:
        self.calls.append(("snapshot",))
        return ProxySnapshot(global_group=self._global, groups=list(self._groups))

    async def set_group_node(self, group_name: str, node_name: str) -> None:
        self.calls.append(("set_group_node", group_name, node_name))
        group = self._find(group_name)
        if group is None:
            raise NotFoundError(f"Unknown proxy group '{group_name}'")
        if group.all and node_name not in group.all:
            raise NotFoundError(f"Unknown node '{node_name}' in group '{group_name}'")
        self.set_now(group_name, node_name)
        self.writes.append((group_name, node_name))

    def set_now(self, group_name: str, node_name: str) -> None:
        """Change a group's active node without recording a write."""
        if self._global is not None and self._global.name == group_name:
            self._global = self._global.model_copy(update={"now": node_name})
            return
        self._groups = [
            group.model_copy(update={"now": node_name}) if group.name == group_name else group
            for group in self._groups
        ]

    def _find(self, group_name: str) -> Optional[ProxyGroupState]:
        if self._global is not None and self._global.name == group_name:
            return self._global
        for group in self._groups:
            if group.name == group_name:
                return group
        return None
