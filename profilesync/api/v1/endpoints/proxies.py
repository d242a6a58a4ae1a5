"""
Proxy Endpoints

Read-only view of the proxy runtime's groups.

@.architecture
Incoming: api/v1/router.py, Frontend (HTTP GET) --- {HTTP requests to /v1/proxies}
Processing: get_proxies() --- {2 jobs: cache_lookup, serialization}
Outgoing: core/sync/cache.py, Frontend (HTTP) --- {ProxiesResponse}
"""

from fastapi import APIRouter, Depends, Query

from ....core.sync.cache import PROXIES_KEY
from ....core.sync.controller import ActivationController
from ...dependencies import get_controller, setup_request_context
from ..schemas.profiles import ProxiesResponse, ProxyGroupResponse

router = APIRouter(tags=["proxies"])


@router.get(
    "/proxies",
    response_model=ProxiesResponse,
    summary="List proxy groups",
    description="Proxy groups as last seen in the runtime, global selector first"
)
async def get_proxies(
    refresh: bool = Query(default=False, description="Refetch from the proxy runtime"),
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> ProxiesResponse:
    if refresh:
        snapshot = await controller.cache.refresh(PROXIES_KEY)
    else:
        snapshot = await controller.cache.get(PROXIES_KEY)

    return ProxiesResponse(
        groups=[ProxyGroupResponse.from_group(group) for group in snapshot.all_groups()]
    )
