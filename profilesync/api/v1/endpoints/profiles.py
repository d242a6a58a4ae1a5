"""
Profile Management Endpoints

Endpoints for listing, importing, selecting and enhancing profiles.

@.architecture
Incoming: api/v1/router.py, Frontend (HTTP GET/POST/PUT) --- {HTTP requests to /v1/profiles, /v1/profiles/import, /v1/profiles/select, /v1/profiles/enhance, /v1/profiles/chain, /v1/profiles/{uid}/chain, /v1/runtime/logs, /v1/notices}
Processing: get_profiles(), import_profile(), select_profile(), enhance_profiles(), update_chain(), edit_chain_entry(), get_runtime_logs(), get_notices() --- {4 jobs: dependency_injection, action_dispatch, result_mapping, serialization}
Outgoing: core/sync/controller.py, Frontend (HTTP) --- {controller actions, JSONResponse with ActionResponse, ProfileListResponse, RuntimeLogsResponse, NoticesResponse}
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ....core.sync.cache import PROFILES_KEY, RUNTIME_LOGS_KEY
from ....core.sync.controller import ActivationController
from ....core.sync.notifications import NoticeBoard
from ....core.sync.results import ActionResult, ActionStatus
from ....monitoring import get_logger
from ...dependencies import get_controller, setup_request_context
from ...middleware.error_handler import status_for_error
from ..schemas.common import ActionResponse
from ..schemas.profiles import (
    ChainActionRequest,
    ImportProfileRequest,
    NoticeResponse,
    NoticesResponse,
    ProfileListResponse,
    RuntimeLogEntry,
    RuntimeLogsResponse,
    SelectProfileRequest,
    UpdateChainRequest,
    serialize_item,
)

logger = get_logger(__name__)
router = APIRouter(tags=["profiles"])


def action_response(result: ActionResult) -> JSONResponse:
    """Map an action result onto an HTTP response."""
    if result.status is ActionStatus.DROPPED:
        status_code = 409
    elif result.status is ActionStatus.FAILED:
        status_code = status_for_error(result.error)
    else:
        status_code = 200

    body = ActionResponse.from_result(result)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# =============================================================================
# Profile Set
# =============================================================================

@router.get(
    "/profiles",
    response_model=ProfileListResponse,
    summary="List profiles",
    description="Profile set split into regular profiles and the ordered enhancement chain"
)
async def get_profiles(
    refresh: bool = Query(default=False, description="Refetch from the profile store"),
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> ProfileListResponse:
    if refresh:
        profile_set = await controller.cache.refresh(PROFILES_KEY)
    else:
        profile_set = await controller.cache.get(PROFILES_KEY)

    return ProfileListResponse(
        current=profile_set.current,
        chain=list(profile_set.chain),
        regular=[serialize_item(item) for item in controller.regular_items],
        enhanced=[serialize_item(item) for item in controller.enhance_items],
    )


@router.post(
    "/profiles/import",
    summary="Import remote profile",
    description="Import a profile from a subscription URL; the first remote profile becomes current"
)
async def import_profile(
    request: ImportProfileRequest,
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> JSONResponse:
    result = await controller.import_profile(request.url)
    logger.info(f"Import finished: {result.status.value}", url=request.url)
    return action_response(result)


@router.post(
    "/profiles/select",
    summary="Select profile",
    description="Make a regular profile current"
)
async def select_profile(
    request: SelectProfileRequest,
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> JSONResponse:
    result = await controller.select(request.uid, force=request.force)
    return action_response(result)


@router.post(
    "/profiles/enhance",
    summary="Re-apply enhancements",
    description="Run the enhancement chain against the current profile"
)
async def enhance_profiles(
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> JSONResponse:
    result = await controller.enhance()
    return action_response(result)


# =============================================================================
# Enhancement Chain
# =============================================================================

@router.put(
    "/profiles/chain",
    summary="Replace enhancement chain"
)
async def update_chain(
    request: UpdateChainRequest,
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> JSONResponse:
    result = await controller.update_chain(request.chain)
    return action_response(result)


@router.post(
    "/profiles/{uid}/chain",
    summary="Edit chain entry",
    description="Activate, deactivate or move one enhancement profile"
)
async def edit_chain_entry(
    uid: str,
    request: ChainActionRequest,
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> JSONResponse:
    actions = {
        "activate": controller.activate_enhancement,
        "deactivate": controller.deactivate_enhancement,
        "top": controller.move_enhancement_to_top,
        "end": controller.move_enhancement_to_end,
    }
    result = await actions[request.action](uid)
    return action_response(result)


# =============================================================================
# Runtime Logs & Notices
# =============================================================================

@router.get(
    "/runtime/logs",
    response_model=RuntimeLogsResponse,
    summary="Enhancement logs"
)
async def get_runtime_logs(
    controller: ActivationController = Depends(get_controller),
    _context: dict = Depends(setup_request_context)
) -> RuntimeLogsResponse:
    logs = await controller.cache.get(RUNTIME_LOGS_KEY)
    return RuntimeLogsResponse(
        logs={
            uid: [RuntimeLogEntry(level=level, message=message) for level, message in entries]
            for uid, entries in (logs or {}).items()
        }
    )


@router.get(
    "/notices",
    response_model=NoticesResponse,
    summary="Recent notices"
)
async def get_notices(
    limit: int = Query(default=20, ge=0, le=200),
    controller: ActivationController = Depends(get_controller)
) -> NoticesResponse:
    notices = []
    if isinstance(controller.notices, NoticeBoard):
        notices = [
            NoticeResponse(**notice.to_dict())
            for notice in controller.notices.recent(limit)
        ]
    return NoticesResponse(notices=notices, count=len(notices))
