"""
API Dependencies

FastAPI dependency injection functions for:
- Activation controller access
- Health checker access
- Request context setup

@.architecture
Incoming: app.py (startup_event), api/v1/endpoints/*.py --- {set_controller/set_health_checker calls, Depends() injections from endpoints}
Processing: get_controller(), get_health_checker(), setup_request_context() --- {3 jobs: context_setup, dependency_injection, resource_management}
Outgoing: api/v1/endpoints/*.py, app.py --- {ActivationController instance, HealthChecker instance, request context dict}
"""

import uuid
from typing import Optional

from fastapi import Header, HTTPException, Request

from ..core.sync.controller import ActivationController
from ..monitoring import HealthChecker, get_logger, set_request_context

logger = get_logger(__name__)


# =============================================================================
# Controller Dependencies
# =============================================================================

_controller: Optional[ActivationController] = None


def set_controller(controller: Optional[ActivationController]) -> None:
    """Set the global activation controller instance."""
    global _controller
    _controller = controller


def get_controller() -> ActivationController:
    """
    Get the activation controller instance.

    Raises:
        HTTPException: If the controller is not initialized
    """
    if _controller is None:
        logger.error("Activation controller not initialized")
        raise HTTPException(
            status_code=503,
            detail="Activation controller not initialized. Server is starting up."
        )
    return _controller


# =============================================================================
# Health Dependencies
# =============================================================================

_health_checker: Optional[HealthChecker] = None


def set_health_checker(checker: Optional[HealthChecker]) -> None:
    global _health_checker
    _health_checker = checker


def get_health_checker() -> HealthChecker:
    """Registered health checker; an empty one until startup completes."""
    global _health_checker
    if _health_checker is None:
        _health_checker = HealthChecker()
    return _health_checker


# =============================================================================
# Request Context Dependencies
# =============================================================================

async def setup_request_context(
    request: Request,
    x_request_id: Optional[str] = Header(None),
) -> dict:
    """
    Setup request context for logging.

    Args:
        request: FastAPI request object
        x_request_id: Optional request ID from header

    Returns:
        dict: Request context information
    """
    request_id = x_request_id or str(uuid.uuid4())

    set_request_context(request_id=request_id)
    request.state.request_id = request_id

    return {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path
    }
