"""
Health Check Endpoints

@.architecture
Incoming: api/v1/router.py, Frontend (HTTP GET), Load Balancers --- {HTTP requests to /v1/health, /v1/health/detailed, /v1/health/{component}}
Processing: health_check(), detailed_health_check(), check_component_health() --- {2 jobs: component_checking, health_monitoring}
Outgoing: monitoring/health.py, Frontend (HTTP) --- {SimpleHealthResponse, HealthCheckResponse, ComponentHealth schemas}
"""

import time

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ....monitoring import HealthChecker, HealthStatus, get_logger
from ...dependencies import get_health_checker, setup_request_context
from ..schemas.health import ComponentHealth, HealthCheckResponse, SimpleHealthResponse

logger = get_logger(__name__)
router = APIRouter(tags=["health"])

START_TIME = time.time()


@router.get(
    "/health",
    response_model=SimpleHealthResponse,
    summary="Simple health check",
    description="Quick liveness check"
)
async def health_check() -> SimpleHealthResponse:
    return SimpleHealthResponse(
        status="ok",
        timestamp=time.time(),
        uptime_seconds=time.time() - START_TIME
    )


@router.get(
    "/health/detailed",
    response_model=HealthCheckResponse,
    summary="Detailed health check",
    description="Health of the profile store and the proxy runtime"
)
async def detailed_health_check(
    response: Response,
    checker: HealthChecker = Depends(get_health_checker),
    _context: dict = Depends(setup_request_context)
) -> HealthCheckResponse:
    """
    Aggregated component health.

    Answers 503 when any component is unhealthy so that probes can use the
    status code alone.
    """
    result = await checker.check_all()
    if result['status'] == HealthStatus.UNHEALTHY.value:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check reported unhealthy components")
    return HealthCheckResponse(**result)


@router.get(
    "/health/{component}",
    response_model=ComponentHealth,
    summary="Component health check"
)
async def check_component_health(
    component: str,
    checker: HealthChecker = Depends(get_health_checker)
) -> ComponentHealth:
    result = await checker.check_component(component)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown component: {component}"
        )
    return ComponentHealth(**result.to_dict())
