"""
Health Check Schemas

Pydantic models for health check endpoints.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .common import HealthStatus


class SimpleHealthResponse(BaseModel):
    """Liveness response."""
    status: str
    timestamp: float
    uptime_seconds: float


class ComponentHealth(BaseModel):
    """Health status of a single component."""
    component: str
    status: HealthStatus
    message: Optional[str] = None
    response_time_ms: Optional[float] = None
    details: Optional[Dict[str, Any]] = None


class HealthCheckResponse(BaseModel):
    """Aggregated health of the profile store and the proxy runtime."""
    status: HealthStatus
    timestamp: str
    uptime_seconds: float
    check_duration_ms: float
    components: List[ComponentHealth]
