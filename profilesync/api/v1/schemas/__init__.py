"""
API V1 Schemas

Pydantic models for request/response validation.
"""

from .common import (
    ActionResponse,
    HealthStatus,
)

from .health import (
    SimpleHealthResponse,
    ComponentHealth,
    HealthCheckResponse,
)

from .profiles import (
    ImportProfileRequest,
    SelectProfileRequest,
    UpdateChainRequest,
    ChainActionRequest,
    ProfileListResponse,
    ProxyGroupResponse,
    ProxiesResponse,
    RuntimeLogEntry,
    RuntimeLogsResponse,
    NoticeResponse,
    NoticesResponse,
    serialize_item,
)

__all__ = [
    # Common
    'ActionResponse',
    'HealthStatus',

    # Health
    'SimpleHealthResponse',
    'ComponentHealth',
    'HealthCheckResponse',

    # Profiles
    'ImportProfileRequest',
    'SelectProfileRequest',
    'UpdateChainRequest',
    'ChainActionRequest',
    'ProfileListResponse',
    'ProxyGroupResponse',
    'ProxiesResponse',
    'RuntimeLogEntry',
    'RuntimeLogsResponse',
    'NoticeResponse',
    'NoticesResponse',
    'serialize_item',
]
