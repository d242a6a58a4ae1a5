"""
Common Schemas

Shared Pydantic models used across API endpoints.

@.architecture
Incoming: api/v1/endpoints/*.py, core/sync/results.py --- {ActionResult instances, error data}
Processing: Pydantic validation and serialization --- {2 jobs: data_validation, serialization}
Outgoing: api/v1/endpoints/*.py --- {ActionResponse, HealthStatus validated models}
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ....core.sync.results import ActionResult, ActionStatus


# =============================================================================
# Response Models
# =============================================================================

class ActionResponse(BaseModel):
    """Outcome of a controller action."""
    action: str
    status: ActionStatus
    message: Optional[str] = None
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_result(cls, result: ActionResult) -> "ActionResponse":
        return cls(**result.to_dict())


# =============================================================================
# Status Models
# =============================================================================

class HealthStatus(str, Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"
