"""
Profile Schemas

Request and response models for the profile, proxy, runtime-log and notice
endpoints.

@.architecture
Incoming: api/v1/endpoints/profiles.py, api/v1/endpoints/proxies.py --- {JSON request bodies, ProfileSet, ProxySnapshot, runtime logs, notices}
Processing: Pydantic validation and serialization --- {2 jobs: data_validation, serialization}
Outgoing: api/v1/endpoints/*.py --- {validated request models, response models}
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ....core.profiles.models import ProfileItem
from ....core.runtime.models import ProxyGroupState


# =============================================================================
# Requests
# =============================================================================

class ImportProfileRequest(BaseModel):
    """Import a remote profile by URL."""
    url: str = Field(..., min_length=1, max_length=2048, description="Subscription URL")


class SelectProfileRequest(BaseModel):
    """Make a regular profile current."""
    uid: str = Field(..., min_length=1, description="Regular profile uid")
    force: bool = Field(default=False, description="Re-select even if already current")


class UpdateChainRequest(BaseModel):
    """Replace the enhancement chain."""
    chain: List[str] = Field(default_factory=list, description="Ordered enhancement uids")


class ChainActionRequest(BaseModel):
    """Edit one enhancement's position in the chain."""
    action: Literal["activate", "deactivate", "top", "end"]


# =============================================================================
# Responses
# =============================================================================

def serialize_item(item: ProfileItem) -> Dict[str, Any]:
    """Wire form of a profile item (selected entries as name/now)."""
    return item.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProfileListResponse(BaseModel):
    """Classified view of the profile set."""
    current: Optional[str] = None
    chain: List[str] = Field(default_factory=list)
    regular: List[Dict[str, Any]] = Field(default_factory=list)
    enhanced: List[Dict[str, Any]] = Field(default_factory=list)


class ProxyGroupResponse(BaseModel):
    name: str
    now: str
    type: str
    all: List[str]

    @classmethod
    def from_group(cls, group: ProxyGroupState) -> "ProxyGroupResponse":
        return cls(name=group.name, now=group.now, type=group.type, all=list(group.all))


class ProxiesResponse(BaseModel):
    """Runtime proxy groups, global selector first."""
    groups: List[ProxyGroupResponse]


class RuntimeLogEntry(BaseModel):
    level: str
    message: str


class RuntimeLogsResponse(BaseModel):
    """Enhancement logs keyed by enhancement uid."""
    logs: Dict[str, List[RuntimeLogEntry]]


class NoticeResponse(BaseModel):
    level: str
    message: str
    duration_ms: Optional[int] = None
    created_at: float


class NoticesResponse(BaseModel):
    notices: List[NoticeResponse]
    count: int
