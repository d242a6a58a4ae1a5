"""
Proxy Runtime Models - Live proxy group state

A snapshot is the synthetic global selector followed by the named groups, in
the order the engine reports them. Engines without a global selector leave
global_group unset.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

GLOBAL_GROUP = "GLOBAL"


class ProxyGroupState(BaseModel):
    """Live state of one proxy group."""
    model_config = ConfigDict(frozen=True)

    name: str
    now: str = ""
    type: str = "Selector"
    all: List[str] = Field(default_factory=list)

    @field_validator("now", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ProxySnapshot(BaseModel):
    """Ordered view of every group the runtime exposes."""
    model_config = ConfigDict(frozen=True)

    global_group: Optional[ProxyGroupState] = None
    groups: List[ProxyGroupState] = Field(default_factory=list)

    def all_groups(self) -> List[ProxyGroupState]:
        """Global selector (when the engine reports one) first, then the named groups."""
        if self.global_group is None:
            return list(self.groups)
        return [self.global_group, *self.groups]

    def get(self, name: str) -> Optional[ProxyGroupState]:
        for group in self.all_groups():
            if group.name == name:
                return group
        return None

    def selection(self) -> Dict[str, str]:
        """Map of group name to active node."""
        return {group.name: group.now for group in self.all_groups()}
