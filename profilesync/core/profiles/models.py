"""
Profile Models - Typed shapes for profile records and the profile set

@.architecture
Incoming: core/profiles/store.py, api/v1/endpoints/profiles.py --- {JSON profile set payloads with items/current/chain, persisted selected lists as name/now pairs}
Processing: ProfileItem.kind, ProfileSet.get(), with_current(), with_chain(), with_item(), field validators --- {3 jobs: kind_derivation, validation, immutable_updates}
Outgoing: core/profiles/classifier.py, core/sync/reconciler.py, core/sync/controller.py --- {ProfileSet, ProfileItem, SelectedProxy instances}

Models are frozen: every update goes through a with_*() helper that returns a
new instance so cached sets are never mutated in place.
"""

from enum import Enum
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileType(str, Enum):
    """Declared profile type tag."""
    LOCAL = "local"
    REMOTE = "remote"
    MERGE = "merge"
    SCRIPT = "script"


class ProfileKind(str, Enum):
    """Derived profile kind."""
    REGULAR = "regular"
    ENHANCEMENT = "enhancement"


REGULAR_TYPES = frozenset({ProfileType.LOCAL, ProfileType.REMOTE})
ENHANCEMENT_TYPES = frozenset({ProfileType.MERGE, ProfileType.SCRIPT})


class SelectedProxy(BaseModel):
    """One persisted group -> node selection (wire form: name/now)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    group_name: str = Field(..., alias="name")
    node_name: str = Field(default="", alias="now")

    @field_validator("node_name", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ProfileItem(BaseModel):
    """A single profile record."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    uid: str = Field(..., min_length=1)
    type: ProfileType
    name: Optional[str] = None
    desc: Optional[str] = None
    file: Optional[str] = None
    url: Optional[str] = None
    updated: Optional[int] = None
    selected: List[SelectedProxy] = Field(default_factory=list)

    @field_validator("selected", mode="before")
    @classmethod
    def none_as_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("selected")
    @classmethod
    def unique_groups(cls, v: List[SelectedProxy]) -> List[SelectedProxy]:
        """Collapse duplicate group entries, keeping the first occurrence."""
        seen = set()
        unique = []
        for entry in v:
            if entry.group_name in seen:
                continue
            seen.add(entry.group_name)
            unique.append(entry)
        return unique

    @property
    def kind(self) -> ProfileKind:
        if self.type in ENHANCEMENT_TYPES:
            return ProfileKind.ENHANCEMENT
        return ProfileKind.REGULAR

    @property
    def is_regular(self) -> bool:
        return self.kind is ProfileKind.REGULAR

    @property
    def is_enhancement(self) -> bool:
        return self.kind is ProfileKind.ENHANCEMENT

    def with_selected(self, selected: Iterable[SelectedProxy]) -> "ProfileItem":
        return self.model_copy(update={"selected": list(selected)})


class ProfileSet(BaseModel):
    """
    The full profile collection plus the global pointers.

    Attributes:
        current: uid of the active regular profile (None until one is chosen)
        chain: ordered enhancement uids; need not list every enhancement item
        items: profile records, unique by uid
    """
    model_config = ConfigDict(frozen=True)

    current: Optional[str] = None
    chain: List[str] = Field(default_factory=list)
    items: List[ProfileItem] = Field(default_factory=list)

    @field_validator("current", mode="before")
    @classmethod
    def blank_current_as_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("chain", "items", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("items")
    @classmethod
    def unique_uids(cls, v: List[ProfileItem]) -> List[ProfileItem]:
        seen = set()
        for item in v:
            if item.uid in seen:
                raise ValueError(f"Duplicate profile uid: {item.uid}")
            seen.add(item.uid)
        return v

    @property
    def uids(self) -> List[str]:
        return [item.uid for item in self.items]

    def get(self, uid: Optional[str]) -> Optional[ProfileItem]:
        """Find an item by uid."""
        if uid is None:
            return None
        for item in self.items:
            if item.uid == uid:
                return item
        return None

    def current_item(self) -> Optional[ProfileItem]:
        """Active item, only if it resolves to a regular profile."""
        item = self.get(self.current)
        if item is None or not item.is_regular:
            return None
        return item

    def with_current(self, uid: Optional[str]) -> "ProfileSet":
        return self.model_copy(update={"current": uid})

    def with_chain(self, chain: Iterable[str]) -> "ProfileSet":
        return self.model_copy(update={"chain": list(chain)})

    def with_item(self, item: ProfileItem) -> "ProfileSet":
        """Replace the item sharing `item.uid`; unknown uids leave the set unchanged."""
        items = [item if existing.uid == item.uid else existing for existing in self.items]
        return self.model_copy(update={"items": items})
