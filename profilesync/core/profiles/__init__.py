"""
Profiles - Profile records, classification and persistence.
"""

from .models import (
    ProfileType,
    ProfileKind,
    SelectedProxy,
    ProfileItem,
    ProfileSet,
)
from .classifier import (
    ClassifiedProfiles,
    classify_profiles,
    activate_in_chain,
    deactivate_in_chain,
    move_to_top,
    move_to_end,
)
from .store import (
    ProfileStore,
    HTTPProfileStore,
    InMemoryProfileStore,
)

__all__ = [
    'ProfileType',
    'ProfileKind',
    'SelectedProxy',
    'ProfileItem',
    'ProfileSet',
    'ClassifiedProfiles',
    'classify_profiles',
    'activate_in_chain',
    'deactivate_in_chain',
    'move_to_top',
    'move_to_end',
    'ProfileStore',
    'HTTPProfileStore',
    'InMemoryProfileStore',
]
