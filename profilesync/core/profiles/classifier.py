"""
Profile Classifier - Regular/enhancement partition and chain ordering

@.architecture
Incoming: core/sync/controller.py, api/v1/endpoints/profiles.py --- {ProfileSet on every profile-set change, chain edit requests}
Processing: classify_profiles(), activate_in_chain(), deactivate_in_chain(), move_to_top(), move_to_end() --- {3 jobs: partitioning, chain_ordering, chain_editing}
Outgoing: core/sync/controller.py, core/sync/reconciler.py, api/v1/endpoints/profiles.py --- {ClassifiedProfiles(regular, enhanced), List[str] chains}

Enhancement items listed in the chain come first, in chain order, so the active
pipeline is always shown contiguously; enhancement items outside the chain are
inert and follow in source order.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .models import ProfileItem, ProfileSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifiedProfiles:
    """Result of classifying a profile set."""
    regular: List[ProfileItem] = field(default_factory=list)
    enhanced: List[ProfileItem] = field(default_factory=list)


def classify_profiles(profile_set: ProfileSet) -> ClassifiedProfiles:
    """
    Partition a profile set into regular and enhancement items.

    Args:
        profile_set: Profile set to classify

    Returns:
        ClassifiedProfiles with regular items in source order and enhancement
        items ordered by chain, then the remaining ones in source order
    """
    regular = [item for item in profile_set.items if item.is_regular]
    rest = [item for item in profile_set.items if item.is_enhancement]
    rest_map: Dict[str, ProfileItem] = {item.uid: item for item in rest}

    chained: List[ProfileItem] = []
    seen = set()
    for uid in profile_set.chain:
        if uid in seen:
            continue
        item = rest_map.get(uid)
        if item is None:
            logger.debug(f"Dropping stale chain reference: {uid}")
            continue
        seen.add(uid)
        chained.append(item)

    unchained = [item for item in rest if item.uid not in seen]
    return ClassifiedProfiles(regular=regular, enhanced=chained + unchained)


# =============================================================================
# Chain Editing
# =============================================================================

def activate_in_chain(chain: Sequence[str], uid: str) -> List[str]:
    """Append uid to the chain unless it is already active."""
    if uid in chain:
        return list(chain)
    return [*chain, uid]


def deactivate_in_chain(chain: Sequence[str], uid: str) -> List[str]:
    """Remove uid from the chain."""
    return [each for each in chain if each != uid]


def move_to_top(chain: Sequence[str], uid: str) -> List[str]:
    """Move an active uid to the front of the chain."""
    if uid not in chain:
        return list(chain)
    return [uid, *(each for each in chain if each != uid)]


def move_to_end(chain: Sequence[str], uid: str) -> List[str]:
    """Move an active uid to the back of the chain."""
    if uid not in chain:
        return list(chain)
    return [*(each for each in chain if each != uid), uid]
