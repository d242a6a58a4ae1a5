"""
Selection Reconciler - Resolve drift between persisted and live group selections

@.architecture
Incoming: core/sync/controller.py --- {current profile uid, regular ProfileItem list}
Processing: reconcile() --- {5 jobs: profile_resolution, snapshot_fetching, drift_detection, runtime_correction, selection_persistence}
Outgoing: core/runtime/proxy.py, core/profiles/store.py, core/sync/cache.py --- {set_group_node() writes, patch_profile() with the complete selection list, proxies cache publish/refresh}

Policy per group, walked in snapshot order (global selector first):
- persisted value missing (or empty): adopt the runtime's node, no write
- persisted value equal to the runtime's: nothing to do
- persisted value different: the persisted value wins, written to the runtime

The runtime wins on first sight, the profile wins afterwards. A group whose
runtime node is empty never receives a write. A write the runtime rejects as
unknown leaves both sides as they are.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import NotFoundError, ProfileSyncError
from ..profiles.models import ProfileItem, SelectedProxy
from ..profiles.store import ProfileStore
from ..runtime.proxy import ProxyRuntime
from .cache import PROXIES_KEY, StateCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of one reconciliation pass.

    Attributes:
        uid: Reconciled profile
        selected: Selection list persisted for the profile
        runtime_writes: (group, node) pairs pushed to the runtime
        adopted: Groups whose persisted value was taken from the runtime
    """
    uid: str
    selected: List[SelectedProxy]
    runtime_writes: List[Tuple[str, str]] = field(default_factory=list)
    adopted: List[str] = field(default_factory=list)


class SelectionReconciler:
    """
    One-pass reconciliation of a regular profile's selection against the
    proxy runtime.

    Running it twice with no runtime change in between persists the same list
    and performs no runtime write the second time.
    """

    def __init__(
        self,
        store: ProfileStore,
        runtime: ProxyRuntime,
        cache: Optional[StateCache] = None,
    ):
        self._store = store
        self._runtime = runtime
        self._cache = cache
        if cache is not None and not cache.is_registered(PROXIES_KEY):
            cache.register(PROXIES_KEY, runtime.snapshot)

    async def reconcile(
        self,
        current_uid: Optional[str],
        regular_items: Sequence[ProfileItem],
    ) -> Optional[ReconcileResult]:
        """
        Reconcile the active profile with the runtime.

        Args:
            current_uid: uid of the active profile
            regular_items: Regular profiles of the current profile set

        Returns:
            ReconcileResult, or None when there is nothing to reconcile (the
            profile is not (yet) among the regular items or vanished meanwhile)

        Raises:
            ProfileSyncError: On transport failures talking to the runtime or
                the store
        """
        profile = next((item for item in regular_items if item.uid == current_uid), None)
        if profile is None:
            logger.debug(f"No regular profile '{current_uid}' to reconcile")
            return None

        snapshot = await self._runtime.snapshot()
        if self._cache is not None:
            self._cache.set(PROXIES_KEY, snapshot)

        selection: Dict[str, str] = {
            entry.group_name: entry.node_name for entry in profile.selected
        }
        writes: List[Tuple[str, str]] = []
        adopted: List[str] = []

        for group in snapshot.all_groups():
            persisted = selection.get(group.name)

            if not persisted:
                if persisted != group.now:
                    selection[group.name] = group.now
                    adopted.append(group.name)
                continue

            if persisted == group.now or not group.now:
                continue

            try:
                await self._runtime.set_group_node(group.name, persisted)
            except NotFoundError as e:
                logger.debug(
                    f"Persisted node '{persisted}' unavailable in group '{group.name}', "
                    f"leaving the runtime on '{group.now}': {e}"
                )
                continue
            writes.append((group.name, persisted))

        selected = [
            SelectedProxy(group_name=name, node_name=node)
            for name, node in selection.items()
        ]

        try:
            await self._store.patch_profile(profile.uid, selected)
        except NotFoundError:
            logger.debug(f"Profile '{profile.uid}' disappeared before its selection was saved")
            return None

        if writes and self._cache is not None:
            try:
                await self._cache.refresh(PROXIES_KEY)
            except ProfileSyncError as e:
                logger.warning(f"Failed to refresh proxies after reconciliation: {e}")

        logger.info(
            f"Reconciled profile '{profile.uid}': {len(writes)} runtime writes, "
            f"{len(adopted)} adopted groups"
        )
        return ReconcileResult(
            uid=profile.uid,
            selected=selected,
            runtime_writes=writes,
            adopted=adopted,
        )
