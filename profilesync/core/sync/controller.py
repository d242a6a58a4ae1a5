"""
Activation Controller - User actions and reactive reconciliation

@.architecture
Incoming: app.py, api/v1/endpoints/profiles.py --- {import url, select (uid, force), enhance, chain edits, start/stop lifecycle}
Processing: start(), stop(), import_profile(), select(), enhance(), update_chain(), activate_enhancement(), deactivate_enhancement(), move_enhancement_to_top(), move_enhancement_to_end(), wait_for_reconcile(), _on_profiles_changed(), _schedule_reconcile(), _run_reconcile(), _publish_selection() --- {7 jobs: action_orchestration, single_flight_guarding, cache_invalidation, classification, debounced_reconciliation, notification, lifecycle_management}
Outgoing: core/profiles/store.py, core/sync/reconciler.py, core/sync/cache.py, core/sync/notifications.py --- {store writes, ActionResult, cache replacements, notices}

Handles:
- Import / select / enhance / chain edits, each single-flight per kind
- Re-classification on every profile-set replacement
- Exactly one debounced reconciliation per (current uid, regular items) change
- Refresh of dependent cache keys after successful actions

Reconciliation is best-effort: its failures are logged and retried naturally
by the next profile-set change; user actions always report failures through
a notice and a failed ActionResult, leaving prior state intact.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ..errors import NotFoundError, ProfileSyncError
from ..profiles.classifier import (
    ClassifiedProfiles,
    activate_in_chain,
    classify_profiles,
    deactivate_in_chain,
    move_to_end,
    move_to_top,
)
from ..profiles.models import ProfileItem, ProfileSet, ProfileType
from ..profiles.store import ProfileStore
from ..runtime.proxy import ProxyRuntime
from .cache import PROFILES_KEY, PROXIES_KEY, RUNTIME_LOGS_KEY, StateCache
from .guards import SingleFlight, single_flight
from .notifications import NoticeBoard, NotificationSink
from .reconciler import ReconcileResult, SelectionReconciler
from .results import ActionResult

logger = logging.getLogger(__name__)

ReconcileKey = Tuple[Optional[str], Tuple[Tuple[str, Tuple[Tuple[str, str], ...]], ...]]

IMPORT_SUCCESS = "Successfully import profile."
IMPORT_FAILURE = "Failed to import profile."
SELECT_SUCCESS = "Refresh clash config"


def reconcile_key(current: Optional[str], regular_items: Iterable[ProfileItem]) -> ReconcileKey:
    """Identity of the reconciliation inputs: current uid plus every regular item's selection."""
    return (
        current,
        tuple(
            (item.uid, tuple((entry.group_name, entry.node_name) for entry in item.selected))
            for item in regular_items
        ),
    )


class ActivationController:
    """
    Orchestrates profile actions on top of the store, the runtime and the
    shared cache.

    Args:
        store: Profile persistence service
        runtime: Running proxy engine
        cache: Shared cache (a private one is created if omitted)
        notices: Sink for user-facing notices
        reconcile_delay: Seconds to wait before reconciling, letting the
            side effects of a just-triggered activation land
    """

    def __init__(
        self,
        store: ProfileStore,
        runtime: ProxyRuntime,
        cache: Optional[StateCache] = None,
        notices: Optional[NotificationSink] = None,
        reconcile_delay: float = 0.1,
    ):
        self._store = store
        self._runtime = runtime
        self._cache = cache or StateCache()
        self._notices = notices or NoticeBoard()
        self._reconcile_delay = reconcile_delay

        self._guards = SingleFlight()
        self._classified = ClassifiedProfiles()
        self._reconcile_key: Optional[ReconcileKey] = None
        self._reconcile_task: Optional[asyncio.Task] = None
        self._last_reconcile: Optional[ReconcileResult] = None
        self._started = False

        self._cache.register(PROFILES_KEY, store.fetch_all)
        self._cache.register(PROXIES_KEY, runtime.snapshot)
        self._cache.register(RUNTIME_LOGS_KEY, store.fetch_runtime_logs)
        self._unsubscribe = self._cache.subscribe(PROFILES_KEY, self._on_profiles_changed)

        self._reconciler = SelectionReconciler(store, runtime, self._cache)

    # ============================================================================
    # STATE
    # ============================================================================

    @property
    def store(self) -> ProfileStore:
        return self._store

    @property
    def runtime(self) -> ProxyRuntime:
        return self._runtime

    @property
    def cache(self) -> StateCache:
        return self._cache

    @property
    def notices(self) -> NotificationSink:
        return self._notices

    @property
    def guards(self) -> SingleFlight:
        return self._guards

    @property
    def profiles(self) -> Optional[ProfileSet]:
        return self._cache.peek(PROFILES_KEY)

    @property
    def regular_items(self) -> List[ProfileItem]:
        return list(self._classified.regular)

    @property
    def enhance_items(self) -> List[ProfileItem]:
        return list(self._classified.enhanced)

    @property
    def last_reconcile(self) -> Optional[ReconcileResult]:
        return self._last_reconcile

    # ============================================================================
    # LIFECYCLE
    # ============================================================================

    async def start(self) -> None:
        """Load the profile set; classification and reconciliation follow reactively."""
        if self._started:
            return
        self._started = True
        try:
            await self._cache.refresh(PROFILES_KEY)
            logger.info("Activation controller started")
        except ProfileSyncError as e:
            logger.warning(f"Initial profile load failed, waiting for the next refresh: {e}")

    async def stop(self) -> None:
        """Cancel any pending reconciliation."""
        task = self._reconcile_task
        self._reconcile_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._started = False
        logger.info("Activation controller stopped")

    async def wait_for_reconcile(self) -> Optional[ReconcileResult]:
        """Wait until no reconciliation is pending and return the latest result."""
        while True:
            task = self._reconcile_task
            if task is None:
                return self._last_reconcile
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if self._reconcile_task is task:
                return self._last_reconcile

    # ============================================================================
    # ACTIONS
    # ============================================================================

    @single_flight("import")
    async def import_profile(self, url: str) -> ActionResult:
        """
        Import a remote profile; the first remote profile becomes current when
        none is selected yet.
        """
        url = (url or "").strip()
        if not url:
            return ActionResult.skipped("import", "Profile URL is required")

        try:
            await self._store.import_remote(url)
        except ProfileSyncError as e:
            logger.warning(f"Import from {url} failed: {e}")
            self._notices.error(IMPORT_FAILURE)
            return ActionResult.failed("import", e, IMPORT_FAILURE)

        self._notices.success(IMPORT_SUCCESS)

        activated = None
        try:
            profile_set = await self._cache.refresh(PROFILES_KEY)
            remote = next(
                (item for item in profile_set.items if item.type is ProfileType.REMOTE),
                None,
            )
            if profile_set.current is None and remote is not None:
                await self._store.patch_config(current=remote.uid)
                activated = remote.uid
                logger.info(f"Activated first remote profile '{remote.uid}'")
                self._cache.set(PROFILES_KEY, profile_set.with_current(remote.uid))
                await self._revalidate(PROFILES_KEY)
                await self._revalidate(RUNTIME_LOGS_KEY)
        except ProfileSyncError as e:
            logger.warning(f"Activating imported profile failed: {e}")
            self._notices.error(e.message or str(e), 4000)

        return ActionResult.completed("import", IMPORT_SUCCESS, activated=activated)

    @single_flight("select")
    async def select(self, uid: str, force: bool = False) -> ActionResult:
        """
        Make `uid` the current profile.

        Args:
            uid: Regular profile uid
            force: Re-select (and re-reconcile) even if already current
        """
        profile_set: Optional[ProfileSet] = self._cache.peek(PROFILES_KEY)
        current = profile_set.current if profile_set is not None else None

        if not force and uid == current:
            return ActionResult.skipped("select", "Profile already selected")

        if profile_set is not None:
            item = profile_set.get(uid)
            if item is None or not item.is_regular:
                error = NotFoundError(f"Profile '{uid}' not found")
                self._notices.error(error.message, 4000)
                return ActionResult.failed("select", error)

        try:
            await self._store.patch_config(current=uid)
        except ProfileSyncError as e:
            logger.warning(f"Selecting profile '{uid}' failed: {e}")
            self._notices.error(e.message or str(e), 4000)
            return ActionResult.failed("select", e)

        if force:
            self._reconcile_key = None

        latest: Optional[ProfileSet] = self._cache.peek(PROFILES_KEY)
        if latest is not None:
            self._cache.set(PROFILES_KEY, latest.with_current(uid))
        await self._revalidate(PROFILES_KEY)
        await self._revalidate(RUNTIME_LOGS_KEY)

        self._notices.success(SELECT_SUCCESS, 1000)
        return ActionResult.completed("select", SELECT_SUCCESS, current=uid)

    @single_flight("enhance")
    async def enhance(self) -> ActionResult:
        """Re-apply the enhancement chain."""
        try:
            await self._store.run_enhancement()
        except ProfileSyncError as e:
            logger.warning(f"Enhancement failed: {e}")
            self._notices.error(e.message or str(e), 3000)
            return ActionResult.failed("enhance", e)

        await self._revalidate(RUNTIME_LOGS_KEY)
        return ActionResult.completed("enhance", "Enhancement chain applied")

    @single_flight("chain")
    async def update_chain(self, chain: Sequence[str]) -> ActionResult:
        """
        Persist a new enhancement chain and re-apply it.

        Args:
            chain: Ordered enhancement uids
        """
        chain = list(dict.fromkeys(chain))
        profile_set: Optional[ProfileSet] = self._cache.peek(PROFILES_KEY)

        if profile_set is not None:
            unknown = [
                uid for uid in chain
                if profile_set.get(uid) is None or not profile_set.get(uid).is_enhancement
            ]
            if unknown:
                error = NotFoundError(f"Unknown enhancement profiles: {', '.join(unknown)}")
                self._notices.error(error.message, 3000)
                return ActionResult.failed("chain", error)
            if chain == profile_set.chain:
                return ActionResult.skipped("chain", "Chain unchanged")

        try:
            await self._store.patch_config(chain=chain)
        except ProfileSyncError as e:
            logger.warning(f"Updating enhancement chain failed: {e}")
            self._notices.error(e.message or str(e), 3000)
            return ActionResult.failed("chain", e)

        latest: Optional[ProfileSet] = self._cache.peek(PROFILES_KEY)
        if latest is not None:
            self._cache.set(PROFILES_KEY, latest.with_chain(chain))
        await self._revalidate(PROFILES_KEY)

        try:
            await self._store.run_enhancement()
        except ProfileSyncError as e:
            logger.warning(f"Enhancement after chain update failed: {e}")
            self._notices.error(e.message or str(e), 3000)
            return ActionResult.failed("chain", e)

        await self._revalidate(RUNTIME_LOGS_KEY)
        return ActionResult.completed("chain", "Enhancement chain updated", chain=chain)

    async def activate_enhancement(self, uid: str) -> ActionResult:
        return await self.update_chain(activate_in_chain(self._active_chain(), uid))

    async def deactivate_enhancement(self, uid: str) -> ActionResult:
        return await self.update_chain(deactivate_in_chain(self._active_chain(), uid))

    async def move_enhancement_to_top(self, uid: str) -> ActionResult:
        return await self.update_chain(move_to_top(self._active_chain(), uid))

    async def move_enhancement_to_end(self, uid: str) -> ActionResult:
        return await self.update_chain(move_to_end(self._active_chain(), uid))

    # ============================================================================
    # REACTIVE RECONCILIATION
    # ============================================================================

    def _on_profiles_changed(self, profile_set: ProfileSet) -> None:
        self._classified = classify_profiles(profile_set)

        key = reconcile_key(profile_set.current, self._classified.regular)
        if key == self._reconcile_key:
            return
        self._reconcile_key = key

        if profile_set.current is None:
            return
        self._schedule_reconcile(profile_set.current, list(self._classified.regular))

    def _schedule_reconcile(self, current: str, regular_items: List[ProfileItem]) -> None:
        pending = self._reconcile_task
        if pending is not None and not pending.done() and pending is not asyncio.current_task():
            logger.debug("Superseding pending reconciliation")
            pending.cancel()

        self._reconcile_task = asyncio.get_running_loop().create_task(
            self._run_reconcile(current, regular_items)
        )

    async def _run_reconcile(
        self,
        current: str,
        regular_items: List[ProfileItem],
    ) -> Optional[ReconcileResult]:
        if self._reconcile_delay > 0:
            await asyncio.sleep(self._reconcile_delay)

        try:
            result = await self._reconciler.reconcile(current, regular_items)
        except ProfileSyncError as e:
            logger.warning(f"Reconciliation of '{current}' failed: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected reconciliation failure for '{current}': {e}", exc_info=True)
            return None

        if result is None:
            return None

        self._last_reconcile = result
        self._publish_selection(result)
        return result

    def _publish_selection(self, result: ReconcileResult) -> None:
        """Mirror the persisted selection into the cache without re-triggering."""
        profile_set: Optional[ProfileSet] = self._cache.peek(PROFILES_KEY)
        if profile_set is None:
            return
        item = profile_set.get(result.uid)
        if item is None or item.selected == result.selected:
            return

        updated = profile_set.with_item(item.with_selected(result.selected))
        self._reconcile_key = reconcile_key(
            updated.current, classify_profiles(updated).regular
        )
        self._cache.set(PROFILES_KEY, updated)

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _active_chain(self) -> List[str]:
        """Chain with stale uids dropped."""
        profile_set: Optional[ProfileSet] = self._cache.peek(PROFILES_KEY)
        if profile_set is None:
            return []
        chained = set(profile_set.chain)
        return [item.uid for item in self._classified.enhanced if item.uid in chained]

    async def _revalidate(self, key: str) -> None:
        try:
            await self._cache.refresh(key)
        except ProfileSyncError as e:
            logger.warning(f"Refreshing '{key}' failed: {e}")
