"""
State Cache - Process-scoped cache for profile set, proxy snapshot and runtime logs

@.architecture
Incoming: core/sync/controller.py, core/sync/reconciler.py, api/v1/endpoints/*.py --- {key registrations with async fetchers, refresh/mutate/set/invalidate calls, listener subscriptions}
Processing: register(), subscribe(), get(), peek(), refresh(), mutate(), set(), invalidate(), _revalidate(), _store() --- {5 jobs: caching, request_deduplication, overlapped_fetch_repeating, change_notification, invalidation}
Outgoing: core/sync/controller.py (listeners), api/v1/endpoints/*.py --- {cached values, change notifications}

Handles:
- Keyed values with an async fetcher per key
- Wholesale replacement on refresh, optimistic local writes via set()/mutate()
- Deduplication of concurrent refreshes of one key
- Fetching again when a local write lands while a fetch is in flight

Values are replaced, never mutated in place; listeners see every replacement
synchronously, in write order.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

PROFILES_KEY = "profiles"
PROXIES_KEY = "proxies"
RUNTIME_LOGS_KEY = "runtime_logs"

Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[Any], None]

_MISSING = object()

# Fetches per refresh when local writes keep landing mid-fetch
REFETCH_LIMIT = 3


@dataclass
class CacheEntry:
    """State of one cache key."""
    fetcher: Fetcher
    value: Any = None
    loaded: bool = False
    version: int = 0
    updated_at: Optional[float] = None
    listeners: List[Listener] = field(default_factory=list)
    inflight: Optional["asyncio.Future[Any]"] = None
    inflight_version: int = -1


class StateCache:
    """
    Explicit process-scoped cache shared by the controller, the reconciler and
    the API layer.

    Usage:
        cache = StateCache()
        cache.register(PROFILES_KEY, store.fetch_all)
        cache.subscribe(PROFILES_KEY, on_change)
        profiles = await cache.refresh(PROFILES_KEY)
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, key: str, fetcher: Fetcher) -> None:
        """Register (or replace) the fetcher for a key."""
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = CacheEntry(fetcher=fetcher)
        else:
            entry.fetcher = fetcher
        logger.debug(f"Registered cache key '{key}'")

    def is_registered(self, key: str) -> bool:
        return key in self._entries

    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        """
        Call `listener(value)` after every replacement of `key`.

        Returns:
            Function that removes the subscription
        """
        entry = self._entry(key)
        entry.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in entry.listeners:
                entry.listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Reads
    # =========================================================================

    def peek(self, key: str, default: Any = None) -> Any:
        """Current value without fetching."""
        entry = self._entries.get(key)
        if entry is None or not entry.loaded:
            return default
        return entry.value

    def is_loaded(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.loaded

    async def get(self, key: str) -> Any:
        """Current value, fetching it first if the key was never loaded."""
        entry = self._entry(key)
        if entry.loaded:
            return entry.value
        return await self.refresh(key)

    # =========================================================================
    # Writes
    # =========================================================================

    async def refresh(self, key: str) -> Any:
        """
        Fetch a fresh value and replace the cached one.

        Concurrent refreshes share one fetch as long as no local write happened
        since it started. A fetch overlapped by a local write is repeated, so
        the stored value always comes from a fetch issued after that write.

        Raises:
            Whatever the fetcher raises; the cached value is left untouched
        """
        entry = self._entry(key)
        future = entry.inflight
        if future is None or future.done() or entry.inflight_version != entry.version:
            future = asyncio.ensure_future(self._revalidate(key, entry))
            entry.inflight = future
            entry.inflight_version = entry.version

            def _clear(done: "asyncio.Future[Any]") -> None:
                if entry.inflight is done:
                    entry.inflight = None
                if not done.cancelled():
                    done.exception()

            future.add_done_callback(_clear)

        return await asyncio.shield(future)

    async def mutate(self, key: str, data: Any = _MISSING, revalidate: bool = True) -> Any:
        """
        Optionally write `data` locally, then optionally refetch.

        Args:
            key: Cache key
            data: Value to publish immediately (optimistic update)
            revalidate: Refetch from the source afterwards
        """
        if data is not _MISSING:
            self.set(key, data)
        if revalidate:
            return await self.refresh(key)
        return self.peek(key)

    def set(self, key: str, value: Any) -> None:
        """Replace the cached value without fetching."""
        self._store(key, self._entry(key), value)

    def invalidate(self, key: str) -> None:
        """Forget the cached value; the next get() refetches."""
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.value = None
        entry.loaded = False
        entry.version += 1
        logger.debug(f"Invalidated cache key '{key}'")

    # =========================================================================
    # Internals
    # =========================================================================

    def _entry(self, key: str) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(f"Cache key '{key}' is not registered")
        return entry

    async def _revalidate(self, key: str, entry: CacheEntry) -> Any:
        for attempt in range(1, REFETCH_LIMIT + 1):
            started_version = entry.version
            value = await entry.fetcher()
            if entry.version == started_version:
                self._store(key, entry, value)
                return value
            logger.debug(f"Cache key '{key}' written during fetch {attempt}, fetching again")

        logger.warning(
            f"Cache key '{key}' kept its local value after {REFETCH_LIMIT} overlapped fetches"
        )
        return entry.value if entry.loaded else value

    def _store(self, key: str, entry: CacheEntry, value: Any) -> None:
        entry.value = value
        entry.loaded = True
        entry.version += 1
        entry.updated_at = time.time()

        for listener in list(entry.listeners):
            try:
                listener(value)
            except Exception as e:
                logger.error(f"Cache listener for '{key}' failed: {e}", exc_info=True)
