"""
Profile Store - Persistence contract for profile records and global pointers

@.architecture
Incoming: core/sync/controller.py, core/sync/reconciler.py, app.py --- {fetch/patch/import/enhance requests, StoreSettings}
Processing: fetch_all(), patch_profile(), patch_config(), import_remote(), run_enhancement(), fetch_runtime_logs(), check_health(), _call() --- {5 jobs: http_communication, error_mapping, payload_validation, health_checking, state_simulation}
Outgoing: Profile store service (HTTP), core/sync/controller.py --- {ProfileSet, Dict[str, List[Tuple[str, str]]] runtime logs, NotFoundError/FetchError/EnhancementError}

Handles:
- Reading the whole profile set (items, current, chain)
- Persisting per-profile selections and the current/chain pointers
- Importing remote subscriptions and re-applying the enhancement chain

Storage format and subscription parsing belong to the store service itself;
this module only knows the JSON contract.
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlparse

import httpx

from ..errors import EnhancementError, FetchError, NotFoundError
from ...utils.http import HTTPClient
from .models import ProfileItem, ProfileSet, ProfileType, SelectedProxy

logger = logging.getLogger(__name__)

RuntimeLogs = Dict[str, List[Tuple[str, str]]]


class ProfileStore(ABC):
    """Contract for the profile persistence service."""

    @abstractmethod
    async def fetch_all(self) -> ProfileSet:
        """Fetch the complete profile set."""

    @abstractmethod
    async def patch_profile(self, uid: str, selected: Sequence[SelectedProxy]) -> None:
        """
        Persist the selection list of one profile.

        Raises:
            NotFoundError: If uid is unknown
        """

    @abstractmethod
    async def patch_config(
        self,
        current: Optional[str] = None,
        chain: Optional[Sequence[str]] = None,
    ) -> None:
        """Persist the current profile pointer and/or the enhancement chain."""

    @abstractmethod
    async def import_remote(self, url: str) -> None:
        """
        Fetch a remote subscription and store it as a new profile.

        Raises:
            FetchError: On network or parse failure
        """

    @abstractmethod
    async def run_enhancement(self) -> None:
        """
        Re-apply the enhancement chain on top of the current profile.

        Raises:
            EnhancementError: If any enhancement fails
        """

    async def fetch_runtime_logs(self) -> RuntimeLogs:
        """Logs produced by the last enhancement run, keyed by profile uid."""
        return {}

    async def check_health(self) -> Dict[str, Any]:
        return {'healthy': True, 'message': 'Profile store available'}

    async def close(self) -> None:
        return None


# =============================================================================
# HTTP Store
# =============================================================================

class HTTPProfileStore(ProfileStore):
    """
    Profile store reached over HTTP/JSON.

    Args:
        http: HTTP client configured with the store base url
    """

    def __init__(self, http: HTTPClient):
        self._http = http

    async def fetch_all(self) -> ProfileSet:
        response = await self._call("GET", "/profiles")
        try:
            profile_set = ProfileSet.model_validate(response.json())
        except ValueError as e:
            raise FetchError(f"Invalid profile set payload: {e}") from e

        logger.debug(
            f"Fetched {len(profile_set.items)} profiles (current={profile_set.current})"
        )
        return profile_set

    async def patch_profile(self, uid: str, selected: Sequence[SelectedProxy]) -> None:
        payload = {"selected": [entry.model_dump(by_alias=True) for entry in selected]}
        await self._call(
            "PATCH",
            f"/profiles/{quote(uid, safe='')}",
            json=payload,
            not_found=f"Profile '{uid}' not found",
        )

    async def patch_config(
        self,
        current: Optional[str] = None,
        chain: Optional[Sequence[str]] = None,
    ) -> None:
        payload: Dict[str, Any] = {}
        if current is not None:
            payload["current"] = current
        if chain is not None:
            payload["chain"] = list(chain)
        if not payload:
            return

        await self._call(
            "PATCH",
            "/profiles/config",
            json=payload,
            not_found=f"Profile '{current}' not found",
        )

    async def import_remote(self, url: str) -> None:
        await self._call("POST", "/profiles/import", json={"url": url}, retry=False)
        logger.info(f"Imported remote profile from {url}")

    async def run_enhancement(self) -> None:
        await self._call(
            "POST",
            "/profiles/enhance",
            error_cls=EnhancementError,
            retry=False,
        )

    async def fetch_runtime_logs(self) -> RuntimeLogs:
        response = await self._call("GET", "/runtime/logs")
        try:
            payload = response.json() or {}
            return {
                uid: [(str(level), str(message)) for level, message in entries]
                for uid, entries in payload.items()
            }
        except (ValueError, TypeError, AttributeError) as e:
            raise FetchError(f"Invalid runtime logs payload: {e}") from e

    async def check_health(self) -> Dict[str, Any]:
        healthy = await self._http.health_check("/health")
        return {
            'healthy': healthy,
            'message': 'Profile store reachable' if healthy else 'Profile store unreachable',
            'store_url': self._http.config.base_url,
        }

    async def close(self) -> None:
        await self._http.close()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        error_cls: type = FetchError,
        not_found: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        """Issue a request and translate transport failures into domain errors."""
        try:
            return await self._http.request(method, path, **kwargs)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404 and not_found:
                raise NotFoundError(not_found, detail=e.response.text) from e
            raise error_cls(
                f"Profile store returned {e.response.status_code} for {method} {path}",
                detail=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise error_cls(f"Profile store unreachable: {e}") from e


# =============================================================================
# In-Memory Store
# =============================================================================

class InMemoryProfileStore(ProfileStore):
    """
    Profile store kept in process memory.

    Every call is recorded in `calls` as a tuple of the method name and its
    arguments, so callers can assert exactly which writes happened.
    """

    def __init__(self, profile_set: Optional[ProfileSet] = None):
        self._profile_set = profile_set or ProfileSet()
        self._runtime_logs: RuntimeLogs = {}
        self.calls: List[Tuple[Any, ...]] = []

    @property
    def profile_set(self) -> ProfileSet:
        return self._profile_set

    def calls_to(self, method: str) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == method]

    async def fetch_all(self) -> ProfileSet:
        self.calls.append(("fetch_all",))
        return self._profile_set

    async def patch_profile(self, uid: str, selected: Sequence[SelectedProxy]) -> None:
        selected = list(selected)
        self.calls.append(("patch_profile", uid, selected))
        item = self._profile_set.get(uid)
        if item is None:
            raise NotFoundError(f"Profile '{uid}' not found")
        self._profile_set = self._profile_set.with_item(item.with_selected(selected))

    async def patch_config(
        self,
        current: Optional[str] = None,
        chain: Optional[Sequence[str]] = None,
    ) -> None:
        self.calls.append(("patch_config", current, None if chain is None else list(chain)))
        profile_set = self._profile_set
        if current is not None:
            if profile_set.get(current) is None:
                raise NotFoundError(f"Profile '{current}' not found")
            profile_set = profile_set.with_current(current)
        if chain is not None:
            profile_set = profile_set.with_chain(chain)
        self._profile_set = profile_set

    async def import_remote(self, url: str) -> None:
        self.calls.append(("import_remote", url))
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise FetchError(f"Cannot fetch profile from '{url}'")

        item = ProfileItem(
            uid=f"r{uuid.uuid4().hex[:12]}",
            type=ProfileType.REMOTE,
            name=parsed.netloc,
            url=url,
            updated=int(time.time()),
        )
        self._profile_set = self._profile_set.model_copy(
            update={"items": [*self._profile_set.items, item]}
        )

    async def run_enhancement(self) -> None:
        self.calls.append(("run_enhancement",))
        logs: RuntimeLogs = {}
        for uid in self._profile_set.chain:
            item = self._profile_set.get(uid)
            if item is None or not item.is_enhancement:
                continue
            logs[uid] = [("info", f"applied {item.type.value} '{item.name or uid}'")]
        self._runtime_logs = logs

    async def fetch_runtime_logs(self) -> RuntimeLogs:
        self.calls.append(("fetch_runtime_logs",))
        return dict(self._runtime_logs)

