"""
HTTP Client Utilities - Shared async transport for the store and the runtime.

One lazily created httpx.AsyncClient per upstream (profile store, Clash
controller), with per-upstream base url, default headers and timeouts.
Transient transport failures are retried with exponential backoff; HTTP
status errors are raised immediately so callers can map them to domain
errors.

@.architecture
Incoming: core/profiles/store.py, core/runtime/proxy.py, app.py --- {str path, Dict[str, Any] json body, Dict[str, str] headers, StoreSettings/RuntimeSettings}
Processing: request(), _send(), _retrying(), get(), put(), health_check(), close(), _ensure_client() --- {5 jobs: cleanup, connection_pooling, request_retry, status_checking, health_checking}
Outgoing: Profile store service, Clash external controller --- {httpx.Response, httpx.HTTPStatusError, httpx.TransportError}
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Worth another attempt: the request may never have reached the upstream
RETRYABLE_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass
class HTTPClientConfig:
    """Connection settings for one upstream."""

    base_url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 5.0

    # Total attempts, including the first one
    max_retries: int = 3
    retry_min_wait: float = 0.5
    retry_max_wait: float = 5.0

    # A local store and a local controller: a handful of connections is plenty
    max_connections: int = 10
    max_keepalive_connections: int = 5

    @classmethod
    def from_settings(cls, section: Any, headers: Optional[Dict[str, str]] = None) -> 'HTTPClientConfig':
        """
        Build from a settings section exposing base_url, timeout and max_retries.

        Args:
            section: StoreSettings or RuntimeSettings
            headers: Default headers (e.g. the controller's bearer secret)
        """
        return cls(
            base_url=section.base_url,
            headers=dict(headers or {}),
            read_timeout=section.timeout,
            write_timeout=section.timeout,
            max_retries=section.max_retries,
        )

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )

    def limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive_connections,
        )


class HTTPClient:
    """
    Async HTTP client bound to one upstream.

    Args:
        config: Upstream configuration (defaults if None)
        transport: Custom transport, e.g. httpx.MockTransport in tests
    """

    def __init__(
        self,
        config: Optional[HTTPClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or HTTPClientConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    headers=self.config.headers,
                    timeout=self.config.timeout(),
                    limits=self.config.limits(),
                    transport=self._transport,
                )
                logger.debug(f"Opened HTTP client for {self.config.base_url or '<no base url>'}")
            return self._client

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None and not self._client.is_closed:
                await self._client.aclose()
                logger.debug(f"Closed HTTP client for {self.config.base_url or '<no base url>'}")
            self._client = None

    # =========================================================================
    # Requests
    # =========================================================================

    async def request(
        self,
        method: str,
        url: str,
        *,
        retry: bool = True,
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send a request and raise on non-2xx answers.

        Args:
            method: HTTP method
            url: Path relative to the configured base url
            retry: Retry transient transport failures; pass False for
                non-idempotent calls such as an import
            **kwargs: Passed to httpx (json, params, headers, timeout, ...)

        Raises:
            httpx.HTTPStatusError: On a non-2xx answer
            httpx.HTTPError: When the upstream stays unreachable
        """
        client = await self._ensure_client()
        if not retry or self.config.max_retries <= 1:
            return await self._send(client, method, url, **kwargs)

        async for attempt in self._retrying():
            with attempt:
                response = await self._send(client, method, url, **kwargs)
        return response

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(min=self.config.retry_min_wait, max=self.config.retry_max_wait),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    @staticmethod
    async def _send(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """
        Example:
            >>> client = HTTPClient(HTTPClientConfig(base_url="http://127.0.0.1:9097"))
            >>> snapshot = (await client.get("/proxies")).json()
        """
        return await self.request("GET", url, **kwargs)

    async def put(self, url: str, json: Optional[Any] = None, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, json=json, **kwargs)

    async def health_check(self, url: str, timeout: float = 5.0) -> bool:
        """True if `url` answers 2xx within `timeout`, without retrying."""
        try:
            await self.get(url, timeout=timeout, retry=False)
        except httpx.HTTPError as e:
            logger.debug(f"Health check of {self.config.base_url}{url} failed: {e}")
            return False
        return True
