"""
Single-Flight Guards - One in-flight invocation per operation kind

@.architecture
Incoming: core/sync/controller.py --- {operation kinds: import, select, enhance, chain}
Processing: try_acquire(), release(), is_in_flight(), single_flight() --- {2 jobs: in_flight_tracking, duplicate_dropping}
Outgoing: core/sync/controller.py, monitoring/logging.py --- {ActionResult.dropped for duplicate calls, operation logging context}

A second call of the same kind while one is running is dropped, never queued;
calls of different kinds run independently.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, FrozenSet, Set, TypeVar

from ...monitoring.logging import operation_ctx
from .results import ActionResult

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class SingleFlight:
    """In-flight flags keyed by operation kind."""

    def __init__(self):
        self._in_flight: Set[str] = set()

    def try_acquire(self, kind: str) -> bool:
        """Mark `kind` as running; False if it already is."""
        if kind in self._in_flight:
            return False
        self._in_flight.add(kind)
        return True

    def release(self, kind: str) -> None:
        self._in_flight.discard(kind)

    def is_in_flight(self, kind: str) -> bool:
        return kind in self._in_flight

    @property
    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)


def single_flight(kind: str) -> Callable[[F], F]:
    """
    Guard an async method of an object exposing `_guards: SingleFlight`.

    Dropped invocations return ActionResult.dropped(kind) without running.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            guards: SingleFlight = self._guards
            if not guards.try_acquire(kind):
                logger.info(f"Dropping '{kind}': already in flight")
                return ActionResult.dropped(kind)

            token = operation_ctx.set(kind)
            try:
                return await func(self, *args, **kwargs)
            finally:
                operation_ctx.reset(token)
                guards.release(kind)

        return wrapper  # type: ignore[return-value]

    return decorator
