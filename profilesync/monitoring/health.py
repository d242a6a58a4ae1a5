"""
Health Checks - Monitoring Layer

Probes the two collaborators the sync core cannot work without: the profile
store and the proxy runtime. Both expose `check_health()`; a probe that
raises counts as unhealthy rather than failing the whole report.

@.architecture
Incoming: app.py, api/v1/endpoints/health.py --- {ProfileStore, ProxyRuntime, str component_name}
Processing: register_checker(), check_all(), check_component(), _probe(), _overall() --- {3 jobs: aggregation, health_checking, registration}
Outgoing: api/v1/endpoints/health.py --- {Dict[str, Any] health report, HealthCheckResult, HealthStatus enum}
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


# Worst first
_SEVERITY = (HealthStatus.UNHEALTHY, HealthStatus.DEGRADED, HealthStatus.HEALTHY)


@dataclass
class HealthCheckResult:
    component: str
    status: HealthStatus
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    checked_at: str = field(default_factory=_utc_now)
    response_time_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'component': self.component,
            'status': self.status.value,
            'message': self.message,
            'details': self.details,
            'response_time_ms': self.response_time_ms,
        }


class HealthChecker:
    """
    Registry of component probes.

    A probe is any object with an async `check_health()` returning a dict
    that carries at least a boolean 'healthy' and optionally a 'message'.
    """

    def __init__(self):
        self._started = time.monotonic()
        self._probes: Dict[str, Any] = {}

    def register_checker(self, name: str, checker: Any) -> None:
        self._probes[name] = checker

    @property
    def components(self) -> List[str]:
        return list(self._probes)

    def get_uptime(self) -> float:
        return time.monotonic() - self._started

    async def check_all(self) -> Dict[str, Any]:
        """Probe every component concurrently and aggregate."""
        started = time.perf_counter()
        results = await asyncio.gather(
            *(self._probe(name, probe) for name, probe in self._probes.items())
        )
        return {
            'status': self._overall(results).value,
            'timestamp': _utc_now(),
            'uptime_seconds': self.get_uptime(),
            'check_duration_ms': (time.perf_counter() - started) * 1000,
            'components': [result.to_dict() for result in results],
        }

    async def check_component(self, component: str) -> Optional[HealthCheckResult]:
        """Probe one component; None if it was never registered."""
        probe = self._probes.get(component)
        if probe is None:
            return None
        return await self._probe(component, probe)

    async def _probe(self, name: str, probe: Any) -> HealthCheckResult:
        started = time.perf_counter()
        try:
            report = await probe.check_health()
        except Exception as e:
            return HealthCheckResult(
                component=name,
                status=HealthStatus.UNHEALTHY,
                message=f"Health check failed: {e}",
                details={'error': str(e)},
            )

        healthy = bool(report.get('healthy'))
        return HealthCheckResult(
            component=name,
            status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
            message=report.get('message', 'ok' if healthy else 'unavailable'),
            details=report,
            response_time_ms=(time.perf_counter() - started) * 1000,
        )

    @staticmethod
    def _overall(results: Iterable[HealthCheckResult]) -> HealthStatus:
        statuses = {result.status for result in results}
        if not statuses:
            return HealthStatus.UNKNOWN
        for status in _SEVERITY:
            if status in statuses:
                return status
        return HealthStatus.UNKNOWN


def initialize_health_checks(
    store: Optional[Any] = None,
    runtime: Optional[Any] = None,
) -> HealthChecker:
    """Health checker probing the configured profile store and proxy runtime."""
    checker = HealthChecker()
    if store is not None:
        checker.register_checker('profile_store', store)
    if runtime is not None:
        checker.register_checker('proxy_runtime', runtime)
    return checker
