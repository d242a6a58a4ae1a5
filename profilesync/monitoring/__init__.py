"""
Monitoring & Observability Layer

- Structured logging (JSON formatting, request and operation context)
- Health checks (profile store, proxy runtime)
"""

# Logging
from .logging import (
    JSONFormatter,
    ContextFilter,
    StructuredLogger,
    configure_logging,
    configure_from_preset,
    get_logger,
    set_request_context,
    clear_request_context,
    get_request_id,
    get_operation,
    operation_ctx,
    LOGGING_PRESETS,
)

# Health checks
from .health import (
    HealthStatus,
    HealthCheckResult,
    HealthChecker,
    initialize_health_checks,
)

__all__ = [
    # Logging
    'JSONFormatter',
    'ContextFilter',
    'StructuredLogger',
    'configure_logging',
    'configure_from_preset',
    'get_logger',
    'set_request_context',
    'clear_request_context',
    'get_request_id',
    'get_operation',
    'operation_ctx',
    'LOGGING_PRESETS',

    # Health
    'HealthStatus',
    'HealthCheckResult',
    'HealthChecker',
    'initialize_health_checks',
]
