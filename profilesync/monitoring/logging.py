"""
Structured Logging - Monitoring Layer

One JSON object per line in production, a readable single-line format in
development. Every record carries the API request id and the controller
operation (import/select/enhance/chain) that produced it, so a reconciliation
triggered by a select can be traced back to the request that caused it.

@.architecture
Incoming: app.py, api/dependencies.py, core/sync/guards.py, All modules via get_logger() --- {preset name, level overrides, str request_id, str operation kind}
Processing: configure_logging(), configure_from_preset(), JSONFormatter.format(), ContextFilter.filter(), StructuredLogger.process() --- {4 jobs: context_injection, formatting, log_configuration, structured_logging}
Outgoing: sys.stdout, Log files, All modules --- {StructuredLogger instances, formatted log lines, context variables}
"""

import json
import logging
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Tuple

request_id_ctx: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
operation_ctx: ContextVar[Optional[str]] = ContextVar('operation', default=None)

TEXT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-34s | [%(request_id)s] [%(operation)s] | %(message)s'

# Loggers that are chatty at INFO (every httpx request, every uvicorn access line)
NOISY_LOGGERS = ('httpx', 'httpcore', 'uvicorn.access', 'asyncio')

# Keyword arguments the stdlib logger understands; everything else is a field
_LOGGER_KWARGS = ('exc_info', 'stack_info', 'stacklevel', 'extra')


def _context() -> Dict[str, str]:
    context = {}
    request_id = request_id_ctx.get()
    if request_id:
        context['request_id'] = request_id
    operation = operation_ctx.get()
    if operation:
        context['operation'] = operation
    return context


class JSONFormatter(logging.Formatter):
    """Render records as single-line JSON documents."""

    def __init__(self, include_traceback: bool = True):
        super().__init__()
        self.include_traceback = include_traceback

    def format(self, record: logging.LogRecord) -> str:
        document: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc)
                .isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}:{record.funcName}:{record.lineno}",
        }
        document.update(_context())

        fields = getattr(record, 'extra_fields', None)
        if fields:
            document['extra'] = fields

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            document['exception'] = {'type': exc_type.__name__, 'message': str(exc)}
            if self.include_traceback:
                document['exception']['traceback'] = ''.join(
                    traceback.format_exception(exc_type, exc, tb)
                )

        return json.dumps(document, default=str)


class ContextFilter(logging.Filter):
    """Expose request id and operation as record attributes ('-' when unset)."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _context()
        record.request_id = context.get('request_id', '-')
        record.operation = context.get('operation', '-')
        return True


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger accepting arbitrary keyword fields.

        logger.info("Import finished", url=url)

    Fields are attached to the record as `extra_fields` and rendered under
    "extra" by JSONFormatter.
    """

    def __init__(self, name: str):
        super().__init__(logging.getLogger(name), {})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        passthrough = {key: kwargs.pop(key) for key in _LOGGER_KWARGS if key in kwargs}
        if kwargs:
            extra = dict(passthrough.get('extra') or {})
            extra['extra_fields'] = dict(kwargs)
            passthrough['extra'] = extra
        return msg, passthrough


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


# =============================================================================
# Context
# =============================================================================

def set_request_context(request_id: Optional[str] = None) -> None:
    if request_id:
        request_id_ctx.set(request_id)


def clear_request_context() -> None:
    request_id_ctx.set(None)
    operation_ctx.set(None)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


def get_operation() -> Optional[str]:
    return operation_ctx.get()


# =============================================================================
# Configuration
# =============================================================================

def _handler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    return handler


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[Path] = None,
    enable_console: bool = True,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Root log level name
        format_type: "json" or "text"
        log_file: Also write to this file
        enable_console: Write to stdout
        module_levels: Per-logger level overrides, applied after the
            defaults for NOISY_LOGGERS
    """
    if format_type == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    handlers: List[logging.Handler] = []
    if enable_console:
        handlers.append(_handler(logging.StreamHandler(sys.stdout), formatter))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(log_file), formatter))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        root.addHandler(handler)

    levels = {name: 'WARNING' for name in NOISY_LOGGERS}
    levels.update(module_levels or {})
    for name, module_level in levels.items():
        logging.getLogger(name).setLevel(getattr(logging, module_level.upper(), logging.INFO))


LOGGING_PRESETS: Dict[str, Dict[str, Any]] = {
    'development': {
        'level': 'INFO',
        'format_type': 'text',
        'module_levels': {'profilesync.core.sync': 'DEBUG'},
    },
    'production': {
        'level': 'INFO',
        'format_type': 'json',
    },
    'testing': {
        'level': 'WARNING',
        'format_type': 'text',
        'module_levels': {'profilesync.core.sync': 'DEBUG'},
    },
}


def configure_from_preset(preset: str = 'development', **overrides: Any) -> None:
    """
    Configure logging from a named preset.

    Raises:
        ValueError: For an unknown preset name
    """
    if preset not in LOGGING_PRESETS:
        raise ValueError(f"Unknown preset: {preset}. Available: {list(LOGGING_PRESETS)}")

    configure_logging(**{**LOGGING_PRESETS[preset], **overrides})
