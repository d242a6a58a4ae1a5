"""
Unit Tests: Monitoring

Tests for structured logging context and health check aggregation.
"""

import json
import logging
import sys

import pytest

from profilesync.monitoring import (
    HealthChecker,
    HealthStatus,
    JSONFormatter,
    get_logger,
    initialize_health_checks,
    operation_ctx,
)
from profilesync.monitoring.logging import (
    ContextFilter,
    clear_request_context,
    configure_from_preset,
    get_request_id,
    set_request_context,
)


def make_record(message="hello", exc_info=None):
    return logging.LogRecord(
        name="profilesync.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


class StaticCheck:
    def __init__(self, healthy=True, error=None):
        self.healthy = healthy
        self.error = error

    async def check_health(self):
        if self.error:
            raise self.error
        return {"healthy": self.healthy, "message": "ok" if self.healthy else "down"}


# =============================================================================
# Logging
# =============================================================================

class TestLogging:
    """Test JSON formatting and context injection."""

    @pytest.fixture(autouse=True)
    def clean_context(self):
        clear_request_context()
        yield
        clear_request_context()

    @pytest.mark.unit
    def test_json_format_includes_context(self):
        set_request_context("req-1")
        token = operation_ctx.set("select")
        try:
            data = json.loads(JSONFormatter().format(make_record()))
        finally:
            operation_ctx.reset(token)

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-1"
        assert data["operation"] == "select"

    @pytest.mark.unit
    def test_json_format_without_context(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert "request_id" not in data
        assert "operation" not in data

    @pytest.mark.unit
    def test_json_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record(exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"

    @pytest.mark.unit
    def test_context_filter_defaults(self):
        record = make_record()

        assert ContextFilter().filter(record) is True
        assert record.request_id == "-"
        assert record.operation == "-"

    @pytest.mark.unit
    def test_structured_logger_extra_fields(self, caplog):
        logger = get_logger("profilesync.test")

        with caplog.at_level(logging.INFO, logger="profilesync.test"):
            logger.info("Import finished", url="https://sub.example.com")

        record = caplog.records[-1]
        assert logger.name == "profilesync.test"
        assert record.extra_fields == {"url": "https://sub.example.com"}

    @pytest.mark.unit
    def test_request_context(self):
        set_request_context("req-2")
        assert get_request_id() == "req-2"

        clear_request_context()
        assert get_request_id() is None

    @pytest.mark.unit
    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            configure_from_preset("staging")


# =============================================================================
# Health
# =============================================================================

class TestHealthChecker:
    """Test component registration and status aggregation."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_components_is_unknown(self):
        result = await HealthChecker().check_all()

        assert result["status"] == HealthStatus.UNKNOWN.value
        assert result["components"] == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_all_healthy(self, memory_store, memory_runtime):
        checker = initialize_health_checks(store=memory_store, runtime=memory_runtime)

        result = await checker.check_all()

        assert checker.components == ["profile_store", "proxy_runtime"]
        assert result["status"] == "healthy"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_one_unhealthy(self):
        checker = HealthChecker()
        checker.register_checker("profile_store", StaticCheck())
        checker.register_checker("proxy_runtime", StaticCheck(healthy=False))

        result = await checker.check_all()

        assert result["status"] == "unhealthy"
        statuses = {c["component"]: c["status"] for c in result["components"]}
        assert statuses == {"profile_store": "healthy", "proxy_runtime": "unhealthy"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_raising_check_is_unhealthy(self):
        checker = HealthChecker()
        checker.register_checker("proxy_runtime", StaticCheck(error=ConnectionError("refused")))

        result = await checker.check_component("proxy_runtime")

        assert result.status is HealthStatus.UNHEALTHY
        assert "refused" in result.message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_component(self):
        assert await HealthChecker().check_component("database") is None
