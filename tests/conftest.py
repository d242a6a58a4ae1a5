"""
Pytest Configuration and Shared Fixtures

Provides profile/proxy fixtures, in-memory collaborators, the app and an
async HTTP client for unit and integration tests.
"""

import os
from typing import AsyncGenerator, Callable, List

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Test environment setup
os.environ["PROFILESYNC_ENVIRONMENT"] = "test"
os.environ["PROFILESYNC_BACKEND"] = "memory"

from profilesync.api.dependencies import set_controller, set_health_checker
from profilesync.app import build_controller, create_app
from profilesync.config.settings import reload_settings
from profilesync.core.profiles.models import ProfileItem, ProfileSet, ProfileType, SelectedProxy
from profilesync.core.profiles.store import InMemoryProfileStore
from profilesync.core.runtime.models import ProxyGroupState
from profilesync.core.runtime.proxy import InMemoryProxyRuntime
from profilesync.core.sync.cache import StateCache
from profilesync.core.sync.controller import ActivationController
from profilesync.core.sync.notifications import NoticeBoard
from profilesync.monitoring import initialize_health_checks
from profilesync.utils.http import HTTPClient, HTTPClientConfig


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test component interactions"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Load test settings."""
    return reload_settings()


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings after each test."""
    yield
    reload_settings()


# =============================================================================
# Profile Fixtures
# =============================================================================

def selected(**groups: str) -> List[SelectedProxy]:
    """Selection list from keyword pairs, e.g. selected(A="n1")."""
    return [SelectedProxy(group_name=name, node_name=node) for name, node in groups.items()]


@pytest.fixture
def profile_factory() -> Callable[..., ProfileItem]:
    """Create profile items with sensible defaults."""
    def create(uid: str, type: str = "local", **kwargs) -> ProfileItem:
        return ProfileItem(uid=uid, type=ProfileType(type), name=kwargs.pop("name", uid), **kwargs)
    return create


@pytest.fixture
def scenario_set(profile_factory) -> ProfileSet:
    """One regular profile p1 that persists A -> n1."""
    return ProfileSet(
        current="p1",
        items=[profile_factory("p1", selected=selected(A="n1"))],
    )


@pytest.fixture
def scenario_groups() -> List[ProxyGroupState]:
    """Runtime groups A (on n2) and B (on n3)."""
    return [
        ProxyGroupState(name="A", now="n2", all=["n1", "n2"]),
        ProxyGroupState(name="B", now="n3", all=["n3", "n4"]),
    ]


@pytest.fixture
def mixed_set(profile_factory) -> ProfileSet:
    """Regular and enhancement profiles with a partially stale chain."""
    return ProfileSet(
        current="local1",
        chain=["script1", "gone", "merge1"],
        items=[
            profile_factory("local1"),
            profile_factory("merge1", type="merge"),
            profile_factory("remote1", type="remote", url="https://example.com/sub"),
            profile_factory("script1", type="script"),
            profile_factory("merge2", type="merge"),
        ],
    )


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture
def memory_store(scenario_set) -> InMemoryProfileStore:
    return InMemoryProfileStore(scenario_set)


@pytest.fixture
def memory_runtime(scenario_groups) -> InMemoryProxyRuntime:
    return InMemoryProxyRuntime(scenario_groups)


@pytest_asyncio.fixture
async def controller(memory_store, memory_runtime) -> AsyncGenerator[ActivationController, None]:
    """Controller over the scenario collaborators, reconciling without delay."""
    controller = ActivationController(
        memory_store,
        memory_runtime,
        cache=StateCache(),
        notices=NoticeBoard(),
        reconcile_delay=0,
    )
    yield controller
    await controller.stop()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================

@pytest.fixture
def mock_transport_factory() -> Callable[..., HTTPClient]:
    """HTTPClient whose requests are answered by `handler(request)`."""
    def create(handler, base_url: str = "http://backend.test", max_retries: int = 1, **config) -> HTTPClient:
        return HTTPClient(
            HTTPClientConfig(base_url=base_url, max_retries=max_retries, **config),
            transport=httpx.MockTransport(handler),
        )
    return create


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def app(test_settings, memory_store, memory_runtime):
    """Create FastAPI app for testing with in-memory backends."""
    app = create_app(settings=test_settings, store=memory_store, runtime=memory_runtime)

    controller = build_controller(
        test_settings.model_copy(
            update={"sync": test_settings.sync.model_copy(update={"reconcile_delay": 0})}
        ),
        memory_store,
        memory_runtime,
    )
    set_controller(controller)
    set_health_checker(initialize_health_checks(store=memory_store, runtime=memory_runtime))
    app.state.controller = controller
    await controller.start()

    yield app

    await controller.stop()
    set_controller(None)
    set_health_checker(None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
