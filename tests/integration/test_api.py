"""
Integration Tests: API Endpoints

Tests for the v1 API endpoints against in-memory backends, including
request validation and the mapping of action results onto status codes.
"""

import asyncio

import pytest
from httpx import AsyncClient

SUB_URL = "https://sub.example.com/clash.yaml"


# =============================================================================
# Health Endpoint Tests
# =============================================================================

class TestHealthEndpoints:
    """Test health check endpoints."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()['environment'] == 'test'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test basic health check."""
        response = await client.get("/v1/health")

        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_health_detailed(self, client: AsyncClient):
        """Test detailed health check."""
        response = await client.get("/v1/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'healthy'
        assert {c['component'] for c in data['components']} == {'profile_store', 'proxy_runtime'}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_component_health(self, client: AsyncClient):
        response = await client.get("/v1/health/proxy_runtime")

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_component(self, client: AsyncClient):
        response = await client.get("/v1/health/database")

        assert response.status_code == 404


# =============================================================================
# Profile Endpoint Tests
# =============================================================================

class TestProfileEndpoints:
    """Test profile listing and actions."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_list_profiles(self, client: AsyncClient, app):
        await app.state.controller.wait_for_reconcile()

        response = await client.get("/v1/profiles", params={"refresh": True})

        assert response.status_code == 200
        data = response.json()
        assert data['current'] == 'p1'
        assert [item['uid'] for item in data['regular']] == ['p1']
        assert data['regular'][0]['selected'] == [
            {'name': 'A', 'now': 'n1'},
            {'name': 'B', 'now': 'n3'},
        ]
        assert data['enhanced'] == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_select_current_is_skipped(self, client: AsyncClient):
        response = await client.post("/v1/profiles/select", json={"uid": "p1"})

        assert response.status_code == 200
        assert response.json()['status'] == 'skipped'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_select_unknown_profile(self, client: AsyncClient):
        response = await client.post("/v1/profiles/select", json={"uid": "missing"})

        assert response.status_code == 404
        data = response.json()
        assert data['status'] == 'failed'
        assert data['error'] == 'NotFoundError'

        notices = (await client.get("/v1/notices")).json()
        assert notices['notices'][-1]['level'] == 'error'
        assert notices['notices'][-1]['duration_ms'] == 4000

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_select_requires_uid(self, client: AsyncClient):
        response = await client.post("/v1/profiles/select", json={})

        assert response.status_code == 422

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_import_profile(self, client: AsyncClient):
        response = await client.post("/v1/profiles/import", json={"url": SUB_URL})

        assert response.status_code == 200
        assert response.json()['status'] == 'completed'

        profiles = (await client.get("/v1/profiles")).json()
        assert profiles['current'] == 'p1'
        assert len(profiles['regular']) == 2

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_import_failure(self, client: AsyncClient):
        response = await client.post("/v1/profiles/import", json={"url": "not a url"})

        assert response.status_code == 502
        assert response.json()['message'] == 'Failed to import profile.'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_duplicate_import_conflict(self, client: AsyncClient, app, memory_store):
        gate = asyncio.Event()
        original = memory_store.import_remote

        async def slow_import(url):
            await gate.wait()
            await original(url)

        memory_store.import_remote = slow_import
        controller = app.state.controller

        first = asyncio.ensure_future(client.post("/v1/profiles/import", json={"url": SUB_URL}))
        while not controller.guards.is_in_flight("import"):
            await asyncio.sleep(0)

        second = await client.post("/v1/profiles/import", json={"url": SUB_URL})
        gate.set()
        first_response = await first

        assert second.status_code == 409
        assert second.json()['status'] == 'dropped'
        assert first_response.status_code == 200

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_enhance(self, client: AsyncClient):
        response = await client.post("/v1/profiles/enhance")

        assert response.status_code == 200
        assert response.json()['action'] == 'enhance'


# =============================================================================
# Chain Endpoint Tests
# =============================================================================

class TestChainEndpoints:
    """Test enhancement chain editing."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unchanged_chain(self, client: AsyncClient):
        response = await client.put("/v1/profiles/chain", json={"chain": []})

        assert response.status_code == 200
        assert response.json()['status'] == 'skipped'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_regular_profile_rejected(self, client: AsyncClient):
        response = await client.put("/v1/profiles/chain", json={"chain": ["p1"]})

        assert response.status_code == 404

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_chain_entry_action(self, client: AsyncClient):
        response = await client.post("/v1/profiles/p1/chain", json={"action": "activate"})

        assert response.status_code == 404
        assert response.json()['action'] == 'chain'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_invalid_chain_action(self, client: AsyncClient):
        response = await client.post("/v1/profiles/p1/chain", json={"action": "shuffle"})

        assert response.status_code == 422


# =============================================================================
# Runtime Endpoint Tests
# =============================================================================

class TestRuntimeEndpoints:
    """Test proxy, runtime log and notice endpoints."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_proxies(self, client: AsyncClient, app):
        await app.state.controller.wait_for_reconcile()

        response = await client.get("/v1/proxies", params={"refresh": True})

        assert response.status_code == 200
        groups = {group['name']: group['now'] for group in response.json()['groups']}
        assert groups == {'A': 'n1', 'B': 'n3'}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_runtime_logs(self, client: AsyncClient):
        response = await client.get("/v1/runtime/logs")

        assert response.status_code == 200
        assert response.json() == {'logs': {}}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_notices_limit(self, client: AsyncClient):
        await client.post("/v1/profiles/select", json={"uid": "missing"})
        await client.post("/v1/profiles/import", json={"url": SUB_URL})

        response = await client.get("/v1/notices", params={"limit": 1})

        data = response.json()
        assert data['count'] == 1
        assert data['notices'][0]['message'] == 'Successfully import profile.'
