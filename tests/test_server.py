"""Tests for the aiohttp webhook server."""

import json

import httpx
import pytest
from aiohttp.test_utils import TestClient, TestServer

from hookrelay.config import GerritConfig, Settings
from hookrelay.webhooks.adapters import GerritAdapter
from hookrelay.webhooks.dispatch import TriggerDispatcher
from hookrelay.webhooks.relay import RelayHandler
from hookrelay.webhooks.server import RelayServer

CI_ENDPOINT = "http://ci.example.com/trigger"

SCENARIO_A = {
    "type": "comment-added",
    "change": {"project": "repo1"},
    "patchSet": {"revision": "deadbeef"},
    "comment": "looks good\n\\check",
}


@pytest.fixture
def settings():
    return Settings(
        service_addr=CI_ENDPOINT,
        listen_addr="127.0.0.1:0",
        feedback_url="http://feedback.example.com",
        feedback_port="9000",
        gerrit=GerritConfig(clone_url="https://review.example.com"),
    )


@pytest.fixture
def received():
    return []


@pytest.fixture
def refuse():
    return {"value": False}


@pytest.fixture
async def client(settings, received, refuse):
    def ci(request):
        if refuse["value"]:
            raise httpx.ConnectError("connection refused")
        received.append(json.loads(request.content))
        return httpx.Response(200)

    dispatcher = TriggerDispatcher(CI_ENDPOINT, transport=httpx.MockTransport(ci))
    handler = RelayHandler(settings, {"/gerrit": GerritAdapter()}, dispatcher)
    server = RelayServer(settings, handler)
    app = server._build_app()
    async with TestClient(TestServer(app)) as c:
        yield c
    await dispatcher.aclose()


class TestRelayServer:
    async def test_scenario_a_dispatches(self, client, received):
        resp = await client.post("/gerrit", json=SCENARIO_A)
        assert resp.status == 200
        assert received[0]["clone_url"] == "https://review.example.com/repo1"
        assert received[0]["commit"] == "deadbeef"

    async def test_scenario_b_wrong_type(self, client, received):
        resp = await client.post("/gerrit", json={**SCENARIO_A, "type": "comment-deleted"})
        assert resp.status == 400
        assert received == []

    async def test_scenario_c_marker_not_last(self, client, received):
        resp = await client.post(
            "/gerrit", json={**SCENARIO_A, "comment": "\\check\nactually wait"}
        )
        assert resp.status == 200
        assert received == []

    async def test_scenario_d_connection_refused(self, client, refuse):
        refuse["value"] = True
        resp = await client.post("/gerrit", json=SCENARIO_A)
        assert resp.status == 500
        assert await resp.text() == "Internal Server Error"

    async def test_malformed_payload_returns_400(self, client):
        resp = await client.post(
            "/gerrit",
            data=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status == 400

    async def test_unregistered_path_returns_404(self, client):
        resp = await client.post("/gitea", json={})
        assert resp.status == 404

    async def test_get_not_allowed(self, client):
        resp = await client.get("/gerrit")
        assert resp.status == 405

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}


class TestServerLifecycle:
    async def test_start_and_stop(self, settings):
        dispatcher = TriggerDispatcher(CI_ENDPOINT)
        server = RelayServer(settings, RelayHandler(settings, {}, dispatcher))
        await server.start()
        await server.stop()
        await dispatcher.aclose()
