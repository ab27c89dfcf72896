"""HTTP surface: health, turns, session flags and the Gemini proxy."""

import httpx
import pytest
from fastapi.testclient import TestClient

from blackjack_agents.agent.runner import TurnOrchestrator
from blackjack_agents.api.app import (
    app,
    get_orchestrator,
)
from blackjack_agents.config import settings
from blackjack_agents.tools import ToolRegistry
from conftest import (
    ScriptedChannel,
    make_snapshot,
)


@pytest.fixture
def orchestrator():
    orchestrator = TurnOrchestrator(ScriptedChannel(available=False), registry=ToolRegistry())
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield orchestrator
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_run_turn(client: TestClient, orchestrator: TurnOrchestrator) -> None:
    payload = {
        "role": "dealer",
        "snapshot": make_snapshot(dealer=("10", "6")).model_dump(mode="json"),
        "thinking_lang": "ja",
    }
    response = client.post("/turns", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "dealer"
    assert body["action"] == "hit"
    assert body["is_fallback"] is True
    assert body["lang_flag"] == "🇯🇵"
    assert [t["tool_name"] for t in body["tool_traces"]] == ["get_my_hand"]
    assert body["tool_traces"][0]["result"]["value"] == 16


def test_run_turn_rejects_bad_role(client: TestClient, orchestrator: TurnOrchestrator) -> None:
    payload = {"role": "croupier", "snapshot": make_snapshot().model_dump(mode="json")}
    assert client.post("/turns", json=payload).status_code == 422


def test_run_turn_while_busy(client: TestClient, orchestrator: TurnOrchestrator) -> None:
    orchestrator._busy = True  # pylint: disable=protected-access
    payload = {"role": "ai_player", "snapshot": make_snapshot().model_dump(mode="json")}
    response = client.post("/turns", json=payload)
    assert response.status_code == 409


def test_session_status_and_reset(client: TestClient, orchestrator: TurnOrchestrator) -> None:
    assert client.get("/session").json() == {"probed": False, "rate_limited": False}

    orchestrator.session.mark_rate_limited()
    assert client.get("/session").json() == {"probed": True, "rate_limited": True}

    assert client.post("/session/reset").json() == {"probed": False, "rate_limited": False}
    assert not orchestrator.session.rate_limited


def test_proxy_without_key(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    response = client.post("/api/gemini", json={"contents": []})
    assert response.status_code == 500
    assert response.json() == {"error": "API key not configured"}


def _patch_async_client(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    real_client = httpx.AsyncClient

    def patched(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", patched)


def test_proxy_forwards_body_and_status(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "server-key")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = request.content
        return httpx.Response(429, json={"error": {"message": "quota"}})

    _patch_async_client(monkeypatch, handler)
    response = client.post("/api/gemini", content=b'{"contents": []}')

    assert response.status_code == 429
    assert response.json() == {"error": {"message": "quota"}}
    assert seen["url"].params["key"] == "server-key"
    assert seen["url"].path.endswith(f"/models/{settings.GEMINI_MODEL}:generateContent")
    assert seen["body"] == b'{"contents": []}'


def test_proxy_upstream_unreachable(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "server-key")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    _patch_async_client(monkeypatch, handler)
    response = client.post("/api/gemini", json={})
    assert response.status_code == 502
    assert response.json() == {"error": "Proxy request failed"}
