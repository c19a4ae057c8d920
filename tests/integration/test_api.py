"""Integration tests for API endpoints."""

import pytest
from httpx import AsyncClient, ASGITransport

from sarufi.core.exceptions import LLMTimeoutError
from sarufi.main import create_app


@pytest.fixture
def app(orchestrator):
    """App serving the fake-oracle orchestrator."""
    return create_app(orchestrator)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _start(client, user_id="u1", strategy_name="shoe_sales", **body):
    response = await client.post(
        "/sessions", json={"user_id": user_id, "strategy_name": strategy_name, **body}
    )
    assert response.status_code == 201, response.text
    return response.json()


# ============ SYSTEM ============


@pytest.mark.asyncio
async def test_health_endpoint(client):
    """Health endpoint reports strategy and active session counts."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"] == {"strategies": 1, "active_sessions": 0}


@pytest.mark.asyncio
async def test_liveness_endpoint(client):
    response = await client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_request_id_header(client):
    """Every response carries a correlation id."""
    first = await client.get("/health/live")
    second = await client.get("/health/live")

    assert first.headers["X-Request-ID"]
    assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]


# ============ STRATEGIES ============


@pytest.mark.asyncio
async def test_list_strategies(client):
    response = await client.get("/strategies")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["strategies"][0]["name"] == "shoe_sales"


@pytest.mark.asyncio
async def test_register_and_get_strategy(client, strategy_data):
    strategy_data["name"] = "boot_sales"

    response = await client.post("/strategies", json=strategy_data)
    assert response.status_code == 201
    assert response.json()["name"] == "boot_sales"

    response = await client.get("/strategies/boot_sales")
    assert response.status_code == 200
    assert response.json()["guidelines"]["must_do"] == strategy_data["guidelines"]["must_do"]


@pytest.mark.asyncio
async def test_register_invalid_strategy_returns_400(client, strategy_data):
    del strategy_data["primary_goal"]

    response = await client.post("/strategies", json=strategy_data)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "ValidationError"
    assert "primary_goal" in error["message"]


@pytest.mark.asyncio
async def test_unknown_strategy_returns_404(client):
    response = await client.get("/strategies/nope")

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "StrategyNotFoundError"


@pytest.mark.asyncio
async def test_unregister_strategy(client):
    response = await client.delete("/strategies/shoe_sales")
    assert response.status_code == 204

    response = await client.delete("/strategies/shoe_sales")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_strategy_performance_without_sessions(client):
    response = await client.get("/strategies/shoe_sales/performance")

    assert response.status_code == 200
    data = response.json()
    assert data["total_sessions"] == 0
    assert data["completion_rate"] == 0


# ============ SESSIONS ============


@pytest.mark.asyncio
async def test_session_lifecycle(client, fake_client):
    """Start, converse, end, then inspect stats."""
    fake_client.queue_decision(message="Welcome to the store!")
    session = await _start(client, initial_context={"channel": "web"})

    assert session["status"] == "started"
    assert session["initial_message"] == "Welcome to the store!"
    session_id = session["session_id"]

    fake_client.queue_decision(message="What size?")
    response = await client.post(f"/sessions/{session_id}/messages", json={"text": "Trail shoes"})
    assert response.status_code == 200
    output = response.json()
    assert output["message"] == "What size?"
    assert output["session_status"] == "active"
    assert output["agent_reasoning"].startswith("Analysis: ")

    response = await client.get(f"/sessions/{session_id}")
    assert response.status_code == 200
    context = response.json()
    assert context["messages_count"] == 3
    assert context["user_inputs"]["channel"] == "web"

    response = await client.delete(f"/sessions/{session_id}")
    assert response.json() == {"session_id": session_id, "ended": True, "status": "completed"}

    response = await client.delete(f"/sessions/{session_id}")
    assert response.json()["ended"] is False

    stats = (await client.get("/stats")).json()
    assert stats["total_sessions"] == 1
    assert stats["completed_sessions"] == 1
    assert stats["total_messages_processed"] == 1


@pytest.mark.asyncio
async def test_start_with_unknown_strategy_returns_404(client):
    response = await client.post(
        "/sessions", json={"user_id": "u1", "strategy_name": "nope"}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_start_with_mistyped_audit_key_returns_400(client):
    response = await client.post(
        "/sessions",
        json={
            "user_id": "u1",
            "strategy_name": "shoe_sales",
            "initial_context": {"decision_confidence": "very"},
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "ContextUpdateError"


@pytest.mark.asyncio
async def test_message_to_unknown_session_returns_404(client):
    response = await client.post("/sessions/missing/messages", json={"text": "hi"})

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "SessionNotFoundError"


@pytest.mark.asyncio
async def test_message_to_ended_session_returns_409(client):
    session = await _start(client)
    await client.delete(f"/sessions/{session['session_id']}")

    response = await client.post(
        f"/sessions/{session['session_id']}/messages", json={"text": "hi"}
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_empty_message_rejected(client):
    session = await _start(client)

    response = await client.post(f"/sessions/{session['session_id']}/messages", json={"text": ""})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_failed_turn_returns_fallback(client, fake_client):
    session = await _start(client)
    fake_client.queue_error(LLMTimeoutError("LLM call timed out after 2 attempts"))

    response = await client.post(f"/sessions/{session['session_id']}/messages", json={"text": "hi"})

    assert response.status_code == 200
    output = response.json()
    assert output["session_status"] == "active"
    assert output["agent_reasoning"] == "Error: LLM call timed out after 2 attempts"


@pytest.mark.asyncio
async def test_list_sessions_filters(client):
    first = await _start(client, user_id="u1")
    await _start(client, user_id="u1")
    await _start(client, user_id="u2")

    all_sessions = (await client.get("/sessions")).json()
    assert all_sessions["total"] == 3

    user_sessions = (await client.get("/sessions", params={"user_id": "u1"})).json()
    assert user_sessions["total"] == 2
    assert user_sessions["sessions"][0]["session_id"] == first["session_id"]
    assert user_sessions["sessions"][0]["status"] == "completed"

    active = (await client.get("/sessions", params={"user_id": "u1", "active_only": True})).json()
    assert active["total"] == 1

    all_active = (await client.get("/sessions", params={"active_only": True})).json()
    assert all_active["total"] == 2


@pytest.mark.asyncio
async def test_session_analytics(client):
    session = await _start(client)

    response = await client.get(f"/sessions/{session['session_id']}/analytics")

    assert response.status_code == 200
    data = response.json()
    assert data["current_stage"] == "discovery"
    assert data["decision_quality"] == "high"

    response = await client.get("/sessions/missing/analytics")
    assert response.status_code == 404
