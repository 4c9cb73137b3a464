"""Tests for the FastAPI endpoints: agent proxy, flow sessions and HR dashboard."""

from __future__ import annotations

import httpx
import pytest
from conftest import evaluation_payload, fenced_evaluation_reply
from fastapi.testclient import TestClient

from agent.client import LyzrClient, MockAgentClient
from agent.prompts import INTERVIEW_QUESTIONS

CANDIDATE = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "phone": "555-0100",
    "role": "Backend Engineer",
}


@pytest.fixture
def client(mock_client: MockAgentClient, monkeypatch: pytest.MonkeyPatch):
    """Create a test client wired to a scripted agent and an in-memory store."""
    monkeypatch.setenv("AGENT_PROVIDER", "mock")
    monkeypatch.delenv("AGENTDESK_STORE_PATH", raising=False)

    from api import deps
    from api.main import app

    with TestClient(app) as c:
        # Override the client after startup so tests can script replies
        deps.init_agent_client(mock_client)
        yield c


def _lyzr(handler) -> LyzrClient:
    return LyzrClient(api_key="secret", transport=httpx.MockTransport(handler))


# --- Health / metrics ---


def test_health_check(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["agent_provider"] == "MockAgentClient"
    assert data["agent_configured"] is True


def test_request_id_header(client: TestClient):
    assert client.get("/api/health", headers={"x-request-id": "abc123"}).headers["x-request-id"] == "abc123"
    assert client.get("/api/health").headers["x-request-id"]


def test_metrics_endpoint(client: TestClient):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "agentdesk_proxy_requests_total" in response.text


# --- Agent proxy ---


def test_proxy_success(client: TestClient, mock_client: MockAgentClient):
    mock_client.add_response('{"answer": 42}')

    response = client.post(
        "/api/agent",
        json={"message": "hello", "agent_id": "agent-1", "session_id": "s-1"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["response"] == '{"answer": 42}'
    assert data["agent_id"] == "agent-1"
    assert data["session_id"] == "s-1"
    assert data["user_id"].startswith("user-")
    assert "timestamp" in data
    assert mock_client.call_history[0]["message"] == "hello"


@pytest.mark.parametrize(
    "body",
    [{"agent_id": "agent-1"}, {"message": "hello"}, {"message": "", "agent_id": "a"}, {}],
)
def test_proxy_missing_fields(client: TestClient, body: dict):
    response = client.post("/api/agent", json=body)
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Missing required fields: message and agent_id are required",
    }


def test_proxy_without_api_key(client: TestClient):
    from api import deps

    deps.init_agent_client(LyzrClient(api_key=""))

    response = client.post("/api/agent", json={"message": "hello", "agent_id": "a"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "LYZR_API_KEY not configured"}


def test_proxy_passes_upstream_status_through(client: TestClient):
    from api import deps

    deps.init_agent_client(_lyzr(lambda request: httpx.Response(503, text="maintenance")))

    response = client.post("/api/agent", json={"message": "hello", "agent_id": "a"})

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "error": "API returned status 503",
        "details": "maintenance",
    }


def test_proxy_forwards_to_upstream(client: TestClient):
    from api import deps

    deps.init_agent_client(_lyzr(lambda request: httpx.Response(200, json={"response": "pong"})))

    response = client.post("/api/agent", json={"message": "ping", "agent_id": "a"})

    assert response.status_code == 200
    assert response.json()["response"] == "pong"


def test_proxy_internal_error(client: TestClient):
    from api import deps

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    deps.init_agent_client(_lyzr(handler))

    response = client.post("/api/agent", json={"message": "ping", "agent_id": "a"})

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Internal server error"
    assert data["details"] == "Failed to reach agent API"


def test_proxy_invalid_json_body(client: TestClient):
    response = client.post(
        "/api/agent",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_proxy_preflight(client: TestClient):
    response = client.options("/api/agent")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type"


# --- Interview flow ---


def _run_interview(client: TestClient) -> str:
    response = client.post("/api/interviews", json=CANDIDATE)
    assert response.status_code == 201
    interview_id = response.json()["id"]
    for i in range(len(INTERVIEW_QUESTIONS)):
        response = client.post(
            f"/api/interviews/{interview_id}/answers",
            json={"answer": f"Answer {i + 1}"},
        )
        assert response.status_code == 200
    return interview_id


def test_start_interview(client: TestClient):
    response = client.post("/api/interviews", json=CANDIDATE)
    assert response.status_code == 201
    data = response.json()
    assert data["stage"] == "interviewing"
    assert data["current_question"] == INTERVIEW_QUESTIONS[0]
    assert data["total_questions"] == len(INTERVIEW_QUESTIONS)


def test_start_interview_incomplete_info(client: TestClient):
    response = client.post("/api/interviews", json={**CANDIDATE, "phone": ""})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please fill in all candidate information"


def test_blank_answer_rejected(client: TestClient):
    interview_id = client.post("/api/interviews", json=CANDIDATE).json()["id"]
    response = client.post(f"/api/interviews/{interview_id}/answers", json={"answer": " "})
    assert response.status_code == 400


def test_complete_too_early(client: TestClient):
    interview_id = client.post("/api/interviews", json=CANDIDATE).json()["id"]
    response = client.post(f"/api/interviews/{interview_id}/complete")
    assert response.status_code == 409


def test_unknown_interview(client: TestClient):
    assert client.get("/api/interviews/nope").status_code == 404
    assert client.delete("/api/interviews/nope").status_code == 404


def test_full_interview_lands_in_hr_history(client: TestClient, mock_client: MockAgentClient):
    mock_client.add_response(fenced_evaluation_reply(rating="Good Candidate", score=81))
    interview_id = _run_interview(client)

    response = client.post(f"/api/interviews/{interview_id}/complete")

    assert response.status_code == 200
    data = response.json()
    assert data["stage"] == "completed"
    record_id = data["record"]["id"]

    history = client.get("/api/hr/interviews").json()
    assert [r["id"] for r in history] == [record_id]
    assert history[0]["overall_rating"] == "Good Candidate"

    assert client.get("/api/hr/roles").json() == ["Backend Engineer"]
    assert client.get("/api/hr/interviews?rating=Weak%20Candidate").json() == []

    record = client.get(f"/api/hr/interviews/{record_id}")
    assert record.status_code == 200
    assert record.json()["evaluation"]["overall_score"] == 81

    report = client.get(f"/api/hr/interviews/{record_id}/report")
    assert report.status_code == 200
    assert "Score: 81/100" in report.text


def test_unreadable_evaluation_is_bad_gateway(client: TestClient, mock_client: MockAgentClient):
    mock_client.add_response("Sorry, something went wrong on my side.")
    interview_id = _run_interview(client)

    response = client.post(f"/api/interviews/{interview_id}/complete")

    assert response.status_code == 502
    assert client.get(f"/api/interviews/{interview_id}").json()["stage"] == "interviewing"


def test_upstream_failure_during_evaluation(client: TestClient):
    from api import deps

    interview_id = _run_interview(client)
    deps.init_agent_client(_lyzr(lambda request: httpx.Response(500, text="oops")))

    response = client.post(f"/api/interviews/{interview_id}/complete")

    assert response.status_code == 502
    assert response.json()["detail"]["upstream_status"] == 500


def test_discard_interview(client: TestClient):
    interview_id = client.post("/api/interviews", json=CANDIDATE).json()["id"]
    assert client.delete(f"/api/interviews/{interview_id}").status_code == 204
    assert client.get(f"/api/interviews/{interview_id}").status_code == 404


# --- Game flow ---


def test_full_game(client: TestClient, mock_client: MockAgentClient):
    mock_client.add_response('```json\n{"question": "Capital of France?", "difficulty": "easy"}\n```')
    mock_client.add_response('{"correct": true, "points": 5, "feedback": "Correct!"}')

    game = client.post("/api/games", json={"game_type": "trivia"})
    assert game.status_code == 201
    game_id = game.json()["id"]

    challenge = client.post(f"/api/games/{game_id}/challenge").json()
    assert challenge["pending"]["question"] == "Capital of France?"

    answered = client.post(f"/api/games/{game_id}/answers", json={"answer": "Paris"}).json()
    assert answered["round"]["correct"] is True
    assert answered["game"]["score"] == 5

    finished = client.post(f"/api/games/{game_id}/finish").json()
    assert finished["stage"] == "finished"

    history = client.get("/api/games/history").json()
    assert history[0]["score"] == 5
    assert history[0]["game_type"] == "trivia"


def test_unknown_game_type(client: TestClient):
    response = client.post("/api/games", json={"game_type": "poker"})
    assert response.status_code == 400


def test_answer_without_challenge(client: TestClient):
    game_id = client.post("/api/games", json={"game_type": "riddle"}).json()["id"]
    response = client.post(f"/api/games/{game_id}/answers", json={"answer": "x"})
    assert response.status_code == 409


# --- HR dashboard ---


def test_job_descriptions(client: TestClient):
    created = client.post("/api/hr/jds", json={"name": "Data Engineer.pdf"})
    assert created.status_code == 201
    jd = created.json()
    assert jd["role"] == "Data Engineer"

    assert client.post("/api/hr/jds", json={"name": "notes.exe"}).status_code == 400
    assert [j["id"] for j in client.get("/api/hr/jds").json()] == [jd["id"]]

    assert client.delete(f"/api/hr/jds/{jd['id']}").status_code == 204
    assert client.delete(f"/api/hr/jds/{jd['id']}").status_code == 404
    assert client.get("/api/hr/jds").json() == []


def test_recipient_email_used_in_evaluation_prompt(client: TestClient, mock_client: MockAgentClient):
    assert client.put("/api/hr/recipient-email", json={"email": "boss@example.com"}).json() == {
        "email": "boss@example.com",
    }
    assert client.get("/api/hr/recipient-email").json()["email"] == "boss@example.com"

    mock_client.add_response(evaluation_payload())
    interview_id = _run_interview(client)
    client.post(f"/api/interviews/{interview_id}/complete")

    assert "boss@example.com" in mock_client.call_history[-1]["message"]


def test_unknown_interview_record(client: TestClient):
    assert client.get("/api/hr/interviews/missing").status_code == 404
    assert client.get("/api/hr/interviews/missing/report").status_code == 404
