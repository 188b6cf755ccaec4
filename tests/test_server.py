"""HTTP surface tests using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

import server
from agents.rubric_scorer import RubricScorer
from tools.llm_client import UpstreamBillingRequired, UpstreamRateLimited, UpstreamUnavailable
from tools.scenarios import SCENARIOS, ScriptedLLMClient


@pytest.fixture
def client_with():
    """Install a scorer backed by canned replies and return (client, llm)."""
    previous = server.app.state.scorer

    def _make(*replies):
        llm = ScriptedLLMClient(replies)
        server.app.state.scorer = RubricScorer(llm=llm)
        return TestClient(server.app), llm

    yield _make
    server.app.state.scorer = previous


def test_score_prompt_returns_clamped_payload(client_with):
    client, _ = client_with(SCENARIOS["out_of_range"])

    resp = client.post("/api/score-prompt", json={"prompt": "Please analyze the decks", "modelAnswer": "..."})

    assert resp.status_code == 200
    assert resp.json() == {
        "score": 20,
        "goal_score": 5,
        "context_score": 1,
        "source_score": 3,
        "expectation_score": 4,
        "feedback": "ok",
        "enhanced_prompt": "Please analyze...",
    }


def test_model_answer_reaches_the_model(client_with):
    client, llm = client_with(SCENARIOS["clean_json"])

    client.post("/api/score-prompt", json={"prompt": "Check the fuel", "modelAnswer": "Fuel at 80%"})

    _, user = llm.calls[0]
    assert "Fuel at 80%" in user
    assert user.endswith("Check the fuel")


def test_missing_model_answer_is_allowed(client_with):
    client, _ = client_with(SCENARIOS["prose_only"])

    resp = client.post("/api/score-prompt", json={"prompt": "Check the fuel"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 14
    assert body["enhanced_prompt"] == "Check the fuel"


@pytest.mark.parametrize("prompt", ["", "   "])
def test_blank_prompt_is_rejected(client_with, prompt):
    client, llm = client_with(SCENARIOS["clean_json"])

    resp = client.post("/api/score-prompt", json={"prompt": prompt, "modelAnswer": "x"})

    assert resp.status_code == 400
    assert llm.calls == []


@pytest.mark.parametrize(
    "error,status,detail",
    [
        (UpstreamRateLimited("429"), 429, server.RATE_LIMIT_MESSAGE),
        (UpstreamBillingRequired("402"), 402, server.BILLING_MESSAGE),
        (UpstreamUnavailable("down"), 500, server.UNAVAILABLE_MESSAGE),
    ],
)
def test_upstream_errors_map_to_status(client_with, error, status, detail):
    client, _ = client_with(error)

    resp = client.post("/api/score-prompt", json={"prompt": "Check the fuel"})

    assert resp.status_code == status
    assert resp.json() == {"detail": detail}


def test_health_reports_evaluations(client_with):
    client, _ = client_with(SCENARIOS["clean_json"])
    client.post("/api/score-prompt", json={"prompt": "Check the fuel"})

    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["evaluations"] == 1


def test_version(client_with):
    client, _ = client_with()
    assert client.get("/version").json() == {"version": server.API_VERSION, "api": "v1"}


def test_shutdown_closes_scorer_client(client_with):
    client, llm = client_with(SCENARIOS["clean_json"])

    with client:
        client.post("/api/score-prompt", json={"prompt": "Check the fuel"})
        assert not llm.closed

    assert llm.closed
