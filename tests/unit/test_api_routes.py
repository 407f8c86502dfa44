from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import ai_router, build_runtime, get_runtime, router
from llm_gateway.errors import ProviderRejected
from storage.repository import SqliteSessionStore


@pytest.fixture
def client(tmp_db, make_gateway, scripted):
    gateway = make_gateway({"down": scripted(ProviderRejected("down", "returned status 500"))})
    runtime = build_runtime(gateway=gateway, store=SqliteSessionStore(tmp_db))
    app = FastAPI()
    app.include_router(router)
    app.include_router(ai_router)
    app.dependency_overrides[get_runtime] = lambda: runtime
    return TestClient(app)


def _create(client, total=2):
    resp = client.post("/api/coaching-sessions", json={"job_position": "Designer", "total_questions": total})
    assert resp.status_code == 201
    return resp.json()["id"]


def test_full_session_over_http(client):
    session_id = _create(client)

    started = client.post(f"/api/coaching-sessions/{session_id}/start")
    assert started.status_code == 200
    body = started.json()
    assert [t["kind"] for t in body["turns"]] == ["introduction", "question"]
    assert body["current_question"]["sequence"] == 1

    again = client.post(f"/api/coaching-sessions/{session_id}/start").json()
    assert again["turns"] == body["turns"]

    first = client.post(f"/api/coaching-sessions/{session_id}/responses", json={"text": "I led the redesign."})
    assert first.status_code == 200
    assert first.json()["evaluated_by"] == "heuristic"
    assert first.json()["next_question"]["sequence"] == 2

    last = client.post(
        f"/api/coaching-sessions/{session_id}/responses", json={"text": "We shipped it.", "input_method": "voice"}
    )
    assert last.json()["completed"] is True
    assert last.json()["session"]["progress"] == 100.0

    progress = client.get(f"/api/coaching-sessions/{session_id}/progress").json()
    assert progress["answered"] == 2

    conflict = client.post(f"/api/coaching-sessions/{session_id}/responses", json={"text": "More"})
    assert conflict.status_code == 409


def test_pause_resume_and_errors(client):
    session_id = _create(client)
    assert client.post(f"/api/coaching-sessions/{session_id}/pause").status_code == 409
    client.post(f"/api/coaching-sessions/{session_id}/start")

    assert client.post(f"/api/coaching-sessions/{session_id}/pause").json()["status"] == "paused"
    blocked = client.post(f"/api/coaching-sessions/{session_id}/responses", json={"text": "answer"})
    assert blocked.status_code == 409
    assert client.post(f"/api/coaching-sessions/{session_id}/resume").json()["phase"] == "awaiting_response"

    assert client.get("/api/coaching-sessions/missing").status_code == 404
    assert client.post("/api/coaching-sessions/missing/extend").status_code == 404
    assert client.post("/api/coaching-sessions/missing/recover").json()["recoverable"] is False


def test_extend_recover_and_status(client):
    session_id = _create(client)
    client.post(f"/api/coaching-sessions/{session_id}/start")
    assert client.post(f"/api/coaching-sessions/{session_id}/extend").status_code == 200
    assert client.post(f"/api/coaching-sessions/{session_id}/recover").json()["recoverable"] is True
    assert client.get(f"/api/coaching-sessions/{session_id}/status").json()["status"] == "active"


def test_ai_health_and_reset(client):
    session_id = _create(client)
    client.post(f"/api/coaching-sessions/{session_id}/start")
    client.post(f"/api/coaching-sessions/{session_id}/responses", json={"text": "answer"})

    health = client.get("/api/ai/health").json()
    assert health["providers"]["down"]["available"] is False
    reset = client.post("/api/ai/reset").json()
    assert reset["providers"]["down"]["available"] is True
    assert reset["providers"]["down"]["failures"] == 0
