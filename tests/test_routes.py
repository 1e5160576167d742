"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from agentcoord.orchestrator import Orchestrator
from agentcoord.server import create_app


@pytest.fixture
def client(orc: Orchestrator) -> TestClient:
    return TestClient(create_app(orc))


@pytest.fixture
def bounty(client: TestClient) -> str:
    resp = client.post("/api/workstreams", json={"name": "bounty", "priority": 1})
    assert resp.status_code == 201
    return "bounty"


class TestStatusRoutes:
    """Tests for status and dashboard routes."""

    def test_index_serves_dashboard(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]

    def test_status(self, client: TestClient, bounty: str) -> None:
        data = client.get("/api/status").json()
        assert data["version"] == 1
        assert data["workstreams"][0]["name"] == bounty

    def test_status_text(self, client: TestClient) -> None:
        resp = client.get("/api/status/text")
        assert resp.status_code == 200
        assert resp.text.startswith("=== Agent Coordination Status ===")

    def test_cors_open(self, client: TestClient) -> None:
        resp = client.get("/api/status", headers={"Origin": "http://elsewhere.test"})
        assert resp.headers["access-control-allow-origin"] == "*"


class TestWorkstreamRoutes:
    """Tests for workstream and task routes."""

    def test_duplicate_workstream_conflict(self, client: TestClient, bounty: str) -> None:
        resp = client.post("/api/workstreams", json={"name": bounty})
        assert resp.status_code == 409
        assert "already exists" in resp.json()["error"]

    def test_missing_name_is_validation_error(self, client: TestClient) -> None:
        assert client.post("/api/workstreams", json={}).status_code == 422

    def test_task_lifecycle(self, client: TestClient, bounty: str) -> None:
        resp = client.post(f"/api/workstreams/{bounty}/tasks", json={"title": "Research", "estimate": "2h"})
        assert resp.status_code == 201
        task_id = resp.json()["id"]
        assert len(task_id) == 8

        resp = client.post(f"/api/workstreams/{bounty}/tasks/{task_id}/claim", json={"agent": "agent-1"})
        assert resp.json()["status"] == "in_progress"

        resp = client.post(f"/api/workstreams/{bounty}/tasks/{task_id}/claim", json={"agent": "agent-2"})
        assert resp.status_code == 409

        resp = client.post(f"/api/workstreams/{bounty}/tasks/{task_id}/complete", json={"result": "found 3"})
        assert resp.json()["status"] == "done"
        assert resp.json()["result"] == "found 3"

        [task] = client.get(f"/api/workstreams/{bounty}/tasks").json()
        assert task["status"] == "done"

    def test_complete_without_body(self, client: TestClient, bounty: str) -> None:
        task_id = client.post(f"/api/workstreams/{bounty}/tasks", json={"title": "t"}).json()["id"]
        resp = client.post(f"/api/workstreams/{bounty}/tasks/{task_id}/complete")
        assert resp.status_code == 200
        assert resp.json()["result"] is None

    def test_unknown_workstream_not_found(self, client: TestClient) -> None:
        assert client.get("/api/workstreams/nope/tasks").status_code == 404
        resp = client.post("/api/workstreams/nope/tasks", json={"title": "t"})
        assert resp.status_code == 404

    def test_next_task(self, client: TestClient, bounty: str) -> None:
        client.post(f"/api/workstreams/{bounty}/tasks", json={"title": "later", "priority": 5})
        client.post(f"/api/workstreams/{bounty}/tasks", json={"title": "urgent", "priority": 1})

        resp = client.post(f"/api/workstreams/{bounty}/next", json={"agent": "agent-1"})
        assert resp.json()["title"] == "urgent"
        client.post(f"/api/workstreams/{bounty}/next", json={"agent": "agent-1"})
        resp = client.post(f"/api/workstreams/{bounty}/next", json={"agent": "agent-1"})
        assert resp.json() == {"message": "No pending tasks"}


class TestAgentRoutes:
    """Tests for agent routes."""

    def test_register_and_list(self, client: TestClient) -> None:
        resp = client.post("/api/agents", json={"id": "agent-1", "type": "research"})
        assert resp.status_code == 201
        [agent] = client.get("/api/agents").json()
        assert agent["id"] == "agent-1"
        assert agent["type"] == "research"
        assert agent["stale"] is False

    def test_heartbeat(self, client: TestClient) -> None:
        client.post("/api/agents", json={"id": "agent-1"})
        assert client.post("/api/agents/agent-1/heartbeat").json() == {"ok": True, "known": True}
        assert client.post("/api/agents/ghost/heartbeat").json() == {"ok": True, "known": False}


class TestLockRoutes:
    """Tests for lock routes."""

    def test_acquire_deny_release(self, client: TestClient) -> None:
        resp = client.post("/api/locks", json={"resource": "db", "agent": "a"})
        assert resp.status_code == 200
        assert resp.json() == {"acquired": True}

        resp = client.post("/api/locks", json={"resource": "db", "agent": "b"})
        assert resp.status_code == 409
        assert resp.json() == {"acquired": False}

        [lock] = client.get("/api/locks").json()
        assert lock["agent"] == "a"

        resp = client.request("DELETE", "/api/locks/db", json={"agent": "b"})
        assert resp.json() == {"released": False}
        resp = client.request("DELETE", "/api/locks/db", json={"agent": "a"})
        assert resp.json() == {"released": True}
        assert client.get("/api/locks").json() == []

    def test_negative_ttl_rejected(self, client: TestClient) -> None:
        resp = client.post("/api/locks", json={"resource": "db", "agent": "a", "ttl": -1})
        assert resp.status_code == 422


class TestKnowledgeAndEventRoutes:
    """Tests for knowledge and event routes."""

    def test_knowledge_crud(self, client: TestClient) -> None:
        resp = client.put("/api/knowledge/notes", json={"content": "hello", "agent": "agent-1"})
        assert resp.json() == {"ok": True}
        assert client.get("/api/knowledge").json() == ["notes"]

        data = client.get("/api/knowledge/notes").json()
        assert data["topic"] == "notes"
        assert data["content"].startswith("<!-- Updated by agent-1 at ")
        assert data["content"].endswith("hello")

        assert client.delete("/api/knowledge/notes").json() == {"deleted": True}
        assert client.get("/api/knowledge/notes").status_code == 404

    def test_events_filters(self, client: TestClient, orc: Orchestrator) -> None:
        for i in range(4):
            orc.log_event("a", "tick", {"i": i})
        orc.log_event("b", "tock")

        events = client.get("/api/events", params={"agent": "a", "last": 2}).json()
        assert [e["i"] for e in events] == [2, 3]
        assert client.get("/api/events", params={"action": "tock"}).json()[0]["agent"] == "b"

    def test_bad_since_is_bad_request(self, client: TestClient) -> None:
        resp = client.get("/api/events", params={"since": "yesterday"})
        assert resp.status_code == 400
