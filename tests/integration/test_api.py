"""API tests against the FastAPI app with an in-memory intelligence service"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from evshub.api.app import create_app

URGENT_LEAK = "URGENT: leak in Room 204, please fix immediately"


@pytest.fixture
def client(db_path, service):
    app = create_app(intelligence=service, pattern_analysis=False, rate_limit=False)
    with TestClient(app) as test_client:
        yield test_client


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"]["send"] == "/api/communication/send"


class TestSend:
    def test_send_returns_processed_message(self, client, task_sink):
        response = client.post(
            "/api/communication/send",
            json={"content": URGENT_LEAK, "sender": "Maria"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"].startswith("msg_")
        assert body["sender"] == "Maria"
        assert body["priority"] == "urgent"
        assert body["status"] == "sent"
        assert body["extracted_tasks"][0]["location"] == "Room 204"
        assert "urgent-task-auto-assign" in body["workflow_triggers"]
        assert len(body["suggestions"]) == 3
        assert task_sink.drafts[0].priority == "urgent"

    def test_sender_defaults(self, client):
        response = client.post("/api/communication/send", json={"content": "hello"})
        assert response.json()["sender"] == "Unknown User"

    def test_empty_content_rejected(self, client):
        response = client.post("/api/communication/send", json={"content": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "Invalid request format. Please check your request and try again."
        assert body["invalid_fields"] == ["content"]
        assert body["error_count"] == 1

    def test_unknown_message_type_rejected(self, client):
        response = client.post(
            "/api/communication/send", json={"content": "hello", "type": "carrier-pigeon"}
        )
        assert response.status_code == 422
        assert response.json()["invalid_fields"] == ["type"]


class TestMessages:
    def test_newest_first_with_assistant_reply(self, client):
        client.post("/api/communication/send", json={"content": "please restock Room 12"})

        response = client.get("/api/communication/messages")

        assert response.status_code == 200
        messages = response.json()
        assert [m["type"] for m in messages] == ["ai", "user"]
        assert messages[0]["sender"] == "AI Assistant"

    def test_limit(self, client):
        for i in range(3):
            client.post("/api/communication/send", json={"content": f"note {i}"})

        assert len(client.get("/api/communication/messages?limit=2").json()) == 2

    def test_limit_bounds(self, client):
        response = client.get("/api/communication/messages?limit=0")
        assert response.status_code == 422
        assert response.json()["invalid_fields"] == ["limit"]


class TestWorkflows:
    def test_list(self, client):
        workflows = client.get("/api/communication/workflows").json()

        assert [w["id"] for w in workflows] == [
            "urgent-task-auto-assign",
            "coverage-gap-predictor",
            "smart-escalation",
        ]
        assert workflows[0]["success_rate"] == 94
        assert workflows[0]["execution_history"] == []

    def test_toggle(self, client):
        response = client.post(
            "/api/communication/workflows/urgent-task-auto-assign/toggle", json={"active": False}
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

        body = client.post("/api/communication/send", json={"content": URGENT_LEAK}).json()
        assert "urgent-task-auto-assign" not in body["workflow_triggers"]

        workflows = {w["id"]: w for w in client.get("/api/communication/workflows").json()}
        assert workflows["urgent-task-auto-assign"]["active"] is False
        assert workflows["urgent-task-auto-assign"]["execution_history"] == []

    def test_toggle_unknown(self, client):
        response = client.post("/api/communication/workflows/nope/toggle", json={"active": True})
        assert response.status_code == 404
        assert response.json()["detail"] == "Unknown workflow: nope"

    def test_toggle_requires_active_flag(self, client):
        response = client.post("/api/communication/workflows/smart-escalation/toggle", json={})
        assert response.status_code == 422

    def test_execute(self, client):
        response = client.post("/api/communication/workflows/smart-escalation/execute")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Workflow executed successfully"
        assert body["execution"]["success"] is True

        workflows = {w["id"]: w for w in client.get("/api/communication/workflows").json()}
        history = workflows["smart-escalation"]["execution_history"]
        assert len(history) == 1
        assert history[0]["trigger_message_id"] == body["execution"]["trigger_message_id"]
        assert workflows["smart-escalation"]["success_rate"] == 100.0

        messages = client.get("/api/communication/messages").json()
        system = [m for m in messages if m["type"] == "system"]
        assert system[0]["sender"] == "System"
        assert system[0]["content"] == "Manual workflow execution"

    def test_execute_unknown(self, client):
        response = client.post("/api/communication/workflows/nope/execute")
        assert response.status_code == 404


def test_insights_after_coverage_gap(client):
    assert client.get("/api/communication/insights").json() == []

    client.post("/api/communication/workflows/coverage-gap-predictor/execute")

    [insight] = client.get("/api/communication/insights").json()
    assert insight["type"] == "coverage_gap"
    assert insight["impact"] == "high"
    assert insight["confidence"] == 0.85


def test_text_input_processing(client):
    response = client.post(
        "/api/text-inputs/process",
        json={"content": "Fix the elevator door. It sticks.", "source": "phone"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["text_input_id"].startswith("TXT")
    [task] = body["extracted_tasks"]
    assert task["title"] == "Fix the elevator door"
    assert task["location"] == "elevator"
    assert task["priority"] == "medium"


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["service"] == "EVS Hub API"
        assert "enabled" in body["llm"]

    def test_health_db(self, client):
        body = client.get("/health/db").json()
        assert body["status"] in ("healthy", "degraded")
        assert {"pool_size", "available", "in_use", "usage_percent"} <= set(body["pool"])

    def test_debug_stats(self, client):
        client.post("/api/communication/send", json={"content": URGENT_LEAK})

        body = client.get("/debug/stats").json()
        assert body["intelligence"]["messages"] == 2
        assert body["intelligence"]["workflows"]["urgent-task-auto-assign"]["executions"] == 1
        assert body["counters"]["intelligence.messages_ingested"] == 1
        assert body["tasks"]["by_status"] == {}
