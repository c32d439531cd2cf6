#!/usr/bin/env python3
import sys
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from main import app
from api.dependencies import (
    get_rule_store, get_ticket_store, get_faq_store, get_llm_service, get_automation_service
)
from services.automation_service import AutomationService
from services.llm_service import GenerationError


@pytest.fixture
def client(rule_store, ticket_store, faq_store, mock_llm):
    """Test client wired to a temporary database and a fake LLM."""
    service = AutomationService(
        rule_store=rule_store,
        ticket_store=ticket_store,
        faq_store=faq_store,
        llm_service=mock_llm,
        ai_account_id="ai-account-under-test"
    )
    app.dependency_overrides[get_rule_store] = lambda: rule_store
    app.dependency_overrides[get_ticket_store] = lambda: ticket_store
    app.dependency_overrides[get_faq_store] = lambda: faq_store
    app.dependency_overrides[get_llm_service] = lambda: mock_llm
    app.dependency_overrides[get_automation_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


VPN_RULE = {
    "name": "VPN issues",
    "trigger": {"keyword": "vpn, connexion", "location": "title"},
    "action": {"type": "ia_reply", "iaPrompt": None, "faqId": None},
    "enabled": True
}


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == "ok"

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Helpdesk Automation Service"


class TestAutomationRoutes:

    def test_save_and_list(self, client):
        saved = client.put("/automations", json=VPN_RULE)
        assert saved.status_code == 200
        rule_id = saved.json()["id"]

        listed = client.get("/automations").json()
        assert [r["id"] for r in listed] == [rule_id]
        assert listed[0]["trigger"] == {"keyword": "vpn, connexion", "location": "title"}

    def test_update_existing_rule(self, client):
        rule_id = client.put("/automations", json=VPN_RULE).json()["id"]

        updated = client.put("/automations", json={**VPN_RULE, "id": rule_id, "enabled": False})

        assert updated.json()["enabled"] is False
        assert len(client.get("/automations").json()) == 1

    def test_assign_without_agent_rejected(self, client):
        payload = {**VPN_RULE, "action": {"type": "assign_agent"}}
        response = client.put("/automations", json=payload)
        assert response.status_code == 400

    def test_unknown_action_type_rejected(self, client):
        payload = {**VPN_RULE, "action": {"type": "send_email"}}
        assert client.put("/automations", json=payload).status_code == 422

    def test_delete(self, client):
        rule_id = client.put("/automations", json=VPN_RULE).json()["id"]

        assert client.delete(f"/automations/{rule_id}").status_code == 204
        assert client.get("/automations").json() == []

    def test_delete_unknown_rule(self, client):
        response = client.delete("/automations/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_suggest_keywords(self, client, mock_llm):
        response = client.post("/automations/suggest-keywords", json={"keyword": "vpn"})
        assert response.status_code == 200
        assert response.json() == {"keyword": "vpn", "suggestions": ["vpn", "network"]}
        mock_llm.suggest_keywords.assert_awaited_once_with("vpn")

    def test_suggest_keywords_unavailable(self, client, mock_llm):
        mock_llm.suggest_keywords.side_effect = GenerationError("down")
        response = client.post("/automations/suggest-keywords", json={"keyword": "vpn"})
        assert response.status_code == 502


class TestFaqRoutes:

    def test_faq_crud(self, client):
        created = client.post("/faq", json={"question": "VPN?", "answer": "Use the portal."})
        assert created.status_code == 201
        faq_id = created.json()["id"]

        client.put(f"/faq/{faq_id}", json={"question": "VPN?", "answer": "Use the new portal."})
        assert client.get("/faq").json()[0]["answer"] == "Use the new portal."

        assert client.delete(f"/faq/{faq_id}").status_code == 204
        assert client.get("/faq").json() == []


class TestTicketRoutes:

    def test_ticket_triggers_automation(self, client):
        client.put("/automations", json=VPN_RULE)

        response = client.post("/tickets", json={
            "title": "Problème de connexion VPN",
            "description": "Erreur 809",
            "client_id": "client-1",
            "message": "Please help"
        })

        assert response.status_code == 201
        body = response.json()
        assert body["automation_triggered"] is True
        assert body["automation_failed"] is False
        assert body["ticket"]["status"] == "ouvert"

        messages = client.get(f"/tickets/{body['ticket']['id']}/messages").json()
        assert [m["user_id"] for m in messages] == ["client-1", "ai-account-under-test"]
        assert messages[1]["content"] == "Here is how to fix your VPN connection."

    def test_ticket_without_automation_gets_acknowledgement(self, client):
        body = client.post("/tickets", json={"title": "Printer jam", "description": "Floor 2"}).json()

        assert body["automation_triggered"] is False
        messages = client.get(f"/tickets/{body['ticket']['id']}/messages").json()
        assert len(messages) == 1

    def test_invalid_priority(self, client):
        response = client.post("/tickets", json={"title": "VPN", "description": "x", "priority": "critical"})
        assert response.status_code == 400

    def test_first_message_without_client_rejected(self, client):
        response = client.post("/tickets", json={"title": "VPN", "description": "x", "message": "hello"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_unknown_ticket(self, client):
        response = client.get("/tickets/missing")
        assert response.status_code == 404
        assert response.json()["path"] == "/tickets/missing"

    def test_status_and_assignment(self, client):
        ticket_id = client.post("/tickets", json={"title": "Printer jam", "description": "x"}).json()["ticket"]["id"]

        resolved = client.patch(f"/tickets/{ticket_id}/status", json={"status": "resolu"}).json()
        assert resolved["status"] == "resolu"
        assert resolved["resolved_at"] is not None

        assigned = client.patch(f"/tickets/{ticket_id}/assign", json={"agent_id": "agent-7"}).json()
        assert assigned["agent_id"] == "agent-7"
        assert assigned["status"] == "en_cours"

    def test_invalid_status_value(self, client):
        ticket_id = client.post("/tickets", json={"title": "Printer jam", "description": "x"}).json()["ticket"]["id"]
        assert client.patch(f"/tickets/{ticket_id}/status", json={"status": "archived"}).status_code == 422
