"""End-to-end tests through the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from conftest import T0
from servicedesk.config import Settings
from servicedesk.infrastructure.store import get_store
from servicedesk.infrastructure.store.seed import seed_demo_data
from servicedesk.main import create_app
from servicedesk.sla.domain import MS_PER_HOUR
from servicedesk.sla.infrastructure import FixedClock, FixedDemandSource

RULES_YAML = """
rules:
  - id: R-CRIT
    name: Critical breach
    condition:
      priority: Critical
      sla_status: BREACHED
    action:
      assign_to_user_id: admin
      target_group_id: G-TECH-L2
"""


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def client(tmp_path, clock):
    policy = tmp_path / "sla_config.yaml"
    policy.write_text("at_risk_ratio: 0.2\n")
    rules = tmp_path / "escalation_rules.yaml"
    rules.write_text(RULES_YAML)

    app = create_app(Settings(
        environment="test",
        seed_demo_data=False,
        escalation_job_enabled=False,
        sla_config_path=policy,
        escalation_rules_path=rules,
        slack_webhook_url=None,
    ))
    with TestClient(app) as test_client:
        app.state.clock = clock
        app.state.demand_source = FixedDemandSource(1.0)
        seed_demo_data(get_store(), now=T0)
        yield test_client


def create_ticket(client, **overrides):
    payload = {
        "title": "Server down",
        "priority": "Critical",
        "category": "Technical Support",
        "customer_id": "user1",
    }
    payload.update(overrides)
    return client.post("/sla/tickets", json=payload)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["escalation_scheduler"] == "stopped"
        assert body["checks"]["slack"] == "not_configured"

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestTickets:

    def test_create_stamps_sla(self, client):
        response = create_ticket(client, id="T-1")

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "T-1"
        assert body["sla_target"] == T0 + 4 * MS_PER_HOUR
        assert body["sla_tier"] == "Platinum"
        assert body["sla_status"] == "ON_TRACK"
        assert body["demand_factor_applied"] == 1.0

    def test_invalid_priority(self, client):
        assert create_ticket(client, priority="Urgent").status_code == 422

    def test_duplicate_id(self, client):
        create_ticket(client, id="T-1")
        response = create_ticket(client, id="T-1")
        assert response.status_code == 422
        assert response.json()["error_type"] == "ValidationException"

    def test_unknown_ticket(self, client):
        response = client.get("/sla/tickets/T-404")
        assert response.status_code == 404
        assert response.json()["error_type"] == "ResourceNotFoundException"

    def test_status_follows_clock(self, client, clock):
        create_ticket(client, id="T-1")

        clock.advance(int(3.5 * MS_PER_HOUR))
        assert client.get("/sla/tickets/T-1/sla").json()["sla_status"] == "AT_RISK"

        clock.advance(MS_PER_HOUR)
        body = client.get("/sla/tickets/T-1/sla").json()
        assert body["sla_status"] == "BREACHED"
        assert body["evaluated_at"] == T0 + int(4.5 * MS_PER_HOUR)

    def test_closed_ticket_is_terminal(self, client):
        create_ticket(client, id="T-1")
        assert client.patch("/sla/tickets/T-1/status", json={"status": "CLOSED"}).status_code == 200

        response = client.patch("/sla/tickets/T-1/status", json={"status": "OPEN"})
        assert response.status_code == 409

    def test_add_message(self, client):
        create_ticket(client, id="T-1")
        response = client.post("/sla/tickets/T-1/messages", json={
            "sender_id": "agent1",
            "sender_name": "Bob Agent (Tech)",
            "content": "Looking into it",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["messages"][-1]["content"] == "Looking into it"
        assert body["status"] == "AWAITING_CUSTOMER"

    def test_customer_cannot_claim_agent_role(self, client):
        create_ticket(client, id="T-1")
        response = client.post("/sla/tickets/T-1/messages", json={
            "sender_id": "user1",
            "sender_name": "Alice Customer",
            "sender_role": "AGENT",
            "content": "Marking this as answered",
        })
        assert response.status_code == 201
        assert response.json()["status"] == "IN_PROGRESS"

    def test_list_filters(self, client):
        create_ticket(client, id="T-1")
        create_ticket(client, id="T-2", priority="Low")

        response = client.get("/sla/tickets", params={"priority": "Low"})

        assert [t["id"] for t in response.json()] == ["T-2"]

    def test_dashboard(self, client):
        create_ticket(client, id="T-1")

        body = client.get("/sla/dashboard", params={"sla_status": "BREACHED"}).json()

        # Seeded T-1001 was opened a day ago with an 8h window
        assert [t["id"] for t in body["tickets"]] == ["T-1001"]
        assert body["summary"]["open_tickets"] == 2
        assert body["summary"]["breached_count"] == 1
        assert body["summary"]["breach_rate"] == 50.0


class TestEscalationApi:

    def test_rules_loaded_from_file(self, client):
        rules = client.get("/escalation/rules").json()
        assert [r["id"] for r in rules] == ["R-CRIT"]
        assert rules[0]["condition"]["category"] is None

    def test_rule_lifecycle(self, client):
        response = client.post("/escalation/rules", json={
            "id": "R-FIN",
            "name": "Finance at risk",
            "condition": {"category": "Finance", "sla_status": "AT_RISK"},
            "action": {"assign_to_user_id": "agent2"},
        })
        assert response.status_code == 201
        assert [r["id"] for r in client.get("/escalation/rules").json()] == ["R-CRIT", "R-FIN"]

        toggled = client.patch("/escalation/rules/R-FIN/active", json={"is_active": False}).json()
        assert toggled["is_active"] is False

        assert client.delete("/escalation/rules/R-FIN").status_code == 204
        assert client.delete("/escalation/rules/R-FIN").status_code == 404

        actions = [e["action"] for e in client.get("/escalation/audit-logs").json()]
        assert actions == ["RULE_DELETED", "RULE_CREATED"]

    def test_run_escalates_breached_critical(self, client, clock):
        create_ticket(client, id="T-1")
        clock.advance(5 * MS_PER_HOUR)

        response = client.post("/escalation/run", json={"actor_id": "admin"})

        assert response.status_code == 200
        body = response.json()
        assert body["escalated_ticket_ids"] == ["T-1"]

        ticket = client.get("/sla/tickets/T-1").json()
        assert ticket["is_escalated"] is True
        assert ticket["assigned_agent_id"] == "admin"
        assert ticket["escalation_group_id"] == "G-TECH-L2"
        assert ticket["messages"][-1]["is_internal"] is True

        logs = client.get("/escalation/audit-logs", params={"limit": 1}).json()
        assert len(logs) == 1
        assert logs[0]["action"] == "ESCALATION_JOB"

        assert client.post("/escalation/run").json()["escalated_count"] == 0

    def test_groups(self, client):
        groups = client.get("/escalation/groups").json()
        assert {g["id"] for g in groups} == {"G-TECH-L2", "G-MGMT"}

        response = client.post("/escalation/groups/G-MGMT/members", json={"user_id": "agent2"})
        assert response.status_code == 200
        assert "agent2" in [m["user_id"] for m in response.json()["members"]]

        assert client.post("/escalation/groups/G-MGMT/members", json={"user_id": "ghost"}).status_code == 404


class TestMatchingApi:

    def test_rank_agents(self, client):
        body = client.get("/matching/tickets/T-1001/agents").json()
        assert [r["agent_id"] for r in body["rankings"]] == ["agent1", "agent2"]
        assert body["rankings"][0]["breakdown"]["skill_match"] == 40

    def test_assign(self, client):
        response = client.post("/matching/tickets/T-1001/assign", json={"agent_id": "agent2"})
        assert response.status_code == 200
        assert response.json()["assigned_agent_id"] == "agent2"

    def test_assign_unknown_ticket(self, client):
        response = client.post("/matching/tickets/T-404/assign", json={"agent_id": "agent2"})
        assert response.status_code == 404


class TestStartupSeed:

    def test_seeded_ticket_uses_loaded_policy(self, tmp_path):
        policy = tmp_path / "sla_config.yaml"
        policy.write_text("base_hours:\n  High: 6\n")

        app = create_app(Settings(
            environment="test",
            seed_demo_data=True,
            escalation_job_enabled=False,
            sla_config_path=policy,
            escalation_rules_path=tmp_path / "absent.yaml",
            slack_webhook_url=None,
        ))
        with TestClient(app) as client:
            body = client.get("/sla/tickets/T-1001").json()

        assert body["priority"] == "High"
        assert body["sla_target"] - body["created_at"] == 6 * MS_PER_HOUR
