"""Tests for the rule file loader, Slack notifier and escalation scheduler."""

import asyncio
import json
from dataclasses import replace

import httpx
import pytest

from conftest import make_rule, make_ticket
from servicedesk.config import Category, Priority, SLAStatus
from servicedesk.core import ConfigurationException
from servicedesk.escalation.domain import EscalationRecord
from servicedesk.escalation.infrastructure import (
    CircuitBreaker,
    CircuitState,
    EscalationScheduler,
    SlackClient,
    YAMLRuleLoader,
)

RULES_YAML = """
rules:
  - id: R-1
    name: Critical breach
    condition:
      priority: Critical
      sla_status: BREACHED
    action:
      assign_to_user_id: admin
      note: Page the on-call lead
  - id: R-2
    name: Anything at risk
    is_active: false
    condition:
      sla_status: AT_RISK
  - name: Catch-all
"""

WEBHOOK = "https://hooks.slack.test/services/T000/B000/XXX"


class TestYAMLRuleLoader:

    def test_loads_rules_in_file_order(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML)

        rules = YAMLRuleLoader(path).load()

        assert [r.name for r in rules] == ["Critical breach", "Anything at risk", "Catch-all"]
        first = rules[0]
        assert first.id == "R-1"
        assert first.condition.priority == Priority.CRITICAL
        assert first.condition.sla_status == SLAStatus.BREACHED
        assert first.condition.category is None
        assert first.action.assign_to_user_id == "admin"
        assert first.action.note == "Page the on-call lead"
        assert rules[1].is_active is False
        assert rules[2].condition.is_wildcard
        assert rules[2].id.startswith("R-")

    def test_missing_file_yields_no_rules(self, tmp_path):
        assert YAMLRuleLoader(tmp_path / "absent.yaml").load() == []

    def test_invalid_rule(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules:\n  - name: Bad\n    condition:\n      priority: Urgent\n")
        with pytest.raises(ConfigurationException):
            YAMLRuleLoader(path).load()

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [\n")
        with pytest.raises(ConfigurationException):
            YAMLRuleLoader(path).load()

    def test_duplicate_ids(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules:\n  - id: R-1\n    name: A\n  - id: R-1\n    name: B\n")
        with pytest.raises(ConfigurationException):
            YAMLRuleLoader(path).load()


class TestCircuitBreaker:

    def test_opens_after_threshold_and_recovers(self):
        now = [0.0]
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=30, time_func=lambda: now[0])

        breaker.record_failure()
        assert breaker.state == CircuitState.CLOSED
        breaker.record_failure()
        assert breaker.state == CircuitState.OPEN
        assert not breaker.allow_request()

        now[0] = 30.0
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.allow_request()

        breaker.record_success()
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    def test_half_open_failure_reopens(self):
        now = [0.0]
        breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=10, time_func=lambda: now[0])
        for _ in range(5):
            breaker.record_failure()
        now[0] = 10.0
        assert breaker.state == CircuitState.HALF_OPEN

        breaker.record_failure()
        assert breaker.state == CircuitState.OPEN


@pytest.fixture
def record():
    ticket = make_ticket("T-9", priority=Priority.CRITICAL, category=Category.TECHNICAL,
                         assigned_agent_id="admin")
    return EscalationRecord(ticket=ticket, rule=make_rule("R-1", name="Critical breach"),
                            sla_status=SLAStatus.BREACHED, reassigned_to="admin")


def slack_client(handler, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SlackClient(WEBHOOK, channel="#esc", http_client=http_client, retry_base_delay=0, **kwargs)


class TestSlackClient:

    async def test_posts_block_kit_message(self, record):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text="ok")

        client = slack_client(handler)
        assert await client.send_escalation(record) is True

        assert len(requests) == 1
        assert str(requests[0].url) == WEBHOOK
        payload = json.loads(requests[0].content)
        assert payload["channel"] == "#esc"
        assert "T-9" in payload["text"]
        assert "Breach" in payload["blocks"][0]["text"]["text"]
        field_text = " ".join(f["text"] for f in payload["blocks"][1]["fields"])
        assert "Critical breach" in field_text
        assert "admin" in field_text

    @pytest.mark.parametrize("sla_status,header", [
        (SLAStatus.BREACHED, "SLA Breach Escalation"),
        (SLAStatus.AT_RISK, "SLA At-Risk Escalation"),
        (SLAStatus.ON_TRACK, "Rule-Based Escalation"),
    ])
    def test_header_follows_sla_status(self, record, sla_status, header):
        message = SlackClient(WEBHOOK).build_message(replace(record, sla_status=sla_status))
        assert message["blocks"][0]["text"]["text"].endswith(header)
        assert sla_status.value in message["blocks"][1]["fields"][3]["text"]

    async def test_notify_delegates(self, record):
        client = slack_client(lambda request: httpx.Response(200))
        assert await client.notify(record) is True

    async def test_retries_then_succeeds(self, record):
        responses = iter([httpx.Response(500), httpx.Response(200)])
        client = slack_client(lambda request: next(responses))
        assert await client.send_escalation(record) is True
        assert client.circuit_breaker.failure_count == 0

    async def test_transport_error_counts_as_failure(self, record):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = slack_client(handler)
        assert await client.send_escalation(record, max_retries=2) is False
        assert client.circuit_breaker.failure_count == 1

    async def test_open_circuit_skips_request(self, record):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        breaker.record_failure()
        client = slack_client(handler, circuit_breaker=breaker)

        assert await client.send_escalation(record) is False
        assert calls == []

    async def test_disabled_without_webhook(self, record):
        client = SlackClient(None)
        assert not client.enabled
        assert await client.send_escalation(record) is False

    async def test_close_leaves_injected_client_open(self, record):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = SlackClient(WEBHOOK, http_client=http_client)
        await client.close()
        assert not http_client.is_closed
        await http_client.aclose()


class TestEscalationScheduler:

    async def test_start_and_stop(self):
        async def job():
            pass

        scheduler = EscalationScheduler(interval_seconds=60)
        scheduler.start(job)
        try:
            assert scheduler.is_running
            scheduled = scheduler.get_job()
            assert scheduled is not None
            assert scheduled.max_instances == 1
        finally:
            scheduler.stop()
        assert not scheduler.is_running
        assert scheduler.get_job() is None

    async def test_start_twice_is_noop(self):
        async def job():
            pass

        scheduler = EscalationScheduler(interval_seconds=60)
        scheduler.start(job)
        first = scheduler.get_job()
        scheduler.start(job)
        try:
            assert scheduler.get_job().id == first.id
        finally:
            scheduler.stop()

    async def test_runs_job_on_interval(self):
        ran = asyncio.Event()

        async def job():
            ran.set()

        scheduler = EscalationScheduler(interval_seconds=1)
        scheduler.start(job)
        try:
            await asyncio.wait_for(ran.wait(), timeout=5)
        finally:
            scheduler.stop()

    def test_stop_when_not_running(self):
        EscalationScheduler().stop()
