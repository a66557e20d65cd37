"""
Escalation External Integrations
================================

Slack notifications for escalated tickets and the APScheduler wrapper that
runs the escalation job on an interval.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from servicedesk.config import SLAStatus
from servicedesk.escalation.application import IEscalationNotifier
from servicedesk.escalation.domain import EscalationRecord
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        time_func: Callable[[], float] = time.monotonic
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._time = time_func
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if self._time() - self._opened_at >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def allow_request(self) -> bool:
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        self._failure_count = 0
        self._opened_at = None
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1
        # A failed trial request in half-open reopens immediately
        if self._state == CircuitState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = self._time()
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


class SlackClient(IEscalationNotifier):
    """
    Slack webhook client with circuit breaker and retry logic.

    Posts one Block Kit message per escalated ticket. Delivery problems are
    logged and reported as False; they never reach the escalation job.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        channel: str = "#support-escalations",
        timeout_seconds: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        retry_base_delay: float = 1.0
    ):
        self._webhook_url = webhook_url
        self._channel = channel
        self._timeout = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60
        )
        self._retry_base_delay = retry_base_delay

    @property
    def enabled(self) -> bool:
        return bool(self._webhook_url)

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    def build_message(self, record: EscalationRecord) -> Dict[str, Any]:
        """Build Slack Block Kit message."""
        ticket = record.ticket
        if record.sla_status == SLAStatus.BREACHED:
            header_text = ":rotating_light: SLA Breach Escalation"
        elif record.sla_status == SLAStatus.AT_RISK:
            header_text = ":warning: SLA At-Risk Escalation"
        else:
            header_text = ":information_source: Rule-Based Escalation"

        fields = [
            {"type": "mrkdwn", "text": f"*Ticket:*\n{ticket.id}"},
            {"type": "mrkdwn", "text": f"*Priority:*\n{ticket.priority.value}"},
            {"type": "mrkdwn", "text": f"*Category:*\n{ticket.category.value}"},
            {"type": "mrkdwn", "text": f"*SLA Status:*\n{record.sla_status.value}"},
            {"type": "mrkdwn", "text": f"*Rule:*\n{record.rule.name}"},
            {"type": "mrkdwn", "text": f"*Assignee:*\n{ticket.assigned_agent_id or 'Unassigned'}"},
        ]

        return {
            "channel": self._channel,
            "text": f"{header_text}: {ticket.id}",
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": header_text, "emoji": True}
                },
                {"type": "section", "fields": fields},
                {
                    "type": "context",
                    "elements": [{"type": "mrkdwn", "text": ticket.title}]
                }
            ]
        }

    async def notify(self, record: EscalationRecord) -> bool:
        return await self.send_escalation(record)

    async def send_escalation(self, record: EscalationRecord, max_retries: int = 3) -> bool:
        """
        Send an escalation notice to the Slack webhook.

        Returns:
            True if sent successfully, False otherwise
        """
        ticket_id = record.ticket.id
        if not self._webhook_url:
            logger.debug("Slack webhook URL not configured, skipping notification")
            return False

        if not self._circuit_breaker.allow_request():
            logger.warning(
                "Circuit breaker open, skipping Slack notification",
                extra={"ticket_id": ticket_id}
            )
            return False

        message = self.build_message(record)

        for attempt in range(max_retries):
            try:
                client = await self._get_client()
                response = await client.post(self._webhook_url, json=message)

                if response.status_code == 200:
                    self._circuit_breaker.record_success()
                    logger.info(
                        "Slack notification sent",
                        extra={"ticket_id": ticket_id, "rule_name": record.rule.name}
                    )
                    return True

                logger.warning(
                    "Slack webhook returned non-200",
                    extra={"status_code": response.status_code, "attempt": attempt + 1}
                )

            except httpx.HTTPError as e:
                logger.error(
                    "Slack notification failed",
                    extra={"error": str(e), "attempt": attempt + 1, "ticket_id": ticket_id}
                )

            if attempt < max_retries - 1:
                await asyncio.sleep(self._retry_base_delay * (2 ** attempt))

        self._circuit_breaker.record_failure()
        return False

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None


class EscalationScheduler:
    """
    Wrapper for APScheduler running the escalation job in the background.

    A single job instance runs at a time; a run that is still going when the
    next tick fires makes that tick a no-op.
    """

    JOB_ID = "escalation_job"

    def __init__(self, interval_seconds: int = 300):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        """Start the scheduler with the given coroutine function."""
        if self._running:
            logger.warning("Escalation scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            name="Escalation Job",
            misfire_grace_time=60,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self._scheduler.start()
        self._running = True

        logger.info(
            "Escalation scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    def stop(self) -> None:
        if not self._running:
            return

        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Escalation scheduler stopped")

    def get_job(self):
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(self.JOB_ID)

    @property
    def is_running(self) -> bool:
        return self._running
