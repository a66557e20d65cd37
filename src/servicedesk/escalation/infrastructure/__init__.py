"""
Escalation Infrastructure Layer
===============================

- Repositories: In-memory rules, groups, audit log; YAML rule loader
- External: Slack notifier with circuit breaker, APScheduler job runner
"""

from servicedesk.escalation.infrastructure.repositories import (
    InMemoryAuditLogRepository,
    InMemoryEscalationGroupRepository,
    InMemoryEscalationRuleRepository,
    YAMLRuleLoader,
)
from servicedesk.escalation.infrastructure.external import (
    CircuitBreaker,
    CircuitState,
    EscalationScheduler,
    SlackClient,
)

__all__ = [
    "InMemoryAuditLogRepository",
    "InMemoryEscalationGroupRepository",
    "InMemoryEscalationRuleRepository",
    "YAMLRuleLoader",
    "CircuitBreaker",
    "CircuitState",
    "EscalationScheduler",
    "SlackClient",
]
