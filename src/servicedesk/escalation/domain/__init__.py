"""
Escalation Domain Layer
=======================

Contains:
- Entities: EscalationRule, EscalationGroup, AuditLog
- Value Objects: RuleCondition, RuleAction, EscalationRecord
- Domain Services: EscalationRuleEngine
"""

from servicedesk.escalation.domain.entities import (
    AuditLog,
    EscalationGroup,
    EscalationRule,
    GroupMember,
    RuleAction,
    RuleCondition,
)
from servicedesk.escalation.domain.value_objects import (
    EscalationRecord,
    EscalationRuleEngine,
    EscalationRun,
    SYSTEM_SENDER_ID,
)

__all__ = [
    "AuditLog",
    "EscalationGroup",
    "EscalationRule",
    "GroupMember",
    "RuleAction",
    "RuleCondition",
    "EscalationRecord",
    "EscalationRuleEngine",
    "EscalationRun",
    "SYSTEM_SENDER_ID",
]
