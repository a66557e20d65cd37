"""
Escalation Application Layer
============================
"""

from servicedesk.escalation.application.dto import (
    AuditLogResponse,
    EscalationGroupCreateDTO,
    EscalationGroupResponse,
    EscalationRuleCreateDTO,
    EscalationRuleResponse,
    EscalationRunRequest,
    EscalationRunResponse,
    GroupMemberDTO,
    RuleActionDTO,
    RuleActiveUpdateDTO,
    RuleConditionDTO,
)
from servicedesk.escalation.application.services import (
    EscalationJobResult,
    EscalationService,
    IAuditLogRepository,
    IEscalationGroupRepository,
    IEscalationNotifier,
    IEscalationRuleRepository,
)

__all__ = [
    # DTOs
    "AuditLogResponse",
    "EscalationGroupCreateDTO",
    "EscalationGroupResponse",
    "EscalationRuleCreateDTO",
    "EscalationRuleResponse",
    "EscalationRunRequest",
    "EscalationRunResponse",
    "GroupMemberDTO",
    "RuleActionDTO",
    "RuleActiveUpdateDTO",
    "RuleConditionDTO",
    # Services
    "EscalationJobResult",
    "EscalationService",
    # Interfaces
    "IAuditLogRepository",
    "IEscalationGroupRepository",
    "IEscalationNotifier",
    "IEscalationRuleRepository",
]
