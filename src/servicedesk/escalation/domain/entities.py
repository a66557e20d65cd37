"""
Escalation Domain Entities
==========================

Rules, escalation groups and audit log entries.

Rule order is positional: the list a rule sits in decides its precedence,
there is no numeric priority field.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from servicedesk.config import (
    AuditSeverity, Category, EscalationGroupType, GroupMemberRole, Priority, SLAStatus
)


@dataclass(frozen=True)
class RuleCondition:
    """
    Match criteria. Absent fields are wildcards, present fields are ANDed.

    A condition with every field absent matches every ticket.
    """
    priority: Optional[Priority] = None
    category: Optional[Category] = None
    sla_status: Optional[SLAStatus] = None

    @property
    def is_wildcard(self) -> bool:
        return self.priority is None and self.category is None and self.sla_status is None


@dataclass(frozen=True)
class RuleAction:
    """What happens to a ticket once its rule matches."""
    note: str = ""
    assign_to_user_id: Optional[str] = None
    target_group_id: Optional[str] = None
    new_priority: Optional[Priority] = None


@dataclass
class EscalationRule:
    id: str
    name: str
    condition: RuleCondition
    action: RuleAction
    is_active: bool = True
    description: Optional[str] = None
    trigger_type: str = "SLA_BASED"


@dataclass(frozen=True)
class GroupMember:
    user_id: str
    role: GroupMemberRole = GroupMemberRole.MEMBER
    weekly_capacity_hours: int = 40


@dataclass
class EscalationGroup:
    """A team that rules can route escalated tickets to."""
    id: str
    name: str
    type: EscalationGroupType
    category: Optional[Category] = None
    members: List[GroupMember] = field(default_factory=list)

    def add_member(self, member: GroupMember) -> None:
        self.members = [m for m in self.members if m.user_id != member.user_id]
        self.members.append(member)

    def remove_member(self, user_id: str) -> bool:
        before = len(self.members)
        self.members = [m for m in self.members if m.user_id != user_id]
        return len(self.members) != before


@dataclass(frozen=True)
class AuditLog:
    """Append-only record of an administrative or automatic action."""
    id: str
    timestamp: int
    action: str
    actor_id: str
    actor_name: str
    details: str
    severity: AuditSeverity = AuditSeverity.INFO
    ticket_id: Optional[str] = None
    rule_name: Optional[str] = None
