"""
Escalation Application DTOs
===========================

Pydantic models for rule, group, job and audit log payloads. The rule
models double as the schema for the YAML rule file.
"""

from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from servicedesk.config import (
    AuditSeverity, Category, EscalationGroupType, GroupMemberRole, Priority, SLAStatus
)
from servicedesk.escalation.domain import (
    AuditLog,
    EscalationGroup,
    EscalationRule,
    GroupMember,
    RuleAction,
    RuleCondition,
)


# ========== Rules ==========

class RuleConditionDTO(BaseModel):
    """Absent fields match anything."""
    priority: Optional[Priority] = None
    category: Optional[Category] = None
    sla_status: Optional[SLAStatus] = None

    def to_domain(self) -> RuleCondition:
        return RuleCondition(
            priority=self.priority,
            category=self.category,
            sla_status=self.sla_status
        )


class RuleActionDTO(BaseModel):
    note: str = ""
    assign_to_user_id: Optional[str] = None
    target_group_id: Optional[str] = None
    new_priority: Optional[Priority] = None

    def to_domain(self) -> RuleAction:
        return RuleAction(
            note=self.note,
            assign_to_user_id=self.assign_to_user_id,
            target_group_id=self.target_group_id,
            new_priority=self.new_priority
        )


class EscalationRuleCreateDTO(BaseModel):
    id: Optional[str] = Field(None, min_length=1, description="Rule ID, generated when absent")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    trigger_type: str = "SLA_BASED"
    is_active: bool = True
    condition: RuleConditionDTO = Field(default_factory=RuleConditionDTO)
    action: RuleActionDTO = Field(default_factory=RuleActionDTO)

    def to_domain(self) -> EscalationRule:
        return EscalationRule(
            id=self.id or f"R-{uuid4().hex[:8].upper()}",
            name=self.name,
            condition=self.condition.to_domain(),
            action=self.action.to_domain(),
            is_active=self.is_active,
            description=self.description,
            trigger_type=self.trigger_type
        )


class RuleActiveUpdateDTO(BaseModel):
    is_active: bool


class EscalationRuleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    trigger_type: str
    is_active: bool
    condition: RuleConditionDTO
    action: RuleActionDTO

    @classmethod
    def from_domain(cls, rule: EscalationRule) -> "EscalationRuleResponse":
        return cls(
            id=rule.id,
            name=rule.name,
            description=rule.description,
            trigger_type=rule.trigger_type,
            is_active=rule.is_active,
            condition=RuleConditionDTO(
                priority=rule.condition.priority,
                category=rule.condition.category,
                sla_status=rule.condition.sla_status
            ),
            action=RuleActionDTO(
                note=rule.action.note,
                assign_to_user_id=rule.action.assign_to_user_id,
                target_group_id=rule.action.target_group_id,
                new_priority=rule.action.new_priority
            )
        )


# ========== Groups ==========

class GroupMemberDTO(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: GroupMemberRole = GroupMemberRole.MEMBER
    weekly_capacity_hours: int = Field(40, ge=0, le=168)

    def to_domain(self) -> GroupMember:
        return GroupMember(
            user_id=self.user_id,
            role=self.role,
            weekly_capacity_hours=self.weekly_capacity_hours
        )


class EscalationGroupCreateDTO(BaseModel):
    id: Optional[str] = Field(None, min_length=1)
    name: str = Field(..., min_length=1)
    type: EscalationGroupType = EscalationGroupType.TECHNICAL
    category: Optional[Category] = None
    members: List[GroupMemberDTO] = Field(default_factory=list)

    def to_domain(self) -> EscalationGroup:
        return EscalationGroup(
            id=self.id or f"G-{uuid4().hex[:8].upper()}",
            name=self.name,
            type=self.type,
            category=self.category,
            members=[m.to_domain() for m in self.members]
        )


class EscalationGroupResponse(BaseModel):
    id: str
    name: str
    type: EscalationGroupType
    category: Optional[Category] = None
    members: List[GroupMemberDTO]

    @classmethod
    def from_domain(cls, group: EscalationGroup) -> "EscalationGroupResponse":
        return cls(
            id=group.id,
            name=group.name,
            type=group.type,
            category=group.category,
            members=[
                GroupMemberDTO(
                    user_id=m.user_id,
                    role=m.role,
                    weekly_capacity_hours=m.weekly_capacity_hours
                )
                for m in group.members
            ]
        )


# ========== Job & Audit ==========

class EscalationRunRequest(BaseModel):
    actor_id: str = Field(default="admin", min_length=1, description="User triggering the run")


class EscalationRunResponse(BaseModel):
    ran_at: int
    evaluated_count: int
    escalated_count: int
    escalated_ticket_ids: List[str]


class AuditLogResponse(BaseModel):
    id: str
    timestamp: int
    action: str
    actor_id: str
    actor_name: str
    details: str
    severity: AuditSeverity
    ticket_id: Optional[str] = None
    rule_name: Optional[str] = None

    @classmethod
    def from_domain(cls, entry: AuditLog) -> "AuditLogResponse":
        return cls(
            id=entry.id,
            timestamp=entry.timestamp,
            action=entry.action,
            actor_id=entry.actor_id,
            actor_name=entry.actor_name,
            details=entry.details,
            severity=entry.severity,
            ticket_id=entry.ticket_id,
            rule_name=entry.rule_name
        )
