"""
Escalation Rule Engine
======================

First-match-wins evaluation of an ordered rule list against open tickets.

Per ticket the engine is a two-state machine: NOT_ESCALATED -> ESCALATED.
An escalated ticket is never matched again.
"""

from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Sequence
from uuid import uuid4

from servicedesk.config import SLAStatus
from servicedesk.escalation.domain.entities import EscalationRule
from servicedesk.sla.domain import Message, SLACalculator, Ticket

SYSTEM_SENDER_ID = "system"
SYSTEM_SENDER_NAME = "System"


@dataclass(frozen=True)
class EscalationRecord:
    """One applied rule. `ticket` is the mutated copy."""
    ticket: Ticket
    rule: EscalationRule
    sla_status: SLAStatus
    reassigned_to: Optional[str] = None
    dangling_user_id: Optional[str] = None
    dangling_group_id: Optional[str] = None

    @property
    def has_dangling_reference(self) -> bool:
        return self.dangling_user_id is not None or self.dangling_group_id is not None


@dataclass
class EscalationRun:
    records: List[EscalationRecord] = field(default_factory=list)
    # Candidates only; settled and already escalated tickets are not counted
    evaluated_count: int = 0

    @property
    def mutated_tickets(self) -> List[Ticket]:
        return [record.ticket for record in self.records]

    @property
    def escalated_count(self) -> int:
        return len(self.records)


class EscalationRuleEngine:
    """Stateless rule matching and application."""

    @staticmethod
    def matches(rule: EscalationRule, ticket: Ticket, sla_status: SLAStatus) -> bool:
        """A rule matches iff it is active and every present condition field is equal."""
        if not rule.is_active:
            return False
        condition = rule.condition
        if condition.priority is not None and condition.priority != ticket.priority:
            return False
        if condition.category is not None and condition.category != ticket.category:
            return False
        if condition.sla_status is not None and condition.sla_status != sla_status:
            return False
        return True

    @staticmethod
    def select_rule(
        rules: Sequence[EscalationRule],
        ticket: Ticket,
        sla_status: SLAStatus
    ) -> Optional[EscalationRule]:
        """First matching rule in list order, later rules are not evaluated."""
        for rule in rules:
            if EscalationRuleEngine.matches(rule, ticket, sla_status):
                return rule
        return None

    @staticmethod
    def is_candidate(ticket: Ticket) -> bool:
        return not ticket.is_settled and not ticket.is_escalated

    @staticmethod
    def apply(
        rule: EscalationRule,
        ticket: Ticket,
        sla_status: SLAStatus,
        now: int,
        known_user_ids: AbstractSet[str],
        known_group_ids: AbstractSet[str]
    ) -> EscalationRecord:
        """
        Apply a rule to a copy of the ticket.

        Dangling user or group references never block escalation: the flag
        is still set and the narration still appended.
        """
        escalated = ticket.copy()
        escalated.mark_escalated()
        action = rule.action
        outcomes = []

        reassigned_to = None
        dangling_user_id = None
        if action.assign_to_user_id is not None:
            if action.assign_to_user_id in known_user_ids:
                escalated.assign(action.assign_to_user_id, now)
                reassigned_to = action.assign_to_user_id
                outcomes.append(f"reassigned to {reassigned_to}")
            else:
                dangling_user_id = action.assign_to_user_id
                outcomes.append(f"assignee {dangling_user_id} not found, assignment unchanged")

        dangling_group_id = None
        if action.target_group_id is not None:
            if action.target_group_id in known_group_ids:
                escalated.escalation_group_id = action.target_group_id
                outcomes.append(f"routed to group {action.target_group_id}")
            else:
                dangling_group_id = action.target_group_id
                outcomes.append(f"group {dangling_group_id} not found, routing skipped")

        if action.new_priority is not None:
            escalated.priority = action.new_priority
            outcomes.append(f"priority set to {action.new_priority.value}")

        if not outcomes:
            outcomes.append("flagged for escalation")

        narration = f"Auto-escalated by rule '{rule.name}' (SLA {sla_status.value}): {'; '.join(outcomes)}."
        if action.note:
            narration += f" Note: {action.note}"

        escalated.add_message(Message(
            id=str(uuid4()),
            ticket_id=escalated.id,
            sender_id=SYSTEM_SENDER_ID,
            sender_name=SYSTEM_SENDER_NAME,
            content=narration,
            timestamp=now,
            is_internal=True
        ))

        return EscalationRecord(
            ticket=escalated,
            rule=rule,
            sla_status=sla_status,
            reassigned_to=reassigned_to,
            dangling_user_id=dangling_user_id,
            dangling_group_id=dangling_group_id
        )

    @staticmethod
    def run(
        rules: Sequence[EscalationRule],
        tickets: Iterable[Ticket],
        now: int,
        known_user_ids: AbstractSet[str] = frozenset(),
        known_group_ids: AbstractSet[str] = frozenset(),
        at_risk_ratio: float = 0.20
    ) -> EscalationRun:
        """
        Scan tickets and apply at most one rule to each.

        Input tickets are left untouched; escalated copies are returned
        in the order the tickets were scanned.
        """
        rules = list(rules)
        run = EscalationRun()
        for ticket in tickets:
            if not EscalationRuleEngine.is_candidate(ticket):
                continue
            run.evaluated_count += 1
            sla_status = SLACalculator.status_for(ticket, now, at_risk_ratio)
            rule = EscalationRuleEngine.select_rule(rules, ticket, sla_status)
            if rule is None:
                continue
            run.records.append(EscalationRuleEngine.apply(
                rule, ticket, sla_status, now, known_user_ids, known_group_ids
            ))
        return run
