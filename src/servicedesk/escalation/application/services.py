"""
Escalation Application Services
===============================

Runs the escalation job and manages rules, groups and the audit log.

The job is a full scan that reads and writes the sticky escalation flag in
one pass, so it holds the shared write lock from the first read to the last
ticket replace.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from uuid import uuid4

from servicedesk.config import AuditSeverity, OPEN_STATUSES
from servicedesk.core import ResourceNotFoundException, ValidationException
from servicedesk.escalation.domain import (
    AuditLog,
    EscalationGroup,
    EscalationRecord,
    EscalationRule,
    EscalationRuleEngine,
    GroupMember,
)
from servicedesk.matching.application import IAgentRepository
from servicedesk.shared.infrastructure.logging import get_logger, log_latency
from servicedesk.sla.application import IClock, ISLAConfigProvider, ITicketRepository
from servicedesk.sla.domain import Ticket

logger = get_logger(__name__)

ENGINE_ACTOR_ID = "system"
ENGINE_ACTOR_NAME = "Escalation Engine"
AUTO_ESCALATION = "AUTO_ESCALATION"
ESCALATION_JOB = "ESCALATION_JOB"


# ========== Repository Interfaces ==========

class IEscalationRuleRepository(ABC):
    """Ordered rule storage. List order is precedence."""

    @abstractmethod
    async def list(self) -> List[EscalationRule]:
        """All rules in precedence order."""

    @abstractmethod
    async def get_by_id(self, rule_id: str) -> Optional[EscalationRule]:
        """Get rule by ID."""

    @abstractmethod
    async def add(self, rule: EscalationRule) -> EscalationRule:
        """Append a rule at the lowest precedence."""

    @abstractmethod
    async def replace(self, rule: EscalationRule) -> EscalationRule:
        """Overwrite a rule in place, keeping its position."""

    @abstractmethod
    async def delete(self, rule_id: str) -> bool:
        """Remove a rule. Returns False when it did not exist."""


class IEscalationGroupRepository(ABC):

    @abstractmethod
    async def list(self) -> List[EscalationGroup]:
        """All groups."""

    @abstractmethod
    async def get_by_id(self, group_id: str) -> Optional[EscalationGroup]:
        """Get group by ID."""

    @abstractmethod
    async def add(self, group: EscalationGroup) -> EscalationGroup:
        """Store a new group."""

    @abstractmethod
    async def replace(self, group: EscalationGroup) -> EscalationGroup:
        """Overwrite an existing group."""


class IAuditLogRepository(ABC):

    @abstractmethod
    async def append(self, entry: AuditLog) -> AuditLog:
        """Append an entry."""

    @abstractmethod
    async def list(self, limit: int = 100) -> List[AuditLog]:
        """Most recent entries first."""


class IEscalationNotifier(ABC):

    @abstractmethod
    async def notify(self, record: EscalationRecord) -> bool:
        """Announce an escalation. Returns True when delivered."""


# ========== Results ==========

@dataclass
class EscalationJobResult:
    actor_id: str
    ran_at: int
    evaluated_count: int
    records: List[EscalationRecord] = field(default_factory=list)

    @property
    def escalated_count(self) -> int:
        return len(self.records)

    @property
    def mutated_tickets(self) -> List[Ticket]:
        return [record.ticket for record in self.records]


# ========== Application Services ==========

class EscalationService:
    """Escalation job orchestration plus rule and group administration."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        rule_repository: IEscalationRuleRepository,
        group_repository: IEscalationGroupRepository,
        audit_repository: IAuditLogRepository,
        agent_repository: IAgentRepository,
        config_provider: ISLAConfigProvider,
        clock: IClock,
        notifier: Optional[IEscalationNotifier] = None,
        lock: Optional[asyncio.Lock] = None
    ):
        self._ticket_repo = ticket_repository
        self._rule_repo = rule_repository
        self._group_repo = group_repository
        self._audit_repo = audit_repository
        self._agent_repo = agent_repository
        self._config_provider = config_provider
        self._clock = clock
        self._notifier = notifier
        self._lock = lock or asyncio.Lock()

    # ----- Escalation job -----

    async def run_job(self, actor_id: str, now: Optional[int] = None) -> EscalationJobResult:
        """
        Scan every open ticket and apply the first matching active rule.

        Args:
            actor_id: Who triggered the run (user ID or "scheduler")
            now: Evaluation time, defaults to the clock

        Returns:
            EscalationJobResult with the escalated copies of mutated tickets
        """
        current_time = self._clock.now() if now is None else now

        with log_latency(logger, "escalation_job", actor_id=actor_id):
            async with self._lock:
                rules = await self._rule_repo.list()
                tickets = await self._ticket_repo.list({"status": OPEN_STATUSES})
                result = await self.run_escalation_job(rules, tickets, current_time, actor_id)

        await self._send_notifications(result.records)
        return result

    async def run_escalation_job(
        self,
        rules: Sequence[EscalationRule],
        tickets: Sequence[Ticket],
        now: int,
        actor_id: str
    ) -> EscalationJobResult:
        """
        Apply rules to an explicit ticket collection and persist the outcome.

        Callers outside run_job() must hold the write lock themselves.
        """
        known_user_ids = {u.id for u in await self._agent_repo.list() if u.is_staff}
        known_group_ids = {g.id for g in await self._group_repo.list()}
        at_risk_ratio = self._config_provider.get_config().at_risk_ratio

        run = EscalationRuleEngine.run(
            rules, tickets, now, known_user_ids, known_group_ids, at_risk_ratio
        )

        for record in run.records:
            await self._ticket_repo.replace(record.ticket)
            if record.has_dangling_reference:
                logger.warning(
                    "Escalation rule references unknown target, escalation kept",
                    extra={
                        "ticket_id": record.ticket.id,
                        "rule_id": record.rule.id,
                        "rule_name": record.rule.name,
                        "dangling_user_id": record.dangling_user_id,
                        "dangling_group_id": record.dangling_group_id
                    }
                )
            logger.info(
                "Ticket escalated",
                extra={
                    "ticket_id": record.ticket.id,
                    "rule_name": record.rule.name,
                    "sla_status": record.sla_status.value,
                    "assigned_agent_id": record.ticket.assigned_agent_id
                }
            )
            await self._audit(AuditLog(
                id=str(uuid4()),
                timestamp=now,
                action=AUTO_ESCALATION,
                actor_id=ENGINE_ACTOR_ID,
                actor_name=ENGINE_ACTOR_NAME,
                details=record.ticket.messages[-1].content,
                severity=AuditSeverity.WARNING,
                ticket_id=record.ticket.id,
                rule_name=record.rule.name
            ))

        if run.escalated_count > 0:
            await self._audit(AuditLog(
                id=str(uuid4()),
                timestamp=now,
                action=ESCALATION_JOB,
                actor_id=actor_id,
                actor_name=await self._actor_name(actor_id),
                details=f"Escalation job escalated {run.escalated_count} ticket(s)",
                severity=AuditSeverity.INFO
            ))

        return EscalationJobResult(
            actor_id=actor_id,
            ran_at=now,
            evaluated_count=run.evaluated_count,
            records=run.records
        )

    async def _audit(self, entry: AuditLog) -> None:
        """Audit failures are logged and never undo ticket mutations."""
        try:
            await self._audit_repo.append(entry)
        except Exception as e:
            logger.error(
                "Failed to write audit log entry",
                extra={"action": entry.action, "ticket_id": entry.ticket_id, "error": str(e)}
            )

    async def _send_notifications(self, records: List[EscalationRecord]) -> None:
        if self._notifier is None:
            return
        for record in records:
            try:
                await self._notifier.notify(record)
            except Exception as e:
                logger.error(
                    "Escalation notification failed",
                    extra={"ticket_id": record.ticket.id, "error": str(e)}
                )

    async def _actor_name(self, actor_id: str) -> str:
        user = await self._agent_repo.get_by_id(actor_id)
        return user.name if user is not None else actor_id

    # ----- Rules -----

    async def list_rules(self) -> List[EscalationRule]:
        return await self._rule_repo.list()

    async def get_rule(self, rule_id: str) -> EscalationRule:
        rule = await self._rule_repo.get_by_id(rule_id)
        if rule is None:
            raise ResourceNotFoundException("Escalation rule", rule_id)
        return rule

    async def add_rule(self, rule: EscalationRule, actor_id: str = ENGINE_ACTOR_ID) -> EscalationRule:
        if await self._rule_repo.get_by_id(rule.id) is not None:
            raise ValidationException(f"Escalation rule {rule.id} already exists", {"rule_id": rule.id})
        await self._rule_repo.add(rule)
        await self._audit(AuditLog(
            id=str(uuid4()),
            timestamp=self._clock.now(),
            action="RULE_CREATED",
            actor_id=actor_id,
            actor_name=await self._actor_name(actor_id),
            details=f"Created escalation rule '{rule.name}'",
            rule_name=rule.name
        ))
        return rule

    async def delete_rule(self, rule_id: str, actor_id: str = ENGINE_ACTOR_ID) -> None:
        rule = await self.get_rule(rule_id)
        await self._rule_repo.delete(rule_id)
        await self._audit(AuditLog(
            id=str(uuid4()),
            timestamp=self._clock.now(),
            action="RULE_DELETED",
            actor_id=actor_id,
            actor_name=await self._actor_name(actor_id),
            details=f"Deleted escalation rule '{rule.name}'",
            severity=AuditSeverity.WARNING,
            rule_name=rule.name
        ))

    async def set_rule_active(self, rule_id: str, is_active: bool) -> EscalationRule:
        rule = await self.get_rule(rule_id)
        rule.is_active = is_active
        return await self._rule_repo.replace(rule)

    # ----- Groups -----

    async def list_groups(self) -> List[EscalationGroup]:
        return await self._group_repo.list()

    async def get_group(self, group_id: str) -> EscalationGroup:
        group = await self._group_repo.get_by_id(group_id)
        if group is None:
            raise ResourceNotFoundException("Escalation group", group_id)
        return group

    async def add_group(self, group: EscalationGroup) -> EscalationGroup:
        if await self._group_repo.get_by_id(group.id) is not None:
            raise ValidationException(f"Escalation group {group.id} already exists", {"group_id": group.id})
        return await self._group_repo.add(group)

    async def add_group_member(self, group_id: str, member: GroupMember) -> EscalationGroup:
        group = await self.get_group(group_id)
        if await self._agent_repo.get_by_id(member.user_id) is None:
            raise ResourceNotFoundException("User", member.user_id)
        group.add_member(member)
        return await self._group_repo.replace(group)

    async def remove_group_member(self, group_id: str, user_id: str) -> EscalationGroup:
        group = await self.get_group(group_id)
        if not group.remove_member(user_id):
            raise ResourceNotFoundException("Group member", user_id)
        return await self._group_repo.replace(group)

    # ----- Audit -----

    async def list_audit_logs(self, limit: int = 100) -> List[AuditLog]:
        return await self._audit_repo.list(limit)
