"""
Escalation Controllers (API Routes)
===================================

Rule and group administration, manual job runs and the audit trail.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from servicedesk.escalation.application import (
    AuditLogResponse,
    EscalationGroupCreateDTO,
    EscalationGroupResponse,
    EscalationRuleCreateDTO,
    EscalationRuleResponse,
    EscalationRunRequest,
    EscalationRunResponse,
    EscalationService,
    GroupMemberDTO,
    IEscalationNotifier,
    RuleActiveUpdateDTO,
)
from servicedesk.escalation.infrastructure import (
    InMemoryAuditLogRepository,
    InMemoryEscalationGroupRepository,
    InMemoryEscalationRuleRepository,
)
from servicedesk.infrastructure.store import InMemoryStore
from servicedesk.matching.infrastructure import InMemoryAgentRepository
from servicedesk.shared.api.dependencies import (
    get_clock,
    get_config_provider,
    get_notifier,
    store_dependency,
)
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application import IClock, ISLAConfigProvider
from servicedesk.sla.infrastructure import InMemoryTicketRepository

logger = get_logger(__name__)
escalation_router = APIRouter(prefix="/escalation", tags=["Escalation"])


# ========== Dependencies ==========

def build_escalation_service(
    store: InMemoryStore,
    config_provider: ISLAConfigProvider,
    clock: IClock,
    notifier: Optional[IEscalationNotifier] = None
) -> EscalationService:
    """Wire the escalation service to the process store."""
    return EscalationService(
        ticket_repository=InMemoryTicketRepository(store),
        rule_repository=InMemoryEscalationRuleRepository(store),
        group_repository=InMemoryEscalationGroupRepository(store),
        audit_repository=InMemoryAuditLogRepository(store),
        agent_repository=InMemoryAgentRepository(store),
        config_provider=config_provider,
        clock=clock,
        notifier=notifier,
        lock=store.write_lock
    )


async def get_escalation_service(
    store: InMemoryStore = Depends(store_dependency),
    config_provider: ISLAConfigProvider = Depends(get_config_provider),
    clock: IClock = Depends(get_clock),
    notifier: Optional[IEscalationNotifier] = Depends(get_notifier)
) -> EscalationService:
    return build_escalation_service(store, config_provider, clock, notifier)


# ========== Rules ==========

@escalation_router.get(
    "/rules",
    response_model=List[EscalationRuleResponse],
    summary="List escalation rules in precedence order"
)
async def list_rules(service: EscalationService = Depends(get_escalation_service)):
    return [EscalationRuleResponse.from_domain(r) for r in await service.list_rules()]


@escalation_router.post(
    "/rules",
    response_model=EscalationRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append an escalation rule",
    description="""
    New rules go to the end of the list and therefore have the lowest
    precedence. Absent condition fields match any ticket.
    """
)
async def create_rule(
    request: EscalationRuleCreateDTO,
    actor_id: str = Query("admin"),
    service: EscalationService = Depends(get_escalation_service)
):
    rule = await service.add_rule(request.to_domain(), actor_id=actor_id)
    return EscalationRuleResponse.from_domain(rule)


@escalation_router.delete(
    "/rules/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an escalation rule"
)
async def delete_rule(
    rule_id: str,
    actor_id: str = Query("admin"),
    service: EscalationService = Depends(get_escalation_service)
):
    await service.delete_rule(rule_id, actor_id=actor_id)


@escalation_router.patch(
    "/rules/{rule_id}/active",
    response_model=EscalationRuleResponse,
    summary="Enable or disable an escalation rule"
)
async def set_rule_active(
    rule_id: str,
    request: RuleActiveUpdateDTO,
    service: EscalationService = Depends(get_escalation_service)
):
    rule = await service.set_rule_active(rule_id, request.is_active)
    return EscalationRuleResponse.from_domain(rule)


# ========== Groups ==========

@escalation_router.get(
    "/groups",
    response_model=List[EscalationGroupResponse],
    summary="List escalation groups"
)
async def list_groups(service: EscalationService = Depends(get_escalation_service)):
    return [EscalationGroupResponse.from_domain(g) for g in await service.list_groups()]


@escalation_router.post(
    "/groups",
    response_model=EscalationGroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an escalation group"
)
async def create_group(
    request: EscalationGroupCreateDTO,
    service: EscalationService = Depends(get_escalation_service)
):
    group = await service.add_group(request.to_domain())
    return EscalationGroupResponse.from_domain(group)


@escalation_router.post(
    "/groups/{group_id}/members",
    response_model=EscalationGroupResponse,
    summary="Add or update a group member"
)
async def add_group_member(
    group_id: str,
    request: GroupMemberDTO,
    service: EscalationService = Depends(get_escalation_service)
):
    group = await service.add_group_member(group_id, request.to_domain())
    return EscalationGroupResponse.from_domain(group)


@escalation_router.delete(
    "/groups/{group_id}/members/{user_id}",
    response_model=EscalationGroupResponse,
    summary="Remove a group member"
)
async def remove_group_member(
    group_id: str,
    user_id: str,
    service: EscalationService = Depends(get_escalation_service)
):
    group = await service.remove_group_member(group_id, user_id)
    return EscalationGroupResponse.from_domain(group)


# ========== Job & Audit ==========

@escalation_router.post(
    "/run",
    response_model=EscalationRunResponse,
    summary="Run the escalation job now",
    description="""
    Scans every open ticket. The first active rule whose condition matches
    the ticket escalates it once. Omitted condition fields match any value,
    so a rule without an SLA status condition also escalates ON_TRACK
    tickets. Already escalated
    tickets are skipped, so repeated runs are idempotent.
    """
)
async def run_escalation(
    request: Optional[EscalationRunRequest] = None,
    service: EscalationService = Depends(get_escalation_service)
):
    actor_id = request.actor_id if request is not None else "admin"
    result = await service.run_job(actor_id)
    return EscalationRunResponse(
        ran_at=result.ran_at,
        evaluated_count=result.evaluated_count,
        escalated_count=result.escalated_count,
        escalated_ticket_ids=[t.id for t in result.mutated_tickets]
    )


@escalation_router.get(
    "/audit-logs",
    response_model=List[AuditLogResponse],
    summary="Audit trail, newest first"
)
async def list_audit_logs(
    limit: int = Query(100, ge=1, le=1000),
    service: EscalationService = Depends(get_escalation_service)
):
    return [AuditLogResponse.from_domain(e) for e in await service.list_audit_logs(limit)]
