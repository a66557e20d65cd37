"""
Matching Controllers (API Routes)
=================================

Agent recommendations for a ticket and manual assignment.
"""

from fastapi import APIRouter, Depends

from servicedesk.infrastructure.store import InMemoryStore
from servicedesk.matching.application import (
    AgentRankingResponse,
    AgentScoreResponse,
    AssignRequest,
    MatchingService,
)
from servicedesk.matching.infrastructure import InMemoryAgentRepository, InMemoryAssetCatalog
from servicedesk.shared.api.dependencies import get_clock, get_config_provider, store_dependency
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application import IClock, ISLAConfigProvider, TicketResponse
from servicedesk.sla.domain import SLACalculator
from servicedesk.sla.infrastructure import InMemoryTicketRepository

logger = get_logger(__name__)
matching_router = APIRouter(prefix="/matching", tags=["Agent Matching"])


# ========== Dependencies ==========

async def get_matching_service(
    store: InMemoryStore = Depends(store_dependency),
    clock: IClock = Depends(get_clock)
) -> MatchingService:
    return MatchingService(
        InMemoryTicketRepository(store),
        InMemoryAgentRepository(store),
        InMemoryAssetCatalog(store),
        clock,
        lock=store.write_lock
    )


# ========== Route Handlers ==========

@matching_router.get(
    "/tickets/{ticket_id}/agents",
    response_model=AgentRankingResponse,
    summary="Rank agents for a ticket",
    description="""
    Score every agent against the ticket, best first.

    **Scoring** (0-100):
    - Skill match: 40 when the agent covers the ticket category, otherwise 5
    - History: efficiency rating scaled to 25
    - Workload: 20 at zero active tickets, 0 at ten or more
    - Asset familiarity: familiarity with the linked asset's model scaled to 15

    Ranking is advisory; nothing is assigned.
    """
)
async def rank_agents(
    ticket_id: str,
    service: MatchingService = Depends(get_matching_service)
):
    scores = await service.rank_agents(ticket_id)
    return AgentRankingResponse(
        ticket_id=ticket_id,
        rankings=[AgentScoreResponse.from_domain(s) for s in scores]
    )


@matching_router.post(
    "/tickets/{ticket_id}/assign",
    response_model=TicketResponse,
    summary="Assign a ticket to an agent"
)
async def assign_ticket(
    ticket_id: str,
    request: AssignRequest,
    service: MatchingService = Depends(get_matching_service),
    clock: IClock = Depends(get_clock),
    config_provider: ISLAConfigProvider = Depends(get_config_provider)
):
    ticket = await service.assign(ticket_id, request.agent_id)
    now = clock.now()
    at_risk_ratio = config_provider.get_config().at_risk_ratio
    return TicketResponse.from_domain(
        ticket,
        SLACalculator.status_for(ticket, now, at_risk_ratio),
        SLACalculator.format_time_remaining(ticket.sla_target, now)
    )
