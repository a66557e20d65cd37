"""
SLA Controllers (API Routes)
=============================

FastAPI routes for ticket intake and SLA monitoring.

Controllers are thin - they delegate to application services. SLA status
is always computed at read time from the frozen stamp and the clock.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from servicedesk.config import Category, Priority, SLAStatus, TicketStatus
from servicedesk.infrastructure.store import InMemoryStore
from servicedesk.matching.infrastructure import InMemoryAgentRepository
from servicedesk.shared.api.dependencies import (
    get_clock,
    get_config_provider,
    get_demand_source,
    store_dependency,
)
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application import (
    DashboardResponse,
    DashboardSummary,
    IClock,
    IDemandSource,
    ISLAConfigProvider,
    MessageCreateDTO,
    SLAService,
    SLAStatusResponse,
    StatusUpdateDTO,
    TicketCreateDTO,
    TicketResponse,
)
from servicedesk.sla.domain import Ticket
from servicedesk.sla.infrastructure import InMemoryTicketRepository

logger = get_logger(__name__)
sla_router = APIRouter(prefix="/sla", tags=["SLA Monitoring"])


# ========== Example payloads for Swagger ==========

TICKET_CREATE_EXAMPLE = {
    "title": "Laptop will not boot after update",
    "description": "Black screen after the latest BIOS update.",
    "priority": "High",
    "category": "Technical Support",
    "customer_id": "user1",
    "linked_asset_id": "A-101"
}


# ========== Dependencies ==========

async def get_sla_service(
    store: InMemoryStore = Depends(store_dependency),
    config_provider: ISLAConfigProvider = Depends(get_config_provider),
    clock: IClock = Depends(get_clock),
    demand_source: IDemandSource = Depends(get_demand_source)
) -> SLAService:
    """Get SLA service instance."""
    return SLAService(
        InMemoryTicketRepository(store),
        config_provider,
        clock,
        demand_source,
        agent_repository=InMemoryAgentRepository(store),
        lock=store.write_lock
    )


def _to_response(service: SLAService, ticket: Ticket, now: int) -> TicketResponse:
    return TicketResponse.from_domain(
        ticket,
        service.get_sla_status(ticket, now),
        service.time_remaining(ticket, now)
    )


# ========== Route Handlers ==========

@sla_router.post(
    "/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket",
    description="""
    Create a ticket and stamp its SLA.

    The deadline is `created_at + base_hours(priority) * demand_factor` and is
    frozen at creation. Later policy or demand changes never move it.

    **Base hours**: Critical 4, High 8, Medium 24, Low 72

    **Tiers**: Critical=Platinum, High=Gold, Medium=Silver, Low=Bronze
    """,
    responses={201: {"content": {"application/json": {"example": TICKET_CREATE_EXAMPLE}}}}
)
async def create_ticket(
    request: TicketCreateDTO,
    service: SLAService = Depends(get_sla_service)
):
    ticket = await service.create_ticket(
        title=request.title,
        priority=request.priority,
        customer_id=request.customer_id,
        category=request.category,
        description=request.description,
        ticket_id=request.id,
        created_at=request.created_at,
        linked_asset_id=request.linked_asset_id
    )
    return _to_response(service, ticket, service.now())


@sla_router.get(
    "/tickets",
    response_model=List[TicketResponse],
    summary="List tickets"
)
async def list_tickets(
    ticket_status: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    category: Optional[Category] = Query(None),
    sla_status: Optional[SLAStatus] = Query(None, description="Filter by live SLA status"),
    assigned_agent_id: Optional[str] = Query(None),
    service: SLAService = Depends(get_sla_service)
):
    filters = {}
    if ticket_status:
        filters["status"] = ticket_status
    if priority:
        filters["priority"] = priority
    if category:
        filters["category"] = category
    if assigned_agent_id:
        filters["assigned_agent_id"] = assigned_agent_id

    now = service.now()
    tickets = await service.list_tickets(filters, sla_status=sla_status, now=now)
    return [_to_response(service, t, now) for t in tickets]


@sla_router.get(
    "/tickets/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket with its SLA status",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(
    ticket_id: str,
    service: SLAService = Depends(get_sla_service)
):
    ticket = await service.get_ticket(ticket_id)
    return _to_response(service, ticket, service.now())


@sla_router.get(
    "/tickets/{ticket_id}/sla",
    response_model=SLAStatusResponse,
    summary="Get the live SLA status of a ticket"
)
async def get_ticket_sla(
    ticket_id: str,
    service: SLAService = Depends(get_sla_service)
):
    ticket = await service.get_ticket(ticket_id)
    now = service.now()
    return SLAStatusResponse(
        ticket_id=ticket.id,
        sla_status=service.get_sla_status(ticket, now),
        sla_target=ticket.sla_target,
        sla_tier=ticket.sla_tier,
        time_remaining=service.time_remaining(ticket, now),
        evaluated_at=now
    )


@sla_router.post(
    "/tickets/{ticket_id}/messages",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append a message to a ticket"
)
async def add_message(
    ticket_id: str,
    request: MessageCreateDTO,
    service: SLAService = Depends(get_sla_service)
):
    ticket = await service.add_message(
        ticket_id,
        sender_id=request.sender_id,
        sender_name=request.sender_name,
        content=request.content,
        is_internal=request.is_internal
    )
    return _to_response(service, ticket, service.now())


@sla_router.patch(
    "/tickets/{ticket_id}/status",
    response_model=TicketResponse,
    summary="Change a ticket status",
    responses={409: {"description": "Ticket is closed"}}
)
async def update_status(
    ticket_id: str,
    request: StatusUpdateDTO,
    service: SLAService = Depends(get_sla_service)
):
    ticket = await service.update_status(ticket_id, request.status)
    return _to_response(service, ticket, service.now())


@sla_router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="SLA dashboard",
    description="Tickets with live SLA status plus breach and risk counts over open tickets."
)
async def get_dashboard(
    sla_status: Optional[SLAStatus] = Query(None),
    priority: Optional[Priority] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    service: SLAService = Depends(get_sla_service)
):
    now = service.now()
    all_tickets = await service.list_tickets(now=now)

    filters = {"priority": priority} if priority else {}
    tickets = await service.list_tickets(filters, sla_status=sla_status, now=now)

    return DashboardResponse(
        tickets=[_to_response(service, t, now) for t in tickets[:limit]],
        total_count=len(tickets),
        summary=DashboardSummary(**service.summarize(all_tickets, now))
    )
