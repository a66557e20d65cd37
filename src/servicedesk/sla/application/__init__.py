"""
SLA Application Layer
======================

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from servicedesk.sla.application.dto import (
    TicketCreateDTO,
    MessageCreateDTO,
    StatusUpdateDTO,
    MessageResponse,
    TicketResponse,
    SLAStatusResponse,
    DashboardSummary,
    DashboardResponse,
)
from servicedesk.sla.application.services import (
    SLAService,
    ITicketRepository,
    ISLAConfigProvider,
    IClock,
    IDemandSource,
)

__all__ = [
    # DTOs
    "TicketCreateDTO",
    "MessageCreateDTO",
    "StatusUpdateDTO",
    "MessageResponse",
    "TicketResponse",
    "SLAStatusResponse",
    "DashboardSummary",
    "DashboardResponse",
    # Services
    "SLAService",
    # Interfaces
    "ITicketRepository",
    "ISLAConfigProvider",
    "IClock",
    "IDemandSource",
]
