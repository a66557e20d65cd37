"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories, clock,
  demand source), not concrete implementations
"""

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import uuid4

from servicedesk.config import Category, Priority, SLAStatus, TicketStatus
from servicedesk.core import ResourceNotFoundException, ValidationException
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.domain import Message, SLACalculator, SLAPolicyConfig, SLATarget, Ticket

if TYPE_CHECKING:
    from servicedesk.matching.application import IAgentRepository

logger = get_logger(__name__)


# ========== Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Ticket]:
        """List tickets, newest first."""

    @abstractmethod
    async def add(self, ticket: Ticket) -> Ticket:
        """Store a new ticket."""

    @abstractmethod
    async def replace(self, ticket: Ticket) -> Ticket:
        """Overwrite an existing ticket."""


class ISLAConfigProvider(ABC):
    """Interface for SLA policy access."""

    @abstractmethod
    def get_config(self) -> SLAPolicyConfig:
        """Get current SLA policy."""


class IClock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> int:
        """Current time in epoch milliseconds."""


class IDemandSource(ABC):
    """Source of the demand factor applied to new SLA deadlines."""

    @abstractmethod
    def demand_factor(self, at: int) -> float:
        """Demand multiplier in effect at the given epoch ms."""


# ========== Application Services ==========

class SLAService:
    """
    Service for SLA stamping, live status and ticket lifecycle.

    Every write to a ticket happens under the shared write lock so it cannot
    interleave with an escalation pass.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        config_provider: ISLAConfigProvider,
        clock: IClock,
        demand_source: IDemandSource,
        agent_repository: Optional["IAgentRepository"] = None,
        lock: Optional[asyncio.Lock] = None
    ):
        self._ticket_repo = ticket_repository
        self._config_provider = config_provider
        self._clock = clock
        self._demand_source = demand_source
        self._agent_repo = agent_repository
        self._lock = lock or asyncio.Lock()

    # ----- SLA core -----

    def enrich_ticket_with_sla(self, priority: Any, created_at: int) -> SLATarget:
        """
        Compute the SLA stamp for a new ticket.

        Args:
            priority: Priority enum or its string value
            created_at: Creation time (epoch ms)

        Returns:
            SLATarget to freeze onto the ticket

        Raises:
            ValidationException: If priority is not a known value
        """
        priority = _coerce_priority(priority)
        config = self._config_provider.get_config()
        demand_factor = self._demand_source.demand_factor(created_at)
        return SLACalculator.calculate_deadline(
            priority, created_at, demand_factor, config.base_hours
        )

    def get_sla_status(self, ticket: Ticket, now: Optional[int] = None) -> SLAStatus:
        """Live SLA status; never read from storage."""
        config = self._config_provider.get_config()
        current_time = self._clock.now() if now is None else now
        return SLACalculator.status_for(ticket, current_time, config.at_risk_ratio)

    def time_remaining(self, ticket: Ticket, now: Optional[int] = None) -> str:
        current_time = self._clock.now() if now is None else now
        return SLACalculator.format_time_remaining(ticket.sla_target, current_time)

    def now(self) -> int:
        return self._clock.now()

    # ----- Ticket lifecycle -----

    async def create_ticket(
        self,
        title: str,
        priority: Any,
        customer_id: str,
        category: Any = Category.UNCLASSIFIED,
        description: str = "",
        ticket_id: Optional[str] = None,
        created_at: Optional[int] = None,
        linked_asset_id: Optional[str] = None
    ) -> Ticket:
        """Create a ticket and stamp its SLA exactly once."""
        priority = _coerce_priority(priority)
        category = _coerce_category(category)
        created_at = self._clock.now() if created_at is None else created_at

        ticket = Ticket(
            id=ticket_id or f"T-{uuid4().hex[:8].upper()}",
            title=title,
            description=description,
            priority=priority,
            category=category,
            status=TicketStatus.OPEN,
            customer_id=customer_id,
            created_at=created_at,
            updated_at=created_at,
            linked_asset_id=linked_asset_id
        )
        ticket.stamp_sla(self.enrich_ticket_with_sla(priority, created_at))

        async with self._lock:
            if await self._ticket_repo.get_by_id(ticket.id) is not None:
                raise ValidationException(f"Ticket {ticket.id} already exists", {"ticket_id": ticket.id})
            await self._ticket_repo.add(ticket)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket.id,
                "priority": priority.value,
                "sla_tier": ticket.sla_tier.value,
                "demand_factor": ticket.demand_factor_applied,
                "sla_target": ticket.sla_target
            }
        )
        return ticket

    async def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def list_tickets(
        self,
        filters: Optional[Dict[str, Any]] = None,
        sla_status: Optional[SLAStatus] = None,
        now: Optional[int] = None
    ) -> List[Ticket]:
        """List tickets; the SLA status filter is applied on live values."""
        tickets = await self._ticket_repo.list(filters or {})
        if sla_status is None:
            return tickets
        current_time = self._clock.now() if now is None else now
        return [t for t in tickets if self.get_sla_status(t, current_time) == sla_status]

    async def add_message(
        self,
        ticket_id: str,
        sender_id: str,
        sender_name: str,
        content: str,
        is_internal: bool = False
    ) -> Ticket:
        """
        Append a message to the thread.

        A reply from a known agent or admin hands the ticket back to the
        customer; any other message puts it back in progress. The sender's
        role comes from the user directory, never from the caller.
        """
        sender_is_staff = await self._is_staff(sender_id)
        async with self._lock:
            ticket = await self.get_ticket(ticket_id)
            now = self._clock.now()
            ticket.add_message(Message(
                id=str(uuid4()),
                ticket_id=ticket.id,
                sender_id=sender_id,
                sender_name=sender_name,
                content=content,
                timestamp=now,
                is_internal=is_internal
            ))
            next_status = (
                TicketStatus.AWAITING_CUSTOMER if sender_is_staff
                else TicketStatus.IN_PROGRESS
            )
            ticket.change_status(next_status, now)
            await self._ticket_repo.replace(ticket)
        return ticket

    async def _is_staff(self, user_id: str) -> bool:
        if self._agent_repo is None:
            return False
        user = await self._agent_repo.get_by_id(user_id)
        return user is not None and user.is_staff

    async def update_status(self, ticket_id: str, status: Any) -> Ticket:
        status = _coerce_status(status)
        async with self._lock:
            ticket = await self.get_ticket(ticket_id)
            previous = ticket.status
            ticket.change_status(status, self._clock.now())
            await self._ticket_repo.replace(ticket)

        logger.info(
            "Ticket status changed",
            extra={"ticket_id": ticket_id, "from_status": previous.value, "to_status": status.value}
        )
        return ticket

    def summarize(self, tickets: List[Ticket], now: Optional[int] = None) -> Dict[str, Any]:
        """Counts by live SLA status over open tickets."""
        current_time = self._clock.now() if now is None else now
        counts = {SLAStatus.BREACHED: 0, SLAStatus.AT_RISK: 0, SLAStatus.ON_TRACK: 0}
        open_tickets = [t for t in tickets if not t.is_settled]
        for ticket in open_tickets:
            counts[self.get_sla_status(ticket, current_time)] += 1

        open_count = len(open_tickets)
        breach_rate = (counts[SLAStatus.BREACHED] / open_count * 100) if open_count > 0 else 0.0
        return {
            "total_tickets": len(tickets),
            "open_tickets": open_count,
            "breached_count": counts[SLAStatus.BREACHED],
            "at_risk_count": counts[SLAStatus.AT_RISK],
            "on_track_count": counts[SLAStatus.ON_TRACK],
            "escalated_count": sum(1 for t in tickets if t.is_escalated),
            "breach_rate": round(breach_rate, 2)
        }


# ========== Boundary validation ==========

def _coerce(enum_cls, value: Any, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationException(
            f"Invalid {label}: {value!r}",
            {label: value, "allowed": [member.value for member in enum_cls]}
        )


def _coerce_priority(value: Any) -> Priority:
    return _coerce(Priority, value, "priority")


def _coerce_category(value: Any) -> Category:
    return _coerce(Category, value, "category")


def _coerce_status(value: Any) -> TicketStatus:
    return _coerce(TicketStatus, value, "status")
