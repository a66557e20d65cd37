"""
SLA Domain Entities
====================

Pure Python domain entities for ticket SLA tracking.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional

from servicedesk.config import (
    Category, Priority, SLATier, TicketStatus, SETTLED_STATUSES
)
from servicedesk.core import DomainException
from servicedesk.sla.domain.value_objects import SLATarget


@dataclass(frozen=True)
class Message:
    """A message on a ticket thread. Immutable once appended."""
    id: str
    ticket_id: str
    sender_id: str
    sender_name: str
    content: str
    timestamp: int
    is_internal: bool = False


@dataclass
class Ticket:
    """
    Ticket entity representing a support ticket.

    SLA fields are stamped exactly once at creation. The SLA status is not
    an attribute: it is derived from the stamp and the clock on every read.
    """

    # Core attributes
    id: str
    title: str
    description: str
    priority: Priority
    category: Category
    status: TicketStatus
    customer_id: str

    # Timestamps (epoch ms)
    created_at: int
    updated_at: int

    sla: Optional[SLATarget] = None
    assigned_agent_id: Optional[str] = None
    linked_asset_id: Optional[str] = None

    # Escalation flag is sticky
    is_escalated: bool = False
    escalation_group_id: Optional[str] = None

    messages: List[Message] = field(default_factory=list)

    def __post_init__(self):
        """Validate ticket on initialization."""
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be before created_at")
        if self.sla is not None and self.sla.target < self.created_at:
            raise ValueError("sla target cannot be before created_at")

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES

    @property
    def sla_target(self) -> int:
        return self._require_sla().target

    @property
    def sla_tier(self) -> SLATier:
        return self._require_sla().tier

    @property
    def demand_factor_applied(self) -> float:
        return self._require_sla().demand_factor_applied

    def _require_sla(self) -> SLATarget:
        if self.sla is None:
            raise DomainException(f"Ticket {self.id} has no SLA stamp", {"ticket_id": self.id})
        return self.sla

    def stamp_sla(self, sla: SLATarget) -> None:
        """Freeze the SLA deadline onto the ticket."""
        if self.sla is not None:
            raise DomainException(f"Ticket {self.id} already has an SLA stamp", {"ticket_id": self.id})
        if sla.target < self.created_at:
            raise DomainException("SLA target cannot be before created_at", {"ticket_id": self.id})
        self.sla = sla

    def mark_escalated(self) -> None:
        """Flip the escalation flag. Happens at most once per ticket."""
        if self.is_escalated:
            raise DomainException(f"Ticket {self.id} is already escalated", {"ticket_id": self.id})
        self.is_escalated = True

    def add_message(self, message: Message) -> None:
        self.messages.append(message)
        self.updated_at = max(self.updated_at, message.timestamp)

    def change_status(self, status: TicketStatus, timestamp: int) -> None:
        """Move the ticket to a new status. CLOSED is terminal."""
        if self.status == TicketStatus.CLOSED and status != TicketStatus.CLOSED:
            raise DomainException(
                f"Ticket {self.id} is closed",
                {"ticket_id": self.id, "requested_status": status.value}
            )
        self.status = status
        self.updated_at = max(self.updated_at, timestamp)

    def assign(self, agent_id: str, timestamp: int) -> None:
        self.assigned_agent_id = agent_id
        self.updated_at = max(self.updated_at, timestamp)

    def copy(self) -> "Ticket":
        """Snapshot that can be mutated without touching the original."""
        return replace(self, messages=list(self.messages))
