"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses. Timestamps are epoch milliseconds.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from servicedesk.config import (
    Category, Priority, SLAStatus, SLATier, TicketStatus
)
from servicedesk.sla.domain import Message, Ticket


# ========== Request DTOs ==========

class TicketCreateDTO(BaseModel):
    """DTO for creating a single ticket."""
    id: Optional[str] = Field(None, min_length=1, description="Ticket ID, generated when absent")
    title: str = Field(..., min_length=1, description="Ticket title")
    description: str = Field(default="", description="Ticket description")
    priority: Priority = Field(..., description="Ticket priority")
    category: Category = Field(default=Category.UNCLASSIFIED, description="Ticket category")
    customer_id: str = Field(..., min_length=1, description="Reporting customer")
    created_at: Optional[int] = Field(None, ge=0, description="Creation time, defaults to now")
    linked_asset_id: Optional[str] = Field(None, description="Linked inventory asset")


class MessageCreateDTO(BaseModel):
    """DTO for appending a message to a ticket."""
    sender_id: str = Field(..., min_length=1)
    sender_name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    is_internal: bool = False


class StatusUpdateDTO(BaseModel):
    """DTO for changing a ticket status."""
    status: TicketStatus


# ========== Response DTOs ==========

class MessageResponse(BaseModel):
    id: str
    sender_id: str
    sender_name: str
    content: str
    timestamp: int
    is_internal: bool

    @classmethod
    def from_domain(cls, message: Message) -> "MessageResponse":
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            content=message.content,
            timestamp=message.timestamp,
            is_internal=message.is_internal
        )


class TicketResponse(BaseModel):
    """Ticket with its frozen SLA stamp and live SLA status."""
    id: str
    title: str
    description: str
    priority: Priority
    category: Category
    status: TicketStatus
    customer_id: str
    created_at: int
    updated_at: int

    # SLA information
    sla_target: int = Field(..., description="Deadline stamped at creation")
    sla_tier: SLATier
    demand_factor_applied: float
    sla_status: SLAStatus = Field(..., description="Computed at read time")
    time_remaining: str

    # Assignment & escalation
    assigned_agent_id: Optional[str] = None
    linked_asset_id: Optional[str] = None
    is_escalated: bool = False
    escalation_group_id: Optional[str] = None

    messages: List[MessageResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, ticket: Ticket, sla_status: SLAStatus, time_remaining: str) -> "TicketResponse":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            priority=ticket.priority,
            category=ticket.category,
            status=ticket.status,
            customer_id=ticket.customer_id,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            sla_target=ticket.sla_target,
            sla_tier=ticket.sla_tier,
            demand_factor_applied=ticket.demand_factor_applied,
            sla_status=sla_status,
            time_remaining=time_remaining,
            assigned_agent_id=ticket.assigned_agent_id,
            linked_asset_id=ticket.linked_asset_id,
            is_escalated=ticket.is_escalated,
            escalation_group_id=ticket.escalation_group_id,
            messages=[MessageResponse.from_domain(m) for m in ticket.messages]
        )


class SLAStatusResponse(BaseModel):
    """Live SLA status of a single ticket."""
    ticket_id: str
    sla_status: SLAStatus
    sla_target: int
    sla_tier: SLATier
    time_remaining: str
    evaluated_at: int


class DashboardSummary(BaseModel):
    """Summary statistics for dashboard."""
    total_tickets: int
    open_tickets: int
    breached_count: int
    at_risk_count: int
    on_track_count: int
    escalated_count: int
    breach_rate: float = Field(..., description="Percentage of open tickets breached")


class DashboardResponse(BaseModel):
    """Response model for dashboard."""
    tickets: List[TicketResponse] = Field(..., description="List of tickets")
    total_count: int = Field(..., description="Number of tickets matching filter")
    summary: DashboardSummary = Field(..., description="Summary statistics")
