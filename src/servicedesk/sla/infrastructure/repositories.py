"""
SLA Infrastructure Repositories
=================================

Concrete implementation of the ticket repository over the in-memory store.

Reads hand out copies and writes go through replace(), so callers never
mutate stored state behind the repository's back.
"""

from typing import Any, Dict, List, Optional

from servicedesk.core import RepositoryException
from servicedesk.infrastructure.store import InMemoryStore
from servicedesk.sla.application import ITicketRepository
from servicedesk.sla.domain import Ticket


class InMemoryTicketRepository(ITicketRepository):
    """Ticket persistence backed by InMemoryStore.tickets."""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        ticket = self._store.tickets.get(ticket_id)
        return ticket.copy() if ticket is not None else None

    async def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Ticket]:
        """
        List tickets with filters, newest first.

        Supported filters: status (value or list), priority, category,
        is_escalated, assigned_agent_id.
        """
        filters = filters or {}
        tickets = list(self._store.tickets.values())

        if "status" in filters:
            statuses = filters["status"]
            if not isinstance(statuses, (list, tuple, set, frozenset)):
                statuses = [statuses]
            tickets = [t for t in tickets if t.status in statuses]

        for key in ("priority", "category", "is_escalated", "assigned_agent_id"):
            if key in filters:
                tickets = [t for t in tickets if getattr(t, key) == filters[key]]

        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return [t.copy() for t in tickets]

    async def add(self, ticket: Ticket) -> Ticket:
        if ticket.id in self._store.tickets:
            raise RepositoryException(f"Ticket {ticket.id} already exists")
        self._store.tickets[ticket.id] = ticket.copy()
        return ticket

    async def replace(self, ticket: Ticket) -> Ticket:
        if ticket.id not in self._store.tickets:
            raise RepositoryException(f"Ticket {ticket.id} not found")
        self._store.tickets[ticket.id] = ticket.copy()
        return ticket
