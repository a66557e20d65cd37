"""
Matching Application Services
=============================

Agent recommendations and manual assignment.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from servicedesk.config import UserRole
from servicedesk.core import ResourceNotFoundException, ValidationException
from servicedesk.matching.domain import Agent, AgentScore, AgentScorer
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application import IClock, ITicketRepository
from servicedesk.sla.domain import Ticket

logger = get_logger(__name__)


# ========== Interfaces ==========

class IAgentRepository(ABC):
    """Interface for service desk users (agents, admins, customers)."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[Agent]:
        """Get a user by ID."""

    @abstractmethod
    async def list(self, role: Optional[UserRole] = None) -> List[Agent]:
        """List users in registration order, optionally by role."""


class IAssetCatalog(ABC):
    """Resolves assets to the model names agents are familiar with."""

    @abstractmethod
    async def get_model_name(self, asset_id: str) -> Optional[str]:
        """Model name of the asset, None when asset or model is unknown."""


# ========== Application Services ==========

class MatchingService:
    """Ranks agents for tickets; assignment is a separate, explicit call."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        agent_repository: IAgentRepository,
        asset_catalog: IAssetCatalog,
        clock: IClock,
        lock: Optional[asyncio.Lock] = None
    ):
        self._ticket_repo = ticket_repository
        self._agent_repo = agent_repository
        self._asset_catalog = asset_catalog
        self._clock = clock
        self._lock = lock or asyncio.Lock()

    async def _get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def rank_for_ticket(
        self,
        ticket: Ticket,
        agents: Optional[List[Agent]] = None
    ) -> List[AgentScore]:
        """Rank the given agents, or every user with the AGENT role."""
        if agents is None:
            agents = await self._agent_repo.list(role=UserRole.AGENT)
        model_name = None
        if ticket.linked_asset_id:
            model_name = await self._asset_catalog.get_model_name(ticket.linked_asset_id)
        return AgentScorer.rank(ticket, agents, model_name)

    async def rank_agents(self, ticket_id: str) -> List[AgentScore]:
        ticket = await self._get_ticket(ticket_id)
        return await self.rank_for_ticket(ticket)

    async def assign(self, ticket_id: str, agent_id: str) -> Ticket:
        agent = await self._agent_repo.get_by_id(agent_id)
        if agent is None:
            raise ResourceNotFoundException("Agent", agent_id)
        if not agent.is_staff:
            raise ValidationException(
                f"User {agent_id} cannot be assigned tickets",
                {"agent_id": agent_id, "role": agent.role.value}
            )

        async with self._lock:
            ticket = await self._get_ticket(ticket_id)
            ticket.assign(agent_id, self._clock.now())
            await self._ticket_repo.replace(ticket)

        logger.info("Ticket assigned", extra={"ticket_id": ticket_id, "agent_id": agent_id})
        return ticket
