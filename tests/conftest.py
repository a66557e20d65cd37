"""
Shared fixtures.

Every test gets a fresh in-memory store and a clock that only moves when
the test moves it.
"""

import pytest

from servicedesk.config import Category, Priority, TicketStatus, UserRole
from servicedesk.escalation.domain import EscalationRule, RuleAction, RuleCondition
from servicedesk.escalation.interfaces import build_escalation_service
from servicedesk.infrastructure.store import close_store, init_store
from servicedesk.infrastructure.store.seed import seed_demo_data
from servicedesk.matching.application import MatchingService
from servicedesk.matching.domain import Agent
from servicedesk.matching.infrastructure import InMemoryAgentRepository, InMemoryAssetCatalog
from servicedesk.sla.application import SLAService
from servicedesk.sla.domain import MS_PER_HOUR, SLACalculator, SLAPolicyConfig, Ticket
from servicedesk.sla.infrastructure import (
    FixedClock,
    FixedDemandSource,
    InMemoryTicketRepository,
    SLAConfigManager,
)

# 2023-11-15T00:00:00Z
DAY_START = 1_700_006_400_000
T0 = DAY_START + 12 * MS_PER_HOUR


def at_hour(hour: int, minute: int = 0) -> int:
    return DAY_START + hour * MS_PER_HOUR + minute * 60_000


def make_ticket(
    ticket_id: str = "T-1",
    priority: Priority = Priority.HIGH,
    category: Category = Category.TECHNICAL,
    status: TicketStatus = TicketStatus.OPEN,
    created_at: int = T0,
    demand_factor: float = 1.0,
    **kwargs
) -> Ticket:
    ticket = Ticket(
        id=ticket_id,
        title=f"Ticket {ticket_id}",
        description="",
        priority=priority,
        category=category,
        status=status,
        customer_id="user1",
        created_at=created_at,
        updated_at=created_at,
        **kwargs
    )
    ticket.stamp_sla(SLACalculator.calculate_deadline(priority, created_at, demand_factor))
    return ticket


def make_rule(rule_id: str, name: str = None, is_active: bool = True, **condition_and_action) -> EscalationRule:
    condition_fields = {k: condition_and_action.pop(k) for k in ("priority", "category", "sla_status")
                        if k in condition_and_action}
    return EscalationRule(
        id=rule_id,
        name=name or rule_id,
        condition=RuleCondition(**condition_fields),
        action=RuleAction(**condition_and_action),
        is_active=is_active
    )


@pytest.fixture
def store():
    store = init_store(seed=False)
    yield store
    close_store()


@pytest.fixture
def seeded_store(store):
    seed_demo_data(store, now=T0)
    return store


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def config_manager():
    return SLAConfigManager(SLAPolicyConfig())


@pytest.fixture
def demand_source():
    return FixedDemandSource(1.0)


@pytest.fixture
def sla_service(store, config_manager, clock, demand_source):
    return SLAService(
        InMemoryTicketRepository(store),
        config_manager,
        clock,
        demand_source,
        agent_repository=InMemoryAgentRepository(store),
        lock=store.write_lock
    )


@pytest.fixture
def escalation_service(store, config_manager, clock):
    return build_escalation_service(store, config_manager, clock)


@pytest.fixture
def matching_service(store, clock):
    return MatchingService(
        InMemoryTicketRepository(store),
        InMemoryAgentRepository(store),
        InMemoryAssetCatalog(store),
        clock,
        lock=store.write_lock
    )


@pytest.fixture
def staff(store):
    """Two agents and an admin registered in the store."""
    users = [
        Agent(id="agent1", name="Bob", skills={Category.TECHNICAL}, efficiency_rating=80),
        Agent(id="agent2", name="Sarah", skills={Category.FINANCE}, efficiency_rating=90),
        Agent(id="admin", name="Dana Admin", role=UserRole.ADMIN),
        Agent(id="user1", name="Alice Customer", role=UserRole.CUSTOMER),
    ]
    for user in users:
        store.users[user.id] = user
    return users
