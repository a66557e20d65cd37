"""Tests for agent scoring, ranking and assignment."""

import pytest

from conftest import make_ticket
from servicedesk.config import Category, Priority, UserRole
from servicedesk.core import ResourceNotFoundException, ValidationException
from servicedesk.matching.domain import Agent, AgentScorer, round_half_up
from servicedesk.matching.infrastructure import InMemoryAgentRepository


@pytest.fixture
def ticket():
    return make_ticket(category=Category.TECHNICAL, linked_asset_id="A-101")


class TestBreakdown:

    def test_full_marks(self, ticket):
        agent = Agent(
            id="a", name="A", skills={Category.TECHNICAL}, efficiency_rating=100,
            active_ticket_count=0, asset_familiarity_score={"XPS 15 9530": 100}
        )
        breakdown = AgentScorer.breakdown(ticket, agent, "XPS 15 9530")
        assert breakdown.skill_match == 40
        assert breakdown.history == 25
        assert breakdown.workload == 20
        assert breakdown.asset_familiarity == 15
        assert breakdown.total == 100

    def test_skill_miss_floor(self, ticket):
        agent = Agent(id="a", name="A", skills={Category.FINANCE}, efficiency_rating=0, active_ticket_count=10)
        breakdown = AgentScorer.breakdown(ticket, agent)
        assert breakdown.skill_match == 5
        assert breakdown.history == 0
        assert breakdown.workload == 0
        assert breakdown.asset_familiarity == 0

    def test_workload_never_negative(self, ticket):
        agent = Agent(id="a", name="A", active_ticket_count=25)
        assert AgentScorer.breakdown(ticket, agent).workload == 0

    def test_familiarity_needs_known_model(self, ticket):
        agent = Agent(id="a", name="A", asset_familiarity_score={"XPS 15 9530": 80})
        assert AgentScorer.breakdown(ticket, agent, None).asset_familiarity == 0
        assert AgentScorer.breakdown(ticket, agent, "MacBook Air M2").asset_familiarity == 0
        assert AgentScorer.breakdown(ticket, agent, "XPS 15 9530").asset_familiarity == pytest.approx(12)

    def test_scoring_does_not_mutate_agent(self, ticket):
        agent = Agent(id="a", name="A", skills={Category.TECHNICAL}, active_ticket_count=3)
        AgentScorer.rank(ticket, [agent])
        assert agent.active_ticket_count == 3
        assert ticket.assigned_agent_id is None


class TestRank:

    def test_seed_like_agents(self, ticket):
        bob = Agent(
            id="agent1", name="Bob", skills={Category.TECHNICAL, Category.GENERAL},
            efficiency_rating=88, active_ticket_count=3, asset_familiarity_score={"XPS 15 9530": 95}
        )
        sarah = Agent(
            id="agent2", name="Sarah", skills={Category.FINANCE, Category.SALES},
            efficiency_rating=92, active_ticket_count=1
        )

        ranked = AgentScorer.rank(ticket, [sarah, bob], "XPS 15 9530")

        # Bob: 40 + 22 + 14 + 14.25 = 90.25; Sarah: 5 + 23 + 18 + 0 = 46
        assert [s.agent.id for s in ranked] == ["agent1", "agent2"]
        assert ranked[0].total_score == 90
        assert ranked[1].total_score == 46

    def test_ties_keep_enumeration_order(self, ticket):
        agents = [Agent(id=f"a{i}", name=f"A{i}") for i in range(4)]
        ranked = AgentScorer.rank(ticket, agents)
        assert [s.agent.id for s in ranked] == ["a0", "a1", "a2", "a3"]

    def test_empty_candidates(self, ticket):
        assert AgentScorer.rank(ticket, []) == []

    @pytest.mark.parametrize("value,expected", [(46.5, 47), (46.49, 46), (0.5, 1), (90.25, 90)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestAgentValidation:

    def test_efficiency_range(self):
        with pytest.raises(ValueError):
            Agent(id="a", name="A", efficiency_rating=101)

    def test_negative_workload(self):
        with pytest.raises(ValueError):
            Agent(id="a", name="A", active_ticket_count=-1)

    def test_staff_roles(self):
        assert Agent(id="a", name="A", role=UserRole.ADMIN).is_staff
        assert not Agent(id="c", name="C", role=UserRole.CUSTOMER).is_staff


class TestMatchingService:

    async def test_rank_uses_linked_asset(self, seeded_store, matching_service):
        ranked = await matching_service.rank_agents("T-1001")
        assert [s.agent.id for s in ranked] == ["agent1", "agent2"]
        assert ranked[0].breakdown.asset_familiarity == pytest.approx(14.25)

    async def test_rank_skips_admins_and_customers(self, seeded_store, matching_service):
        ranked = await matching_service.rank_agents("T-1001")
        assert {s.agent.role for s in ranked} == {UserRole.AGENT}

    async def test_rank_unknown_ticket(self, store, matching_service):
        with pytest.raises(ResourceNotFoundException):
            await matching_service.rank_agents("T-404")

    async def test_assign(self, seeded_store, matching_service):
        ticket = await matching_service.assign("T-1001", "agent2")
        assert ticket.assigned_agent_id == "agent2"
        assert seeded_store.tickets["T-1001"].assigned_agent_id == "agent2"

    async def test_assign_unknown_agent(self, seeded_store, matching_service):
        with pytest.raises(ResourceNotFoundException):
            await matching_service.assign("T-1001", "ghost")

    async def test_assign_customer_rejected(self, seeded_store, matching_service):
        with pytest.raises(ValidationException):
            await matching_service.assign("T-1001", "user1")

    async def test_rank_for_unsaved_ticket(self, staff, matching_service):
        ticket = make_ticket(category=Category.FINANCE, priority=Priority.LOW)
        ranked = await matching_service.rank_for_ticket(ticket)
        assert ranked[0].agent.id == "agent2"


class TestUserDirectory:

    async def test_lists_in_registration_order(self, seeded_store):
        directory = InMemoryAgentRepository(seeded_store)

        assert [u.id for u in await directory.list()] == ["user1", "agent1", "agent2", "admin"]
        assert [u.id for u in await directory.list(UserRole.AGENT)] == ["agent1", "agent2"]
        assert (await directory.get_by_id("admin")).is_staff
        assert await directory.get_by_id("ghost") is None
