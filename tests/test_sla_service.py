"""Tests for SLAService ticket lifecycle."""

import pytest

from conftest import T0
from servicedesk.config import Category, Priority, SLAStatus, SLATier, TicketStatus
from servicedesk.core import DomainException, ResourceNotFoundException, ValidationException
from servicedesk.sla.domain import MS_PER_HOUR
from servicedesk.sla.application import SLAService
from servicedesk.sla.infrastructure import FixedDemandSource, InMemoryTicketRepository


class TestEnrichTicketWithSLA:

    def test_uses_current_policy_and_demand(self, sla_service):
        sla = sla_service.enrich_ticket_with_sla(Priority.CRITICAL, T0)
        assert sla.target == T0 + 4 * MS_PER_HOUR
        assert sla.tier == SLATier.PLATINUM

    def test_accepts_string_priority(self, sla_service):
        assert sla_service.enrich_ticket_with_sla("Low", T0).tier == SLATier.BRONZE

    def test_rejects_unknown_priority(self, sla_service):
        with pytest.raises(ValidationException):
            sla_service.enrich_ticket_with_sla("Urgent", T0)


class TestCreateTicket:

    async def test_stamps_sla_once(self, sla_service):
        ticket = await sla_service.create_ticket("VPN down", Priority.HIGH, "user1", ticket_id="T-1")

        assert ticket.status == TicketStatus.OPEN
        assert ticket.created_at == T0
        assert ticket.sla_target == T0 + 8 * MS_PER_HOUR
        assert ticket.sla_tier == SLATier.GOLD
        assert ticket.demand_factor_applied == 1.0
        assert not ticket.is_escalated

        stored = await sla_service.get_ticket("T-1")
        assert stored.sla_target == ticket.sla_target

    async def test_generates_id(self, sla_service):
        ticket = await sla_service.create_ticket("Printer jam", "Low", "user1")
        assert ticket.id.startswith("T-")

    async def test_duplicate_id_rejected(self, sla_service):
        await sla_service.create_ticket("First", Priority.LOW, "user1", ticket_id="T-1")
        with pytest.raises(ValidationException):
            await sla_service.create_ticket("Second", Priority.LOW, "user1", ticket_id="T-1")

    async def test_invalid_category_rejected(self, sla_service):
        with pytest.raises(ValidationException):
            await sla_service.create_ticket("Bad", Priority.LOW, "user1", category="Plumbing")

    async def test_deadline_frozen_after_policy_change(self, sla_service, config_manager, tmp_path):
        ticket = await sla_service.create_ticket("Outage", Priority.CRITICAL, "user1", ticket_id="T-1")
        policy = tmp_path / "sla_config.yaml"
        policy.write_text("base_hours:\n  Critical: 1\n")
        config_manager.load(policy)

        stored = await sla_service.get_ticket("T-1")
        assert stored.sla_target == ticket.sla_target == T0 + 4 * MS_PER_HOUR

        newer = await sla_service.create_ticket("Outage 2", Priority.CRITICAL, "user1", ticket_id="T-2")
        assert newer.sla_target == T0 + MS_PER_HOUR

    async def test_demand_factor_recorded(self, store, config_manager, clock):
        service = SLAService(InMemoryTicketRepository(store), config_manager, clock, FixedDemandSource(1.2))
        ticket = await service.create_ticket("Peak", Priority.CRITICAL, "user1")
        assert ticket.demand_factor_applied == 1.2
        assert ticket.sla_target == T0 + 17_280_000


class TestLiveStatus:

    async def test_status_follows_clock(self, sla_service, clock):
        ticket = await sla_service.create_ticket("Outage", Priority.CRITICAL, "user1", ticket_id="T-1")
        assert sla_service.get_sla_status(ticket) == SLAStatus.ON_TRACK

        clock.advance(int(3.5 * MS_PER_HOUR))
        assert sla_service.get_sla_status(ticket) == SLAStatus.AT_RISK

        clock.advance(MS_PER_HOUR)
        assert sla_service.get_sla_status(ticket) == SLAStatus.BREACHED
        assert sla_service.time_remaining(ticket) == "-0h 30m"

    async def test_list_filters_by_live_status(self, sla_service, clock):
        await sla_service.create_ticket("Crit", Priority.CRITICAL, "user1", ticket_id="T-1")
        await sla_service.create_ticket("Low", Priority.LOW, "user1", ticket_id="T-2")
        clock.advance(5 * MS_PER_HOUR)

        breached = await sla_service.list_tickets(sla_status=SLAStatus.BREACHED)
        assert [t.id for t in breached] == ["T-1"]

        on_track = await sla_service.list_tickets(sla_status=SLAStatus.ON_TRACK)
        assert [t.id for t in on_track] == ["T-2"]

    async def test_list_newest_first(self, sla_service, clock):
        await sla_service.create_ticket("Old", Priority.LOW, "user1", ticket_id="T-1")
        clock.advance(1000)
        await sla_service.create_ticket("New", Priority.LOW, "user1", ticket_id="T-2")
        assert [t.id for t in await sla_service.list_tickets()] == ["T-2", "T-1"]

    async def test_list_filters_by_category(self, sla_service):
        await sla_service.create_ticket("A", Priority.LOW, "user1", category=Category.FINANCE, ticket_id="T-1")
        await sla_service.create_ticket("B", Priority.LOW, "user1", category=Category.SALES, ticket_id="T-2")
        tickets = await sla_service.list_tickets({"category": Category.FINANCE})
        assert [t.id for t in tickets] == ["T-1"]


class TestMessagesAndStatus:

    async def test_staff_reply_awaits_customer(self, staff, sla_service, clock):
        await sla_service.create_ticket("Help", Priority.MEDIUM, "user1", ticket_id="T-1")
        clock.advance(60_000)

        ticket = await sla_service.add_message("T-1", "agent1", "Bob", "Can you restart?")

        assert ticket.status == TicketStatus.AWAITING_CUSTOMER
        assert ticket.updated_at == T0 + 60_000
        assert ticket.messages[-1].content == "Can you restart?"
        assert not ticket.messages[-1].is_internal

    async def test_customer_reply_back_in_progress(self, staff, sla_service):
        await sla_service.create_ticket("Help", Priority.MEDIUM, "user1", ticket_id="T-1")
        ticket = await sla_service.add_message("T-1", "user1", "Alice", "Still broken")
        assert ticket.status == TicketStatus.IN_PROGRESS

    async def test_admin_reply_awaits_customer(self, staff, sla_service):
        await sla_service.create_ticket("Help", Priority.MEDIUM, "user1", ticket_id="T-1")
        ticket = await sla_service.add_message("T-1", "admin", "Dana Admin", "Escalating internally")
        assert ticket.status == TicketStatus.AWAITING_CUSTOMER

    async def test_unknown_sender_is_not_staff(self, staff, sla_service):
        await sla_service.create_ticket("Help", Priority.MEDIUM, "user1", ticket_id="T-1")
        ticket = await sla_service.add_message("T-1", "stranger", "Agent Smith", "I am support")
        assert ticket.status == TicketStatus.IN_PROGRESS

    async def test_message_to_unknown_ticket(self, sla_service):
        with pytest.raises(ResourceNotFoundException):
            await sla_service.add_message("T-404", "user1", "Alice", "Hello")

    async def test_resolve_stops_clock(self, sla_service, clock):
        await sla_service.create_ticket("Outage", Priority.CRITICAL, "user1", ticket_id="T-1")
        ticket = await sla_service.update_status("T-1", TicketStatus.RESOLVED)

        clock.advance(10 * MS_PER_HOUR)
        assert sla_service.get_sla_status(ticket) == SLAStatus.ON_TRACK

    async def test_closed_is_terminal(self, sla_service):
        await sla_service.create_ticket("Done", Priority.LOW, "user1", ticket_id="T-1")
        await sla_service.update_status("T-1", "CLOSED")
        with pytest.raises(DomainException):
            await sla_service.update_status("T-1", TicketStatus.OPEN)

    async def test_invalid_status_rejected(self, sla_service):
        await sla_service.create_ticket("Done", Priority.LOW, "user1", ticket_id="T-1")
        with pytest.raises(ValidationException):
            await sla_service.update_status("T-1", "ARCHIVED")


class TestSummarize:

    async def test_counts_open_tickets_by_live_status(self, sla_service, clock):
        await sla_service.create_ticket("Crit", Priority.CRITICAL, "user1", ticket_id="T-1")
        await sla_service.create_ticket("High", Priority.HIGH, "user1", ticket_id="T-2")
        await sla_service.create_ticket("Low", Priority.LOW, "user1", ticket_id="T-3")
        await sla_service.create_ticket("Done", Priority.CRITICAL, "user1", ticket_id="T-4")
        await sla_service.update_status("T-4", TicketStatus.RESOLVED)
        clock.advance(7 * MS_PER_HOUR)

        summary = sla_service.summarize(await sla_service.list_tickets())

        assert summary["total_tickets"] == 4
        assert summary["open_tickets"] == 3
        assert summary["breached_count"] == 1
        assert summary["at_risk_count"] == 1
        assert summary["on_track_count"] == 1
        assert summary["breach_rate"] == 33.33

    def test_empty(self, sla_service):
        summary = sla_service.summarize([])
        assert summary["open_tickets"] == 0
        assert summary["breach_rate"] == 0.0
