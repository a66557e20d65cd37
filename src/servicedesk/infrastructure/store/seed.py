"""
Demo data for local runs.

The seeded ticket gets a regular SLA stamp under the given policy hours;
its status is whatever the clock says when it is read.
"""

import time
from typing import Dict, Optional

from servicedesk.config import (
    Category, EscalationGroupType, GroupMemberRole, Priority, TicketStatus, UserRole
)
from servicedesk.escalation.domain import EscalationGroup, GroupMember
from servicedesk.matching.domain import Agent, Asset, AssetModel
from servicedesk.sla.domain import DEFAULT_BASE_HOURS, Message, SLACalculator, Ticket

DAY_MS = 86_400_000


def seed_demo_data(
    store,
    now: Optional[int] = None,
    base_hours: Optional[Dict[Priority, float]] = None
) -> None:
    now = now if now is not None else int(time.time() * 1000)

    for model in (
        AssetModel(id="M-XPS15", name="XPS 15 9530", brand="Dell"),
        AssetModel(id="M-MBA-M2", name="MacBook Air M2", brand="Apple"),
        AssetModel(id="M-HP-SERVER", name="ProLiant DL380 Gen10", brand="HP"),
        AssetModel(id="M-DELL-MON", name="UltraSharp U2723QE", brand="Dell"),
    ):
        store.asset_models[model.id] = model

    for asset in (
        Asset(id="A-101", name="Alice's Workstation", model_id="M-XPS15", assigned_to="user1"),
        Asset(id="A-102", name="Alice's Monitor", model_id="M-DELL-MON", assigned_to="user1"),
        Asset(id="A-201", name="Main App Server", model_id="M-HP-SERVER"),
    ):
        store.assets[asset.id] = asset

    for user in (
        Agent(id="user1", name="Alice Customer", role=UserRole.CUSTOMER, department_id="D-DES"),
        Agent(
            id="agent1", name="Bob Agent (Tech)", department_id="D-IT",
            skills=frozenset({Category.TECHNICAL, Category.GENERAL}),
            efficiency_rating=88, active_ticket_count=3,
            asset_familiarity_score={"XPS 15 9530": 95},
        ),
        Agent(
            id="agent2", name="Sarah Finance", department_id="D-FIN",
            skills=frozenset({Category.FINANCE, Category.SALES}),
            efficiency_rating=92, active_ticket_count=1,
        ),
        Agent(id="admin", name="Dana Admin", role=UserRole.ADMIN, department_id="D-IT"),
    ):
        store.users[user.id] = user

    for group in (
        EscalationGroup(
            id="G-TECH-L2", name="Tier 2 Technical", type=EscalationGroupType.TECHNICAL,
            category=Category.TECHNICAL,
            members=[GroupMember(user_id="agent1", role=GroupMemberRole.LEAD)],
        ),
        EscalationGroup(
            id="G-MGMT", name="Support Management", type=EscalationGroupType.HIERARCHICAL,
            members=[GroupMember(user_id="admin", role=GroupMemberRole.ESCALATION_POINT)],
        ),
    ):
        store.groups[group.id] = group

    created_at = now - DAY_MS
    ticket = Ticket(
        id="T-1001",
        title="Login failing on mobile app",
        description="I cannot log in to the iOS app after the latest update.",
        priority=Priority.HIGH,
        category=Category.TECHNICAL,
        status=TicketStatus.OPEN,
        customer_id="user1",
        created_at=created_at,
        updated_at=created_at,
        linked_asset_id="A-101",
    )
    ticket.stamp_sla(SLACalculator.calculate_deadline(
        ticket.priority, created_at, 1.0, base_hours or DEFAULT_BASE_HOURS
    ))
    ticket.add_message(Message(
        id="m1", ticket_id=ticket.id, sender_id="user1", sender_name="Alice Customer",
        content=ticket.description, timestamp=created_at,
    ))
    store.tickets[ticket.id] = ticket
