"""
In-Memory Store
===============

Owns every collection the service desk works on and the lock that
serializes ticket writers.

Lifecycle mirrors a database engine:
- init_store() at application startup
- get_store() from repositories and dependencies
- reset_store() between tests
- close_store() at shutdown
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from servicedesk.config import Priority
from servicedesk.escalation.domain import AuditLog, EscalationGroup, EscalationRule
from servicedesk.matching.domain import Agent, Asset, AssetModel
from servicedesk.sla.domain import Ticket


@dataclass
class InMemoryStore:
    """
    Process-local collections.

    Tickets keep insertion order, newest last. Rules are a list because
    their position is their precedence.
    """
    tickets: Dict[str, Ticket] = field(default_factory=dict)
    rules: List[EscalationRule] = field(default_factory=list)
    groups: Dict[str, EscalationGroup] = field(default_factory=dict)
    audit_logs: List[AuditLog] = field(default_factory=list)
    users: Dict[str, Agent] = field(default_factory=dict)
    assets: Dict[str, Asset] = field(default_factory=dict)
    asset_models: Dict[str, AssetModel] = field(default_factory=dict)

    # Exclusive section for scan-and-mutate passes over tickets
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def clear(self) -> None:
        self.tickets.clear()
        self.rules.clear()
        self.groups.clear()
        self.audit_logs.clear()
        self.users.clear()
        self.assets.clear()
        self.asset_models.clear()


_store: Optional[InMemoryStore] = None


def init_store(
    seed: bool = False,
    now: Optional[int] = None,
    base_hours: Optional[Dict[Priority, float]] = None
) -> InMemoryStore:
    """
    Create the process store.

    Args:
        seed: Populate demo users, assets, groups and one open ticket
        now: Reference time (epoch ms) for seeded timestamps
        base_hours: Policy resolution hours used to stamp the seeded ticket

    Returns:
        InMemoryStore: The initialized store
    """
    global _store
    _store = InMemoryStore()
    if seed:
        from servicedesk.infrastructure.store.seed import seed_demo_data
        seed_demo_data(_store, now, base_hours)
    return _store


def get_store() -> InMemoryStore:
    """
    Get the process store.

    Raises:
        RuntimeError: If the store has not been initialized
    """
    if _store is None:
        raise RuntimeError("Store not initialized. Call init_store() first.")
    return _store


def reset_store() -> InMemoryStore:
    """Drop all data and start from an empty store."""
    return init_store(seed=False)


def close_store() -> None:
    global _store
    if _store is not None:
        _store.clear()
        _store = None
