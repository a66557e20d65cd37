"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA tracking:
- Repositories: In-memory ticket storage
- External: Policy file watcher, clocks, demand sources
"""

from servicedesk.sla.infrastructure.repositories import InMemoryTicketRepository
from servicedesk.sla.infrastructure.external import (
    SLAConfigManager,
    SystemClock,
    FixedClock,
    FixedDemandSource,
    HourOfDayDemandSource,
)

__all__ = [
    "InMemoryTicketRepository",
    "SLAConfigManager",
    "SystemClock",
    "FixedClock",
    "FixedDemandSource",
    "HourOfDayDemandSource",
]
