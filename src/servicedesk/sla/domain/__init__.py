"""
SLA Domain Layer
================

Domain layer for SLA tracking.

Contains:
- Entities: Core business objects with identity (Ticket, Message)
- Value Objects: Immutable objects defined by attributes (SLATarget, SLAPolicyConfig)
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from servicedesk.sla.domain.entities import Ticket, Message
from servicedesk.sla.domain.value_objects import (
    SLACalculator,
    SLAPolicyConfig,
    DemandPolicyConfig,
    SLATarget,
    DEFAULT_BASE_HOURS,
    MS_PER_HOUR,
)

__all__ = [
    # Entities
    "Ticket",
    "Message",
    # Value Objects & Services
    "SLACalculator",
    "SLAPolicyConfig",
    "DemandPolicyConfig",
    "SLATarget",
    "DEFAULT_BASE_HOURS",
    "MS_PER_HOUR",
]
