"""
Escalation Interfaces Layer
===========================

FastAPI route handlers for escalation rules, groups and job runs.
"""

from servicedesk.escalation.interfaces.controllers import (
    build_escalation_service,
    escalation_router,
)

__all__ = ["build_escalation_service", "escalation_router"]
