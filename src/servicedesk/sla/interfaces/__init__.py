"""
SLA Interfaces Layer
====================

FastAPI route handlers for ticket intake and SLA monitoring.
"""

from servicedesk.sla.interfaces.controllers import sla_router

__all__ = ["sla_router"]
