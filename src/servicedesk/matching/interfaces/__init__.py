"""
Matching Interfaces Layer
=========================

FastAPI route handlers for agent recommendations.
"""

from servicedesk.matching.interfaces.controllers import matching_router

__all__ = ["matching_router"]
