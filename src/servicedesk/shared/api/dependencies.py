"""
Shared FastAPI dependencies.

Process-wide collaborators are created in the application lifespan and
parked on app.state; route dependencies pick them up from there.
"""

from typing import Optional

from fastapi import Request

from servicedesk.infrastructure.store import InMemoryStore, get_store
from servicedesk.sla.application import IClock, IDemandSource, ISLAConfigProvider


def store_dependency() -> InMemoryStore:
    return get_store()


def get_clock(request: Request) -> IClock:
    return request.app.state.clock


def get_config_provider(request: Request) -> ISLAConfigProvider:
    return request.app.state.config_manager


def get_demand_source(request: Request) -> IDemandSource:
    return request.app.state.demand_source


def get_notifier(request: Request) -> Optional[object]:
    return getattr(request.app.state, "notifier", None)
