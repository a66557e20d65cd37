"""
Matching Infrastructure Repositories
====================================

In-memory user directory and asset catalog.
"""

from typing import List, Optional

from servicedesk.config import UserRole
from servicedesk.infrastructure.store import InMemoryStore
from servicedesk.matching.application import IAgentRepository, IAssetCatalog
from servicedesk.matching.domain import Agent


class InMemoryAgentRepository(IAgentRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_by_id(self, user_id: str) -> Optional[Agent]:
        return self._store.users.get(user_id)

    async def list(self, role: Optional[UserRole] = None) -> List[Agent]:
        users = list(self._store.users.values())
        if role is not None:
            users = [u for u in users if u.role == role]
        return users


class InMemoryAssetCatalog(IAssetCatalog):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_model_name(self, asset_id: str) -> Optional[str]:
        asset = self._store.assets.get(asset_id)
        if asset is None:
            return None
        model = self._store.asset_models.get(asset.model_id)
        return model.name if model is not None else None
