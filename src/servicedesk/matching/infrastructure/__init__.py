"""
Matching Infrastructure Layer
=============================
"""

from servicedesk.matching.infrastructure.repositories import (
    InMemoryAgentRepository,
    InMemoryAssetCatalog,
)

__all__ = ["InMemoryAgentRepository", "InMemoryAssetCatalog"]
