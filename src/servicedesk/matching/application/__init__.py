"""
Matching Application Layer
==========================
"""

from servicedesk.matching.application.dto import (
    AgentRankingResponse,
    AgentScoreResponse,
    AssignRequest,
    ScoreBreakdownResponse,
)
from servicedesk.matching.application.services import (
    IAgentRepository,
    IAssetCatalog,
    MatchingService,
)

__all__ = [
    "AgentRankingResponse",
    "AgentScoreResponse",
    "AssignRequest",
    "ScoreBreakdownResponse",
    "IAgentRepository",
    "IAssetCatalog",
    "MatchingService",
]
