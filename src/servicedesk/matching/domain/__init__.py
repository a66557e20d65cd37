"""
Matching Domain Layer
=====================

Agents, assets and the weighted agent scorer.
"""

from servicedesk.matching.domain.entities import (
    Agent,
    AgentScore,
    Asset,
    AssetModel,
    ScoreBreakdown,
)
from servicedesk.matching.domain.value_objects import AgentScorer, round_half_up

__all__ = [
    "Agent",
    "AgentScore",
    "Asset",
    "AssetModel",
    "ScoreBreakdown",
    "AgentScorer",
    "round_half_up",
]
