"""
Matching Application DTOs
=========================
"""

from typing import List

from pydantic import BaseModel, Field

from servicedesk.config import Category, UserRole
from servicedesk.matching.domain import AgentScore


class AssignRequest(BaseModel):
    agent_id: str = Field(..., min_length=1)


class ScoreBreakdownResponse(BaseModel):
    skill_match: float
    history: float
    workload: float
    asset_familiarity: float


class AgentScoreResponse(BaseModel):
    """One ranked agent."""
    agent_id: str
    agent_name: str
    role: UserRole
    skills: List[Category]
    total_score: int
    breakdown: ScoreBreakdownResponse

    @classmethod
    def from_domain(cls, score: AgentScore) -> "AgentScoreResponse":
        return cls(
            agent_id=score.agent.id,
            agent_name=score.agent.name,
            role=score.agent.role,
            skills=sorted(score.agent.skills, key=lambda c: c.value),
            total_score=score.total_score,
            breakdown=ScoreBreakdownResponse(
                skill_match=score.breakdown.skill_match,
                history=score.breakdown.history,
                workload=score.breakdown.workload,
                asset_familiarity=score.breakdown.asset_familiarity
            )
        )


class AgentRankingResponse(BaseModel):
    ticket_id: str
    rankings: List[AgentScoreResponse]
