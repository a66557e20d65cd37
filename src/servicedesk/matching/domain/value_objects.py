"""
Matching Scorer
===============

Weighted multi-factor scoring used to recommend an agent for a ticket.

Weights (maximum points):
- skill match: 40 (5 when the agent lacks the ticket category)
- history: 25, scaled by efficiency rating
- workload: 20, falling to 0 at ten active tickets
- asset familiarity: 15, scaled by the agent's score for the linked model
"""

import math
from typing import List, Optional, Sequence

from servicedesk.matching.domain.entities import Agent, AgentScore, ScoreBreakdown
from servicedesk.sla.domain import Ticket

SKILL_MATCH_POINTS = 40
SKILL_MISS_POINTS = 5
HISTORY_WEIGHT = 25
WORKLOAD_WEIGHT = 20
WORKLOAD_CAPACITY = 10
FAMILIARITY_WEIGHT = 15


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AgentScorer:
    """Stateless scoring functions. Never mutates agents or tickets."""

    @staticmethod
    def breakdown(
        ticket: Ticket,
        agent: Agent,
        asset_model_name: Optional[str] = None
    ) -> ScoreBreakdown:
        skill = SKILL_MATCH_POINTS if ticket.category in agent.skills else SKILL_MISS_POINTS
        history = (agent.efficiency_rating / 100) * HISTORY_WEIGHT
        workload_factor = max(0.0, (WORKLOAD_CAPACITY - agent.active_ticket_count) / WORKLOAD_CAPACITY)
        workload = workload_factor * WORKLOAD_WEIGHT

        familiarity = 0.0
        if asset_model_name is not None and asset_model_name in agent.asset_familiarity_score:
            familiarity = (agent.asset_familiarity_score[asset_model_name] / 100) * FAMILIARITY_WEIGHT

        return ScoreBreakdown(
            skill_match=skill,
            history=history,
            workload=workload,
            asset_familiarity=familiarity
        )

    @staticmethod
    def rank(
        ticket: Ticket,
        agents: Sequence[Agent],
        asset_model_name: Optional[str] = None
    ) -> List[AgentScore]:
        """
        Rank agents for a ticket, best first.

        Args:
            ticket: Ticket to find an agent for
            agents: Candidates in enumeration order
            asset_model_name: Model name of the ticket's linked asset, if any

        Returns:
            Scores sorted by total descending; ties keep input order
        """
        scores = []
        for agent in agents:
            breakdown = AgentScorer.breakdown(ticket, agent, asset_model_name)
            scores.append(AgentScore(
                agent=agent,
                total_score=round_half_up(breakdown.total),
                breakdown=breakdown
            ))
        # sorted() is stable, so equal totals stay in enumeration order
        return sorted(scores, key=lambda s: s.total_score, reverse=True)
