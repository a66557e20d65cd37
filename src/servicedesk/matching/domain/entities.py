"""
Matching Domain Entities
========================

Agents, the assets tickets can be linked to, and score results.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from servicedesk.config import Category, UserRole, STAFF_ROLES


@dataclass
class Agent:
    """
    A service desk user.

    Only users with the AGENT role are ranked for assignment; ADMIN users
    are still valid escalation targets.
    """
    id: str
    name: str
    role: UserRole = UserRole.AGENT
    skills: FrozenSet[Category] = field(default_factory=frozenset)
    efficiency_rating: float = 50
    active_ticket_count: int = 0
    asset_familiarity_score: Dict[str, float] = field(default_factory=dict)
    department_id: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.efficiency_rating <= 100:
            raise ValueError("efficiency_rating must be between 0 and 100")
        if self.active_ticket_count < 0:
            raise ValueError("active_ticket_count cannot be negative")
        for model_name, score in self.asset_familiarity_score.items():
            if not 0 <= score <= 100:
                raise ValueError(f"familiarity score for {model_name} must be between 0 and 100")
        self.skills = frozenset(self.skills)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass(frozen=True)
class AssetModel:
    """Registry entry for a hardware/software model."""
    id: str
    name: str
    brand: Optional[str] = None


@dataclass(frozen=True)
class Asset:
    """An inventory item a ticket may be linked to."""
    id: str
    name: str
    model_id: str
    assigned_to: Optional[str] = None


@dataclass(frozen=True)
class ScoreBreakdown:
    skill_match: float
    history: float
    workload: float
    asset_familiarity: float

    @property
    def total(self) -> float:
        return self.skill_match + self.history + self.workload + self.asset_familiarity


@dataclass(frozen=True)
class AgentScore:
    """Ranked recommendation for one agent."""
    agent: Agent
    total_score: int
    breakdown: ScoreBreakdown
