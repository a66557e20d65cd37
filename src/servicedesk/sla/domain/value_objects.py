"""
SLA Value Objects
==================

Immutable value objects for SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.

All timestamps are epoch milliseconds.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict

from pydantic import BaseModel, Field, field_validator, model_validator

from servicedesk.config import Priority, SLATier, SLAStatus, SETTLED_STATUSES, TicketStatus

if TYPE_CHECKING:
    from servicedesk.sla.domain.entities import Ticket


MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000

DEFAULT_BASE_HOURS: Dict[Priority, float] = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 8,
    Priority.MEDIUM: 24,
    Priority.LOW: 72,
}

TIER_BY_PRIORITY: Dict[Priority, SLATier] = {
    Priority.CRITICAL: SLATier.PLATINUM,
    Priority.HIGH: SLATier.GOLD,
    Priority.MEDIUM: SLATier.SILVER,
    Priority.LOW: SLATier.BRONZE,
}


@dataclass(frozen=True)
class SLATarget:
    """
    Deadline stamped onto a ticket at creation.

    Never recomputed: the demand factor in effect at creation is kept so the
    deadline can be explained later.
    """
    target: int
    tier: SLATier
    demand_factor_applied: float


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all deadline and status logic in one place.
    """

    @staticmethod
    def tier_for(priority: Priority) -> SLATier:
        """Service tier is a fixed function of priority."""
        return TIER_BY_PRIORITY[priority]

    @staticmethod
    def calculate_deadline(
        priority: Priority,
        created_at: int,
        demand_factor: float,
        base_hours: Dict[Priority, float] = DEFAULT_BASE_HOURS
    ) -> SLATarget:
        """
        Calculate the SLA deadline for a new ticket.

        Formula: created_at + base_hours(priority) x demand_factor hours

        Example:
            Priority "Critical" = 4 hours
            Demand factor at peak = 1.2
            Deadline = created_at + 4.8 hours

        Args:
            priority: Ticket priority
            created_at: Creation time (epoch ms)
            demand_factor: Multiplier in effect at creation
            base_hours: Base SLA hours per priority

        Returns:
            SLATarget with the deadline, tier and applied factor
        """
        adjusted_hours = base_hours[priority] * demand_factor
        target = created_at + int(round(adjusted_hours * MS_PER_HOUR))
        return SLATarget(
            target=target,
            tier=SLACalculator.tier_for(priority),
            demand_factor_applied=demand_factor
        )

    @staticmethod
    def calculate_status(
        created_at: int,
        target: int,
        status: TicketStatus,
        now: int,
        at_risk_ratio: float = 0.20
    ) -> SLAStatus:
        """
        Calculate the live SLA status.

        Args:
            created_at: When the ticket was created (epoch ms)
            target: The stamped SLA deadline (epoch ms)
            status: Current ticket status
            now: Evaluation time (epoch ms)
            at_risk_ratio: Remaining-window fraction below which the ticket is at risk

        Returns:
            SLAStatus: ON_TRACK, AT_RISK or BREACHED
        """
        # The clock stops once the ticket is settled
        if status in SETTLED_STATUSES:
            return SLAStatus.ON_TRACK

        time_left = target - now
        window = target - created_at

        if time_left < 0:
            return SLAStatus.BREACHED

        ratio = time_left / window if window > 0 else 0.0
        if ratio < at_risk_ratio:
            return SLAStatus.AT_RISK
        return SLAStatus.ON_TRACK

    @staticmethod
    def status_for(ticket: "Ticket", now: int, at_risk_ratio: float = 0.20) -> SLAStatus:
        """Evaluate a ticket snapshot."""
        return SLACalculator.calculate_status(
            ticket.created_at, ticket.sla_target, ticket.status, now, at_risk_ratio
        )

    @staticmethod
    def format_time_remaining(target: int, now: int) -> str:
        """Human readable time to deadline, negative once past it."""
        diff = target - now
        sign = "-" if diff < 0 else ""
        diff = abs(diff)
        hours = diff // MS_PER_HOUR
        minutes = (diff % MS_PER_HOUR) // MS_PER_MINUTE
        return f"{sign}{hours}h {minutes}m"


class DemandPolicyConfig(BaseModel):
    """
    Hour-of-day demand buckets.

    Peak window is inclusive on both ends; off hours are strictly before
    `off_hours_before` or strictly after `off_hours_after`.
    """
    peak_start_hour: int = Field(default=9, ge=0, le=23)
    peak_end_hour: int = Field(default=17, ge=0, le=23)
    peak_factor: float = Field(default=1.2, gt=0)
    off_hours_before: int = Field(default=8, ge=0, le=23)
    off_hours_after: int = Field(default=19, ge=0, le=23)
    off_hours_factor: float = Field(default=0.8, gt=0)
    default_factor: float = Field(default=1.0, gt=0)

    @model_validator(mode="after")
    def validate_windows(self) -> "DemandPolicyConfig":
        if self.peak_start_hour > self.peak_end_hour:
            raise ValueError("peak_start_hour must not be after peak_end_hour")
        return self

    def factor_for_hour(self, hour: int) -> float:
        """Demand multiplier for a local hour of day."""
        if self.peak_start_hour <= hour <= self.peak_end_hour:
            return self.peak_factor
        if hour < self.off_hours_before or hour > self.off_hours_after:
            return self.off_hours_factor
        return self.default_factor


class SLAPolicyConfig(BaseModel):
    """
    SLA policy loaded from YAML.

    Effective SLA = Base hours (by priority) x Demand factor
    """
    base_hours: Dict[Priority, float] = Field(
        default_factory=lambda: dict(DEFAULT_BASE_HOURS),
        description="Base SLA hours by priority"
    )
    at_risk_ratio: float = Field(
        default=0.20,
        gt=0,
        lt=1,
        description="Fraction of the SLA window below which an open ticket is at risk"
    )
    demand: DemandPolicyConfig = Field(default_factory=DemandPolicyConfig)

    @field_validator("base_hours")
    @classmethod
    def validate_base_hours(cls, v: Dict[Priority, float]) -> Dict[Priority, float]:
        """Fill missing priorities with defaults and reject non-positive hours."""
        for priority in Priority:
            v.setdefault(priority, DEFAULT_BASE_HOURS[priority])
        for priority, hours in v.items():
            if hours <= 0:
                raise ValueError(f"base hours for {priority.value} must be positive")
        return v
