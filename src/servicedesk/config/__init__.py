"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="servicedesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA policy YAML file"
    )
    demand_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to bucket the hour of day for the demand factor"
    )

    # ========== Escalation ==========
    escalation_rules_path: Path = Field(
        default=Path("escalation_rules.yaml"),
        description="Path to the ordered escalation rule list"
    )
    escalation_job_enabled: bool = Field(
        default=True,
        description="Run the escalation job on a fixed interval"
    )
    escalation_job_interval: int = Field(
        default=300,
        description="Seconds between scheduled escalation runs",
        ge=10
    )
    escalation_actor_id: str = Field(
        default="scheduler",
        description="Actor recorded in the audit log for scheduled runs"
    )

    # ========== Store ==========
    seed_demo_data: bool = Field(
        default=True,
        description="Populate the in-memory store with demo agents, assets and a ticket"
    )

    # ========== Slack Integration ==========
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack webhook URL for escalation notifications"
    )
    slack_channel: str = Field(
        default="#support-escalations",
        description="Slack channel for escalation notifications"
    )
    slack_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for Slack API calls",
        ge=0.1,
        le=30
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Priority(str, Enum):
    """Ticket priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Category(str, Enum):
    """Ticket categories, also used as agent skills."""
    TECHNICAL = "Technical Support"
    FINANCE = "Finance"
    SALES = "Sales"
    GENERAL = "General Inquiry"
    UNCLASSIFIED = "Unclassified"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_CUSTOMER = "AWAITING_CUSTOMER"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class SLATier(str, Enum):
    """Named SLA classes derived from priority."""
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"


class SLAStatus(str, Enum):
    """Live SLA status of a ticket."""
    ON_TRACK = "ON_TRACK"
    AT_RISK = "AT_RISK"
    BREACHED = "BREACHED"


class UserRole(str, Enum):
    """Roles of users known to the service desk."""
    CUSTOMER = "CUSTOMER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


class AuditSeverity(str, Enum):
    """Audit log severities."""
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class EscalationGroupType(str, Enum):
    """Kinds of escalation groups."""
    TECHNICAL = "TECHNICAL"
    HIERARCHICAL = "HIERARCHICAL"
    REGIONAL = "REGIONAL"


class GroupMemberRole(str, Enum):
    """Role of a user inside an escalation group."""
    MEMBER = "MEMBER"
    LEAD = "LEAD"
    BACKUP = "BACKUP"
    ESCALATION_POINT = "ESCALATION_POINT"


# ========== Status groups ==========

OPEN_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.AWAITING_CUSTOMER
]
SETTLED_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]
STAFF_ROLES = [UserRole.AGENT, UserRole.ADMIN]
