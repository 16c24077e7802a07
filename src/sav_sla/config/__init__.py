"""
Configuration Module
====================

Environment settings for the SLA engine and the string constants shared
by every layer (priorities, statuses, delay tiers, alert types).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import Dict, List


class Settings(BaseSettings):
    """
    Engine settings read from the environment or a .env file.

    The business calendar here is the fallback used when the SLA YAML file
    does not define one.
    """

    # ========== Application ==========
    app_name: str = Field(default="sav-sla-engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Business Calendar ==========
    business_hours_start: int = Field(
        default=9,
        description="Inclusive start hour of the business day",
        ge=0,
        le=23
    )
    business_hours_end: int = Field(
        default=18,
        description="Exclusive end hour of the business day",
        ge=1,
        le=24
    )
    business_days: List[int] = Field(
        default=[1, 2, 3, 4, 5],
        description="Business weekdays (0 = Sunday ... 6 = Saturday)"
    )
    business_timezone: str = Field(
        default="Europe/Paris",
        description="IANA timezone in which business hours are evaluated"
    )

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA configuration YAML file"
    )
    sla_evaluation_interval: int = Field(
        default=900,
        description="Seconds between SLA monitoring scans",
        ge=10
    )
    sla_warning_lead_hours: float = Field(
        default=2.0,
        description="Hours before the deadline at which a ticket is flagged",
        gt=0
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
        """Reject unknown deployment environments."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()


# ========== Constants ==========

class Priority(str):
    """Ticket priorities known to the default threshold table."""
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class TicketStatus(str):
    """Ticket statuses; resolved and closed tickets leave SLA monitoring."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_CLIENT = "waiting_client"
    RESOLVED = "resolved"
    CLOSED = "closed"


class DelayClass(str):
    """Delay classification tiers."""
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class AlertType(str):
    """SLA monitoring alert types."""
    WARNING = "warning"
    OVERDUE = "overdue"


# ========== Lists for validation ==========

CLOSED_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]

# Business hours allowed per priority before the SLA boundary
DEFAULT_PRIORITY_THRESHOLDS: Dict[str, int] = {
    Priority.URGENT: 2,
    Priority.HIGH: 8,
    Priority.NORMAL: 24,
    Priority.LOW: 72,
}
