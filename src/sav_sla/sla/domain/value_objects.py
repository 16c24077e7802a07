"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

from sav_sla.config import DEFAULT_PRIORITY_THRESHOLDS, Priority
from sav_sla.core.exceptions import ConfigurationError, UnknownPriority
from sav_sla.sla.domain.calendar import (
    BusinessCalendarConfig,
    DEFAULT_TIMEZONE,
    DEFAULT_WORK_DAYS,
)

# Used when neither the requested priority nor "normal" is in the table
FALLBACK_THRESHOLD_HOURS = 24


@dataclass(frozen=True)
class PriorityThresholds:
    """
    Business hours allowed per priority before the SLA boundary.

    Example:
        thresholds = PriorityThresholds.default().with_overrides({"urgent": 1})
        thresholds.require("urgent")  # 1
    """
    hours: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_PRIORITY_THRESHOLDS)
    )

    def __post_init__(self):
        """Validate and freeze the table."""
        for priority, value in self.hours.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(
                    f"Threshold for '{priority}' must be a number, got {value!r}",
                    {"priority": priority}
                )
            if value <= 0:
                raise ConfigurationError(
                    f"Threshold for '{priority}' must be positive, got {value}",
                    {"priority": priority, "hours": value}
                )
        object.__setattr__(self, "hours", MappingProxyType(dict(self.hours)))

    @classmethod
    def default(cls) -> "PriorityThresholds":
        return cls()

    @classmethod
    def coerce(
        cls,
        value: Union["PriorityThresholds", Mapping[str, float], None]
    ) -> "PriorityThresholds":
        """Accept a plain mapping wherever a threshold table is expected."""
        if value is None:
            return cls.default()
        if isinstance(value, PriorityThresholds):
            return value
        return cls(hours=dict(value))

    def __contains__(self, priority: object) -> bool:
        return priority in self.hours

    def get(self, priority: str, default: Optional[float] = None) -> Optional[float]:
        return self.hours.get(priority, default)

    def require(self, priority: str) -> float:
        """Strict lookup raising UnknownPriority for unmapped priorities."""
        try:
            return self.hours[priority]
        except KeyError:
            raise UnknownPriority(priority, {"known": sorted(self.hours)}) from None

    def fallback(self) -> float:
        """Threshold applied to priorities missing from the table."""
        return self.hours.get(Priority.NORMAL, FALLBACK_THRESHOLD_HOURS)

    def with_overrides(self, overrides: Optional[Mapping[str, float]]) -> "PriorityThresholds":
        """Return a new table with ``overrides`` applied on top of this one."""
        if not overrides:
            return self
        merged = dict(self.hours)
        merged.update(overrides)
        return PriorityThresholds(hours=merged)

    def to_dict(self) -> Dict[str, float]:
        return dict(self.hours)


@dataclass(frozen=True)
class CountdownMagnitude:
    """Business time split into display units (one day = one business day)."""
    days: int = 0
    hours: int = 0
    minutes: int = 0

    @classmethod
    def from_hours(
        cls,
        business_hours: float,
        hours_per_day: int,
        with_minutes: bool = False
    ) -> "CountdownMagnitude":
        """
        Split a business-hour amount using the calendar's day length.

        Minutes are only reported when no whole hour remains and
        ``with_minutes`` is set.
        """
        business_hours = max(0.0, business_hours)
        days = int(business_hours // hours_per_day)
        hours = int(business_hours % hours_per_day)
        minutes = 0
        if with_minutes and days == 0 and hours == 0:
            minutes = int(business_hours * 60)
        return cls(days=days, hours=hours, minutes=minutes)

    def to_dict(self) -> dict:
        return {"days": self.days, "hours": self.hours, "minutes": self.minutes}


@dataclass(frozen=True)
class CountdownResult:
    """Outcome of a countdown evaluation."""
    overdue: bool
    magnitude: CountdownMagnitude
    business_hours: float

    @property
    def whole_hours(self) -> int:
        """Whole business hours, regardless of the day split."""
        return int(self.business_hours)


class BusinessHoursConfig(BaseModel):
    """Business calendar section of the SLA configuration file."""
    start_hour: int = Field(default=9, ge=0, le=23, description="Inclusive start hour")
    end_hour: int = Field(default=18, ge=1, le=24, description="Exclusive end hour")
    work_days: List[int] = Field(
        default_factory=lambda: sorted(DEFAULT_WORK_DAYS),
        description="Business weekdays (0 = Sunday ... 6 = Saturday)"
    )
    timezone: str = Field(default=DEFAULT_TIMEZONE, description="IANA timezone")

    def to_calendar_config(self) -> BusinessCalendarConfig:
        """Convert to the domain config (raises ConfigurationError)."""
        return BusinessCalendarConfig.from_values(
            self.start_hour, self.end_hour, self.work_days, self.timezone
        )


class SLAConfig(BaseModel):
    """
    SLA Configuration loaded from YAML.

    Effective threshold = client override if present, else global threshold.

    Example document:
        business_hours:
          start_hour: 9
          end_hour: 18
          work_days: [1, 2, 3, 4, 5]
          timezone: Europe/Paris
        thresholds:
          urgent: 2
          high: 8
        client_overrides:
          "17":
            urgent: 1
    """
    business_hours: Optional[BusinessHoursConfig] = Field(
        default=None,
        description="Calendar definition; environment settings apply when omitted"
    )
    thresholds: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_PRIORITY_THRESHOLDS),
        description="SLA thresholds in business hours by priority"
    )
    client_overrides: Dict[str, Dict[str, float]] = Field(
        default_factory=dict,
        description="Per-client threshold overrides keyed by client id"
    )
    warning_lead_hours: Optional[float] = Field(
        default=None,
        gt=0,
        description="Hours before the deadline at which monitoring warns"
    )

    @field_validator("thresholds")
    @classmethod
    def validate_thresholds(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Fill missing priorities with defaults and reject non-positive values."""
        for priority, default_hours in DEFAULT_PRIORITY_THRESHOLDS.items():
            v.setdefault(priority, default_hours)

        for priority, hours in v.items():
            if hours <= 0:
                raise ValueError(f"threshold for '{priority}' must be positive")
        return v

    @field_validator("client_overrides", mode="before")
    @classmethod
    def normalize_client_ids(cls, v: Any) -> Any:
        """YAML turns numeric client ids into ints; key them by string."""
        if isinstance(v, dict):
            return {str(client_id): table or {} for client_id, table in v.items()}
        return v

    @field_validator("client_overrides")
    @classmethod
    def validate_client_overrides(
        cls, v: Dict[str, Dict[str, float]]
    ) -> Dict[str, Dict[str, float]]:
        """Reject non-positive override values."""
        for client_id, table in v.items():
            for priority, hours in table.items():
                if hours <= 0:
                    raise ValueError(
                        f"override for client '{client_id}' priority '{priority}' must be positive"
                    )
        return v

    def get_thresholds(self) -> PriorityThresholds:
        """Global threshold table."""
        return PriorityThresholds(hours=self.thresholds)

    def get_client_thresholds(self, client_id: Optional[str]) -> PriorityThresholds:
        """Threshold table for a client, overrides applied over the global table."""
        base = self.get_thresholds()
        if client_id is None:
            return base
        return base.with_overrides(self.client_overrides.get(str(client_id)))

    def get_calendar_config(
        self,
        default: Optional[BusinessCalendarConfig] = None
    ) -> BusinessCalendarConfig:
        """Calendar from the file, else ``default``, else the built-in week."""
        if self.business_hours is not None:
            return self.business_hours.to_calendar_config()
        return default or BusinessCalendarConfig()
