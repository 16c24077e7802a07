"""
SLA Domain Layer
================

Domain layer for the SLA engine.

Contains:
- Calendar: work-week definition and business-time navigation
- Clock: deadline projection, countdown and delay classification
- Value Objects: PriorityThresholds, CountdownMagnitude, CountdownResult, SLAConfig
- Entities: TicketSnapshot

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from sav_sla.sla.domain.calendar import (
    BusinessCalendar,
    BusinessCalendarConfig,
    ensure_aware,
)
from sav_sla.sla.domain.clock import (
    SLAClock,
    SLAStanding,
    format_countdown,
    delay_css_class,
    CRITICAL_PROGRESS_PERCENT,
    WARNING_PROGRESS_PERCENT,
    UNKNOWN_COUNTDOWN_LABEL,
)
from sav_sla.sla.domain.entities import TicketSnapshot
from sav_sla.sla.domain.value_objects import (
    PriorityThresholds,
    CountdownMagnitude,
    CountdownResult,
    BusinessHoursConfig,
    SLAConfig,
)

__all__ = [
    # Calendar
    "BusinessCalendar",
    "BusinessCalendarConfig",
    "ensure_aware",
    # Clock
    "SLAClock",
    "SLAStanding",
    "format_countdown",
    "delay_css_class",
    "CRITICAL_PROGRESS_PERCENT",
    "WARNING_PROGRESS_PERCENT",
    "UNKNOWN_COUNTDOWN_LABEL",
    # Entities
    "TicketSnapshot",
    # Value Objects
    "PriorityThresholds",
    "CountdownMagnitude",
    "CountdownResult",
    "BusinessHoursConfig",
    "SLAConfig",
]
