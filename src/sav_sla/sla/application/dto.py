"""
SLA Application DTOs
=====================

Data Transfer Objects handed to ticket-rendering components.

These Pydantic models handle serialization and validation of the views the
engine produces. Following YAGNI - only what's needed.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime

from sav_sla.config import DelayClass
from sav_sla.sla.domain import (
    CountdownMagnitude,
    SLAStanding,
    TicketSnapshot,
    UNKNOWN_COUNTDOWN_LABEL,
    delay_css_class,
    format_countdown,
)


# ========== Type Aliases for Literals ==========
DelayClassStr = Literal["ok", "warning", "critical", "unknown"]
AlertTypeStr = Literal["warning", "overdue"]


# ========== Response DTOs ==========

class CountdownDTO(BaseModel):
    """Countdown magnitude in business days / hours / minutes."""
    days: int = Field(..., ge=0)
    hours: int = Field(..., ge=0)
    minutes: int = Field(..., ge=0)

    @classmethod
    def from_magnitude(cls, magnitude: CountdownMagnitude) -> "CountdownDTO":
        return cls(**magnitude.to_dict())


class TicketSLAView(BaseModel):
    """SLA standing of a single ticket, ready for display."""
    ticket_id: str = Field(..., description="Ticket identifier")
    client_id: Optional[str] = Field(None, description="Owning client")
    priority: Optional[str] = Field(None, description="Ticket priority")
    status: Optional[str] = Field(None, description="Ticket status")
    created_at: Optional[datetime] = Field(None, description="Ticket creation instant")
    deadline: Optional[datetime] = Field(None, description="SLA deadline")
    threshold_hours: Optional[float] = Field(None, description="Business hours allowed")
    elapsed_business_hours: Optional[float] = Field(None, ge=0)
    progress_percent: Optional[float] = Field(None, ge=0)
    overdue: bool = Field(default=False, description="Deadline has passed")
    countdown: Optional[CountdownDTO] = None
    countdown_label: str = Field(..., description="Human readable countdown")
    delay_class: DelayClassStr = Field(..., description="Urgency tier")
    css_class: str = Field(..., description="CSS class for the urgency indicator")
    error: Optional[str] = Field(None, description="Why the standing is unknown")

    @classmethod
    def from_standing(cls, ticket: TicketSnapshot, standing: SLAStanding) -> "TicketSLAView":
        """Build a view from a computed standing."""
        return cls(
            ticket_id=ticket.id,
            client_id=ticket.client_id,
            priority=ticket.priority,
            status=ticket.status,
            created_at=ticket.created_at,
            deadline=standing.deadline,
            threshold_hours=standing.threshold_hours,
            elapsed_business_hours=round(standing.elapsed_hours, 4),
            progress_percent=round(standing.progress_percent, 2),
            overdue=standing.countdown.overdue,
            countdown=CountdownDTO.from_magnitude(standing.countdown.magnitude),
            countdown_label=format_countdown(standing.countdown),
            delay_class=standing.delay_class,
            css_class=delay_css_class(standing.delay_class),
        )

    @classmethod
    def unknown(
        cls,
        ticket_id: str,
        error: str,
        priority: Optional[str] = None,
        client_id: Optional[str] = None
    ) -> "TicketSLAView":
        """Neutral view used when no deadline can be computed."""
        return cls(
            ticket_id=ticket_id,
            client_id=client_id,
            priority=priority,
            countdown_label=UNKNOWN_COUNTDOWN_LABEL,
            delay_class=DelayClass.UNKNOWN,
            css_class=delay_css_class(DelayClass.UNKNOWN),
            error=error,
        )

    @property
    def is_unknown(self) -> bool:
        return self.delay_class == DelayClass.UNKNOWN


class SLAAlertDTO(BaseModel):
    """A ticket flagged by a monitoring scan."""
    alert_type: AlertTypeStr
    ticket: TicketSLAView


class SLAScanResult(BaseModel):
    """Outcome of one monitoring scan."""
    evaluated_at: datetime
    in_business_hours: bool = Field(..., description="False when the scan was suspended")
    tickets_scanned: int = Field(default=0, ge=0)
    overdue: List[TicketSLAView] = Field(default_factory=list)
    warning: List[TicketSLAView] = Field(default_factory=list)

    @property
    def alerts(self) -> List[SLAAlertDTO]:
        """Overdue alerts first, then warnings."""
        return (
            [SLAAlertDTO(alert_type="overdue", ticket=t) for t in self.overdue]
            + [SLAAlertDTO(alert_type="warning", ticket=t) for t in self.warning]
        )
