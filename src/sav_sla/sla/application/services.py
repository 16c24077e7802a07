"""
SLA Application Services
=========================

Application services orchestrate the SLA clock for ticket lists and
monitoring scans.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (config provider), not concrete implementations
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from sav_sla.config import AlertType, CLOSED_STATUSES, TicketStatus
from sav_sla.core.exceptions import ApplicationException
from sav_sla.shared.infrastructure.logging import get_logger, log_latency
from sav_sla.sla.application.dto import SLAScanResult, TicketSLAView
from sav_sla.sla.domain import (
    BusinessCalendar,
    BusinessCalendarConfig,
    PriorityThresholds,
    SLAClock,
    SLAConfig,
    TicketSnapshot,
    ensure_aware,
)

logger = get_logger(__name__)

DEFAULT_WARNING_LEAD_HOURS = 2.0

TicketLike = Union[TicketSnapshot, Mapping[str, Any]]


# ========== Config Provider Interface (Dependency Inversion) ==========

class ISLAConfigProvider(ABC):
    """Interface for SLA configuration access."""

    @abstractmethod
    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""


class StaticConfigProvider(ISLAConfigProvider):
    """Provider serving a fixed, in-memory configuration."""

    def __init__(self, config: Optional[SLAConfig] = None):
        self._config = config or SLAConfig()

    def get_config(self) -> SLAConfig:
        return self._config


# ========== Application Services ==========

class SLAService:
    """
    Service computing SLA standings for tickets.

    Reads a fresh configuration snapshot on every call so hot reloads take
    effect; the clock is rebuilt only when the snapshot changes.
    """

    def __init__(
        self,
        config_provider: ISLAConfigProvider,
        default_calendar: Optional[BusinessCalendarConfig] = None,
        default_warning_lead_hours: float = DEFAULT_WARNING_LEAD_HOURS
    ):
        self._config_provider = config_provider
        self._default_calendar = default_calendar
        self._default_warning_lead_hours = default_warning_lead_hours
        self._cached: Optional[Tuple[SLAConfig, SLAClock]] = None

    # ========== Configuration ==========

    @property
    def config(self) -> SLAConfig:
        return self._config_provider.get_config()

    def get_clock(self) -> SLAClock:
        """Clock for the current configuration (raises ConfigurationError)."""
        config = self.config
        cached = self._cached
        if cached is not None and cached[0] is config:
            return cached[1]

        calendar = BusinessCalendar(config.get_calendar_config(self._default_calendar))
        clock = SLAClock(calendar, config.get_thresholds())
        self._cached = (config, clock)
        logger.info(
            "SLA clock configured",
            extra={"calendar": repr(calendar), "thresholds": config.thresholds}
        )
        return clock

    @property
    def calendar(self) -> BusinessCalendar:
        return self.get_clock().calendar

    @property
    def warning_lead_hours(self) -> float:
        lead = self.config.warning_lead_hours
        return lead if lead is not None else self._default_warning_lead_hours

    def thresholds_for_client(self, client_id: Optional[str]) -> PriorityThresholds:
        """Global thresholds with the client's overrides applied."""
        return self.config.get_client_thresholds(client_id)

    # ========== Evaluation ==========

    def evaluate(self, ticket: TicketLike, now: datetime) -> TicketSLAView:
        """
        Compute the SLA view of one ticket.

        Raises:
            ApplicationException: if the ticket cannot be evaluated
        """
        snapshot = self._as_snapshot(ticket)
        clock = self.get_clock()
        standing = clock.standing(
            now,
            snapshot.created_at,
            snapshot.priority,
            self.thresholds_for_client(snapshot.client_id),
        )
        return TicketSLAView.from_standing(snapshot, standing)

    def evaluate_many(
        self,
        tickets: Iterable[TicketLike],
        now: datetime
    ) -> List[TicketSLAView]:
        """
        Compute SLA views for a ticket list.

        A ticket that cannot be evaluated yields an ``unknown`` view instead
        of failing the whole list.
        """
        now = ensure_aware(now, "now")
        views = []
        for ticket in tickets:
            try:
                views.append(self.evaluate(ticket, now))
            except (ApplicationException, TypeError, ValueError, KeyError) as e:
                ticket_id, priority, client_id = self._identify(ticket)
                logger.warning(
                    "Ticket SLA could not be computed",
                    extra={"ticket_id": ticket_id, "error": str(e)}
                )
                views.append(TicketSLAView.unknown(
                    ticket_id, str(e), priority=priority, client_id=client_id
                ))
        return views

    # ========== Monitoring ==========

    def is_sla_overdue(self, deadline: datetime, now: datetime) -> bool:
        """
        Whether a deadline counts as missed at ``now``.

        A deadline can only be reported as missed during business hours.
        """
        if not self.calendar.is_business_time(now):
            return False
        return ensure_aware(now, "now") > ensure_aware(deadline, "deadline")

    def scan(self, tickets: Iterable[TicketLike], now: datetime) -> SLAScanResult:
        """
        Find open tickets that are overdue or close to their deadline.

        Outside business hours the scan is suspended and returns no alerts.
        """
        now = ensure_aware(now, "now")
        if not self.calendar.is_business_time(now):
            logger.info("Outside business hours, SLA scan suspended", extra={"now": now.isoformat()})
            return SLAScanResult(evaluated_at=now, in_business_hours=False)

        warning_horizon = now + timedelta(hours=self.warning_lead_hours)
        result = SLAScanResult(evaluated_at=now, in_business_hours=True)

        open_tickets = [t for t in tickets if self._is_open(t)]
        with log_latency(logger, "sla_scan", tickets=len(open_tickets)):
            for view in self.evaluate_many(open_tickets, now):
                result.tickets_scanned += 1
                if view.is_unknown or view.deadline is None:
                    continue
                if self.is_sla_overdue(view.deadline, now):
                    result.overdue.append(view)
                elif view.deadline < warning_horizon:
                    result.warning.append(view)

        logger.info(
            "SLA scan finished",
            extra={
                "tickets_scanned": result.tickets_scanned,
                AlertType.OVERDUE: len(result.overdue),
                AlertType.WARNING: len(result.warning),
            }
        )
        return result

    # ========== Helpers ==========

    @staticmethod
    def _as_snapshot(ticket: TicketLike) -> TicketSnapshot:
        if isinstance(ticket, TicketSnapshot):
            return ticket
        fields = {
            key: ticket[key]
            for key in ("id", "created_at", "priority", "status", "client_id", "title")
            if key in ticket and ticket[key] is not None
        }
        return TicketSnapshot(**fields)

    @staticmethod
    def _identify(ticket: Any) -> Tuple[str, Optional[str], Optional[str]]:
        if isinstance(ticket, TicketSnapshot):
            return ticket.id, ticket.priority, ticket.client_id
        if isinstance(ticket, Mapping):
            client_id = ticket.get("client_id")
            return (
                str(ticket.get("id", "?")),
                ticket.get("priority"),
                str(client_id) if client_id is not None else None,
            )
        return "?", None, None

    @staticmethod
    def _is_open(ticket: TicketLike) -> bool:
        if isinstance(ticket, TicketSnapshot):
            return ticket.is_open
        return ticket.get("status", TicketStatus.OPEN) not in CLOSED_STATUSES
