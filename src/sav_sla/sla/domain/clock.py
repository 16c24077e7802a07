"""
SLA Clock
=========

Translates a ticket's creation instant and priority into a deadline, a
business-hour countdown and a delay classification.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Union

from sav_sla.config import DelayClass
from sav_sla.core.exceptions import UnknownPriority
from sav_sla.shared.infrastructure.logging import get_logger
from sav_sla.sla.domain.calendar import BusinessCalendar, ensure_aware
from sav_sla.sla.domain.value_objects import (
    CountdownMagnitude,
    CountdownResult,
    PriorityThresholds,
)

logger = get_logger(__name__)

# Progress (% of the threshold elapsed) at which a ticket changes tier
CRITICAL_PROGRESS_PERCENT = 90
WARNING_PROGRESS_PERCENT = 75

UNKNOWN_COUNTDOWN_LABEL = "indéterminé"

ThresholdTable = Union[PriorityThresholds, Mapping[str, float], None]


@dataclass(frozen=True)
class SLAStanding:
    """Everything the clock knows about one ticket at one instant."""
    deadline: datetime
    threshold_hours: float
    elapsed_hours: float
    progress_percent: float
    countdown: CountdownResult
    delay_class: str


class SLAClock:
    """
    Deadline projection and classification over a BusinessCalendar.

    Every method is pure; ``thresholds`` defaults to the table the clock was
    built with and may be overridden per call (e.g. with a client's table).
    """

    def __init__(
        self,
        calendar: BusinessCalendar,
        thresholds: ThresholdTable = None
    ):
        self._calendar = calendar
        self._thresholds = PriorityThresholds.coerce(thresholds)

    @property
    def calendar(self) -> BusinessCalendar:
        return self._calendar

    @property
    def thresholds(self) -> PriorityThresholds:
        return self._thresholds

    def _table(self, thresholds: ThresholdTable) -> PriorityThresholds:
        if thresholds is None:
            return self._thresholds
        return PriorityThresholds.coerce(thresholds)

    def threshold_for(
        self,
        priority: str,
        thresholds: ThresholdTable = None,
        strict: bool = False
    ) -> float:
        """
        Resolve the threshold (in business hours) for a priority.

        Unmapped priorities fall back to the ``normal`` threshold unless
        ``strict`` is set, in which case UnknownPriority is raised.
        """
        table = self._table(thresholds)
        try:
            return table.require(priority)
        except UnknownPriority:
            if strict:
                raise
            fallback = table.fallback()
            logger.warning(
                "Unknown priority, using normal threshold",
                extra={"priority": priority, "threshold_hours": fallback}
            )
            return fallback

    # ========== Public operations ==========

    def deadline(
        self,
        created_at: datetime,
        priority: str,
        thresholds: ThresholdTable = None
    ) -> datetime:
        """Creation instant plus the priority's threshold in business hours."""
        return self._deadline(created_at, self.threshold_for(priority, thresholds))

    def countdown(
        self,
        now: datetime,
        created_at: datetime,
        priority: str,
        thresholds: ThresholdTable = None
    ) -> CountdownResult:
        """
        Business time left before the deadline, or elapsed past it.

        The magnitude is never negative; ``overdue`` carries the sign.
        """
        return self._countdown(ensure_aware(now, "now"), self.deadline(created_at, priority, thresholds))

    def delay_classification(
        self,
        now: datetime,
        created_at: datetime,
        priority: str,
        thresholds: ThresholdTable = None
    ) -> str:
        """Classify a ticket as ok, warning or critical."""
        return self.standing(now, created_at, priority, thresholds).delay_class

    def standing(
        self,
        now: datetime,
        created_at: datetime,
        priority: str,
        thresholds: ThresholdTable = None
    ) -> SLAStanding:
        """Deadline, countdown and classification computed in one pass."""
        now = ensure_aware(now, "now")
        threshold = self.threshold_for(priority, thresholds)
        deadline = self._deadline(created_at, threshold)
        elapsed = self._calendar.business_hours_between(created_at, now)
        progress = round(elapsed / threshold * 100, 6)

        if now >= deadline:
            delay_class = DelayClass.CRITICAL
        elif progress >= CRITICAL_PROGRESS_PERCENT:
            delay_class = DelayClass.CRITICAL
        elif progress >= WARNING_PROGRESS_PERCENT:
            delay_class = DelayClass.WARNING
        else:
            delay_class = DelayClass.OK

        return SLAStanding(
            deadline=deadline,
            threshold_hours=threshold,
            elapsed_hours=elapsed,
            progress_percent=progress,
            countdown=self._countdown(now, deadline),
            delay_class=delay_class,
        )

    # ========== Internals ==========

    def _deadline(self, created_at: datetime, threshold: float) -> datetime:
        created_at = ensure_aware(created_at, "created_at")
        return self._calendar.add_business_hours(created_at, threshold)

    def _countdown(self, now: datetime, deadline: datetime) -> CountdownResult:
        hours_per_day = self._calendar.hours_per_day

        if now >= deadline:
            overdue_hours = self._calendar.business_hours_between(deadline, now)
            return CountdownResult(
                overdue=True,
                magnitude=CountdownMagnitude.from_hours(overdue_hours, hours_per_day),
                business_hours=overdue_hours,
            )

        remaining_hours = self._calendar.business_hours_between(now, deadline)
        return CountdownResult(
            overdue=False,
            magnitude=CountdownMagnitude.from_hours(
                remaining_hours, hours_per_day, with_minutes=True
            ),
            business_hours=remaining_hours,
        )


def format_countdown(result: Optional[CountdownResult]) -> str:
    """
    Render a countdown the way the ticket lists display it.

    ``None`` (no computable deadline) renders as the neutral unknown label.
    """
    if result is None:
        return UNKNOWN_COUNTDOWN_LABEL

    magnitude = result.magnitude
    if result.overdue:
        if magnitude.days > 0:
            return f"En retard de {magnitude.days}j {magnitude.hours}h"
        return f"En retard de {result.whole_hours}h"

    if magnitude.days > 0:
        return f"{magnitude.days}j {magnitude.hours}h restantes"
    if result.business_hours >= 1:
        return f"{result.whole_hours}h restantes"
    return f"{magnitude.minutes}min restantes"


def delay_css_class(delay_class: str) -> str:
    """CSS class driving the urgency indicator of a ticket row."""
    return f"delay-{delay_class}"
