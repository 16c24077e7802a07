"""
Business Calendar
=================

Work-week definition and the time navigation built on top of it.

All arithmetic happens on timezone-aware instants. Wall-clock rules
(weekday, start hour, end hour) are evaluated after projecting the instant
into the configured IANA timezone; every instant the calendar builds is
returned in UTC.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import FrozenSet, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sav_sla.core.exceptions import ConfigurationError, ValidationException

# Weekday numbering used throughout the calendar: 0 = Sunday ... 6 = Saturday
SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)

DEFAULT_WORK_DAYS = frozenset({MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY})
DEFAULT_TIMEZONE = "Europe/Paris"


def ensure_aware(instant: datetime, name: str = "instant") -> datetime:
    """Return ``instant`` in UTC, rejecting naive datetimes."""
    if not isinstance(instant, datetime):
        raise ValidationException(
            f"{name} must be a datetime, got {type(instant).__name__}",
            {"argument": name}
        )
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValidationException(
            f"{name} must be timezone-aware",
            {"argument": name, "value": instant.isoformat()}
        )
    return instant.astimezone(timezone.utc)


@dataclass(frozen=True)
class BusinessCalendarConfig:
    """
    Immutable work-week definition.

    Attributes:
        start_hour: Inclusive start of the business day
        end_hour: Exclusive end of the business day
        work_days: Business weekdays, 0 = Sunday ... 6 = Saturday
        timezone: IANA timezone the hours are expressed in
    """
    start_hour: int = 9
    end_hour: int = 18
    work_days: FrozenSet[int] = field(default=DEFAULT_WORK_DAYS)
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        """Validate the calendar definition."""
        if not 0 <= self.start_hour <= 23:
            raise ConfigurationError(
                f"start_hour must be within [0, 23], got {self.start_hour}",
                {"start_hour": self.start_hour}
            )
        if not self.start_hour < self.end_hour <= 24:
            raise ConfigurationError(
                f"end_hour ({self.end_hour}) must be greater than "
                f"start_hour ({self.start_hour}) and at most 24",
                {"start_hour": self.start_hour, "end_hour": self.end_hour}
            )

        work_days = frozenset(self.work_days)
        if not work_days:
            raise ConfigurationError("work_days must not be empty")
        invalid = sorted(d for d in work_days if not 0 <= d <= 6)
        if invalid:
            raise ConfigurationError(
                f"work_days must be within [0, 6], got {invalid}",
                {"work_days": sorted(work_days)}
            )
        object.__setattr__(self, "work_days", work_days)

        if not self.timezone:
            raise ConfigurationError("timezone must not be empty")

    @property
    def hours_per_day(self) -> int:
        """Capacity of one business day in hours."""
        return self.end_hour - self.start_hour

    @classmethod
    def from_values(
        cls,
        start_hour: int,
        end_hour: int,
        work_days: Iterable[int],
        timezone: str = DEFAULT_TIMEZONE
    ) -> "BusinessCalendarConfig":
        """Build a config from loosely typed settings values."""
        return cls(
            start_hour=int(start_hour),
            end_hour=int(end_hour),
            work_days=frozenset(int(d) for d in work_days),
            timezone=timezone,
        )


class BusinessCalendar:
    """
    Answers business-time predicates and navigation queries.

    Stateless once constructed: every method is a pure function of its
    arguments and the read-only configuration, so one calendar can be
    shared between threads.
    """

    def __init__(self, config: BusinessCalendarConfig | None = None):
        self._config = config or BusinessCalendarConfig()
        try:
            self._zone = ZoneInfo(self._config.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                f"Unknown timezone '{self._config.timezone}'",
                {"timezone": self._config.timezone, "error": str(e)}
            ) from e

    def __repr__(self) -> str:
        c = self._config
        return (
            f"BusinessCalendar({c.start_hour}-{c.end_hour}, "
            f"days={sorted(c.work_days)}, tz={c.timezone})"
        )

    @property
    def config(self) -> BusinessCalendarConfig:
        return self._config

    @property
    def hours_per_day(self) -> int:
        return self._config.hours_per_day

    # ========== Wall-clock primitives ==========

    def to_local(self, instant: datetime) -> datetime:
        """Project an instant onto the calendar's local wall clock."""
        return ensure_aware(instant).astimezone(self._zone)

    def local_instant(
        self,
        day: date,
        hour: int,
        minute: int = 0,
        second: int = 0,
        microsecond: int = 0
    ) -> datetime:
        """
        Convert a local wall-clock reading back to an absolute UTC instant.

        ``hour`` may be 24, meaning midnight at the end of ``day``. Ambiguous
        readings resolve to the first occurrence; readings that fall in a
        DST gap are shifted forward by the gap length.
        """
        if hour == 24:
            day, hour = day + timedelta(days=1), 0
        local = datetime.combine(day, time(hour, minute, second, microsecond), tzinfo=self._zone)
        return local.astimezone(timezone.utc)

    @staticmethod
    def weekday_of(day: date) -> int:
        """Weekday number with 0 = Sunday ... 6 = Saturday."""
        return day.isoweekday() % 7

    def is_work_day(self, day: date) -> bool:
        return self.weekday_of(day) in self._config.work_days

    def _day_start(self, day: date) -> datetime:
        return self.local_instant(day, self._config.start_hour)

    def _day_end(self, day: date) -> datetime:
        return self.local_instant(day, self._config.end_hour)

    def _end_of_day_boundary(self, day: date) -> datetime:
        # Last representable moment of the business day: end_hour-1:59:59.999
        return self.local_instant(day, self._config.end_hour - 1, 59, 59, 999000)

    # ========== Predicates ==========

    def is_business_time(self, instant: datetime) -> bool:
        """True iff the local weekday is a work day and the hour is in range."""
        local = self.to_local(instant)
        return (
            self.is_work_day(local.date())
            and self._config.start_hour <= local.hour < self._config.end_hour
        )

    # ========== Navigation ==========

    def next_business_instant(self, instant: datetime) -> datetime:
        """
        Locate the first business moment at or after ``instant``.

        In-hours inputs are returned unchanged.
        """
        utc = ensure_aware(instant)
        if self.is_business_time(utc):
            return utc

        local = utc.astimezone(self._zone)
        day = local.date()
        if self.is_work_day(day) and local.hour < self._config.start_hour:
            return self._day_start(day)

        for offset in range(1, 8):
            candidate = day + timedelta(days=offset)
            if self.is_work_day(candidate):
                return self._day_start(candidate)

        raise ConfigurationError("Calendar has no work days")  # unreachable with a valid config

    def previous_business_instant(self, instant: datetime) -> datetime:
        """
        Locate the last business moment at or before ``instant``.

        In-hours inputs are returned unchanged; otherwise the result is the
        end-of-day boundary of the most recent work day.
        """
        utc = ensure_aware(instant)
        if self.is_business_time(utc):
            return utc

        local = utc.astimezone(self._zone)
        day = local.date()
        if self.is_work_day(day) and local.hour >= self._config.end_hour:
            return self._end_of_day_boundary(day)

        for offset in range(1, 8):
            candidate = day - timedelta(days=offset)
            if self.is_work_day(candidate):
                return self._end_of_day_boundary(candidate)

        raise ConfigurationError("Calendar has no work days")  # unreachable with a valid config

    def _next_day_start(self, instant: datetime) -> datetime:
        """Business start of the first work day strictly after ``instant``'s local day."""
        day = instant.astimezone(self._zone).date() + timedelta(days=1)
        return self.next_business_instant(self._day_start(day))

    # ========== Span arithmetic ==========

    def business_time_between(self, start: datetime, end: datetime) -> timedelta:
        """Business time elapsed in ``[start, end)`` as a timedelta."""
        start = ensure_aware(start, "start")
        end = ensure_aware(end, "end")
        total = timedelta(0)
        if start >= end:
            return total

        current = self.next_business_instant(start)
        while current < end:
            day = current.astimezone(self._zone).date()
            lower = max(self._day_start(day), current)
            upper = min(self._day_end(day), end)
            if upper > lower:
                total += upper - lower
            current = self._next_day_start(current)

        return total

    def business_hours_between(self, start: datetime, end: datetime) -> float:
        """
        Count business hours between two instants.

        Returns 0 for empty or reversed spans. The result is fractional;
        callers round for display only.
        """
        return self.business_time_between(start, end).total_seconds() / 3600

    def add_business_hours(self, start: datetime, hours_to_add: float) -> datetime:
        """
        Project ``start`` forward by ``hours_to_add`` business hours.

        A non-positive amount returns ``start`` itself, in UTC. A projection that
        exhausts a day exactly rolls over to the next business day's start.
        """
        start = ensure_aware(start, "start")
        if hours_to_add <= 0:
            return start

        remaining = timedelta(hours=hours_to_add)
        current = self.next_business_instant(start)
        while remaining > timedelta(0):
            day = current.astimezone(self._zone).date()
            available = self._day_end(day) - current
            if remaining < available:
                return current + remaining
            remaining -= available
            current = self._next_day_start(current)

        return current
