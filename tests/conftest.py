"""Shared fixtures for the SLA engine tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from sav_sla.sla.application import SLAService, StaticConfigProvider
from sav_sla.sla.domain import (
    BusinessCalendar,
    BusinessCalendarConfig,
    SLAClock,
    SLAConfig,
)

PARIS = ZoneInfo("Europe/Paris")


def paris(day: int, hour: int, minute: int = 0, month: int = 10, year: int = 2025) -> datetime:
    """Paris wall-clock instant. October 2025: the 6th is a Monday."""
    return datetime(year, month, day, hour, minute, tzinfo=PARIS)


@pytest.fixture
def calendar() -> BusinessCalendar:
    """Paris, 9-18, Monday to Friday."""
    return BusinessCalendar(BusinessCalendarConfig())


@pytest.fixture
def clock(calendar) -> SLAClock:
    return SLAClock(calendar)


@pytest.fixture
def sla_config() -> SLAConfig:
    return SLAConfig(client_overrides={"17": {"urgent": 1}})


@pytest.fixture
def service(sla_config) -> SLAService:
    return SLAService(StaticConfigProvider(sla_config))
