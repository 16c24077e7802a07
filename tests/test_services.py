"""Tests for SLA evaluation of ticket lists and monitoring scans."""

from datetime import datetime

import pytest

from sav_sla.config import DelayClass, TicketStatus
from sav_sla.core.exceptions import ConfigurationError
from sav_sla.sla.application import SLAService, StaticConfigProvider
from sav_sla.sla.domain import (
    BusinessCalendarConfig,
    BusinessHoursConfig,
    SLAConfig,
    TicketSnapshot,
)
from tests.conftest import paris


@pytest.fixture
def tickets():
    return [
        TicketSnapshot(id="A", created_at=paris(6, 10), priority="urgent"),
        TicketSnapshot(id="B", created_at=paris(7, 10, 30), priority="urgent"),
        TicketSnapshot(id="C", created_at=paris(7, 10), priority="low"),
        TicketSnapshot(
            id="D", created_at=paris(6, 10), priority="urgent", status=TicketStatus.RESOLVED
        ),
        {"id": "E", "created_at": datetime(2025, 10, 7, 10, 0), "priority": "high"},
    ]


# ---------------------------------------------------------------------------
# evaluate / evaluate_many
# ---------------------------------------------------------------------------


def test_evaluate_snapshot(service):
    view = service.evaluate(TicketSnapshot(id=1, created_at=paris(6, 10), priority="urgent"),
                            paris(6, 11))
    assert view.ticket_id == "1"
    assert view.deadline == paris(6, 12)
    assert view.threshold_hours == 2
    assert view.elapsed_business_hours == 1
    assert view.progress_percent == 50
    assert view.delay_class == DelayClass.OK
    assert view.css_class == "delay-ok"
    assert view.countdown_label == "1h restantes"
    assert not view.overdue


def test_evaluate_mapping_ticket(service):
    ticket = {"id": 7, "created_at": paris(6, 10), "priority": "urgent", "client_id": None}
    view = service.evaluate(ticket, paris(6, 13))
    assert view.ticket_id == "7"
    assert view.overdue
    assert view.delay_class == DelayClass.CRITICAL
    assert view.countdown_label == "En retard de 1h"


def test_client_override_applies(service):
    ticket = TicketSnapshot(id="X", created_at=paris(6, 10), priority="urgent", client_id=17)
    view = service.evaluate(ticket, paris(6, 10, 30))
    assert view.client_id == "17"
    assert view.threshold_hours == 1
    assert view.deadline == paris(6, 11)


def test_thresholds_for_client(service):
    assert service.thresholds_for_client("17").require("urgent") == 1
    assert service.thresholds_for_client("42").require("urgent") == 2


def test_evaluate_many_marks_broken_tickets_unknown(service):
    tickets = [
        {"id": "ok", "created_at": paris(6, 10), "priority": "normal"},
        {"id": "naive", "created_at": datetime(2025, 10, 6, 10), "priority": "normal"},
        {"id": "missing", "priority": "urgent"},
    ]
    views = service.evaluate_many(tickets, paris(6, 12))

    assert [v.ticket_id for v in views] == ["ok", "naive", "missing"]
    assert not views[0].is_unknown
    for view in views[1:]:
        assert view.is_unknown
        assert view.delay_class == DelayClass.UNKNOWN
        assert view.css_class == "delay-unknown"
        assert view.countdown_label == "indéterminé"
        assert view.deadline is None
        assert view.error
    assert views[2].priority == "urgent"


def test_unknown_priority_uses_normal_threshold(service):
    view = service.evaluate({"id": 1, "created_at": paris(6, 9), "priority": "vip"}, paris(6, 10))
    assert view.threshold_hours == 24
    assert view.priority == "vip"


# ---------------------------------------------------------------------------
# configuration
# ---------------------------------------------------------------------------


def test_calendar_from_config_wins_over_default():
    config = SLAConfig(business_hours=BusinessHoursConfig(start_hour=8, end_hour=12))
    service = SLAService(
        StaticConfigProvider(config),
        default_calendar=BusinessCalendarConfig(start_hour=10, end_hour=16),
    )
    assert service.calendar.hours_per_day == 4
    assert service.calendar.is_business_time(paris(6, 8, 30))


def test_default_calendar_used_without_config_calendar():
    service = SLAService(
        StaticConfigProvider(SLAConfig()),
        default_calendar=BusinessCalendarConfig(start_hour=10, end_hour=16),
    )
    assert service.calendar.hours_per_day == 6


def test_invalid_config_calendar_raises():
    config = SLAConfig(business_hours=BusinessHoursConfig(timezone="Nowhere/Land"))
    with pytest.raises(ConfigurationError):
        SLAService(StaticConfigProvider(config)).get_clock()


def test_clock_is_rebuilt_when_config_changes():
    class SwappableProvider(StaticConfigProvider):
        def swap(self, config):
            self._config = config

    provider = SwappableProvider(SLAConfig())
    service = SLAService(provider)
    first = service.get_clock()
    assert service.get_clock() is first

    provider.swap(SLAConfig(thresholds={"urgent": 4}))
    assert service.get_clock() is not first
    assert service.get_clock().thresholds.require("urgent") == 4


def test_warning_lead_hours_precedence():
    assert SLAService(StaticConfigProvider(), default_warning_lead_hours=3).warning_lead_hours == 3
    config = SLAConfig(warning_lead_hours=1)
    assert SLAService(StaticConfigProvider(config), default_warning_lead_hours=3).warning_lead_hours == 1


# ---------------------------------------------------------------------------
# is_sla_overdue / scan
# ---------------------------------------------------------------------------


def test_is_sla_overdue_only_during_business_hours(service):
    deadline = paris(10, 12)
    assert service.is_sla_overdue(deadline, paris(10, 13))
    assert not service.is_sla_overdue(deadline, paris(10, 11))
    # Saturday: deadline passed but nobody is on duty
    assert not service.is_sla_overdue(deadline, paris(11, 10))


def test_scan_flags_overdue_and_at_risk_tickets(service, tickets):
    result = service.scan(tickets, paris(7, 11))

    assert result.in_business_hours
    assert result.tickets_scanned == 4
    assert [v.ticket_id for v in result.overdue] == ["A"]
    assert [v.ticket_id for v in result.warning] == ["B"]
    assert [(a.alert_type, a.ticket.ticket_id) for a in result.alerts] == [
        ("overdue", "A"),
        ("warning", "B"),
    ]


def test_scan_suspended_outside_business_hours(service, tickets):
    result = service.scan(tickets, paris(11, 11))
    assert not result.in_business_hours
    assert result.tickets_scanned == 0
    assert result.alerts == []


def test_scan_warning_horizon_follows_config(tickets):
    service = SLAService(StaticConfigProvider(SLAConfig(warning_lead_hours=0.5)))
    result = service.scan(tickets, paris(7, 11))
    assert [v.ticket_id for v in result.overdue] == ["A"]
    assert result.warning == []
