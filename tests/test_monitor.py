"""Tests for the monitoring pass that dispatches SLA alerts."""

import asyncio
import threading

import pytest

from sav_sla.core.exceptions import ApplicationException
from sav_sla.sla.domain import TicketSnapshot
from sav_sla.sla.services import SLAMonitor
from tests.conftest import paris


@pytest.fixture
def ticket_source():
    tickets = [
        TicketSnapshot(id="late", created_at=paris(6, 10), priority="urgent"),
        TicketSnapshot(id="soon", created_at=paris(7, 10, 30), priority="urgent"),
        TicketSnapshot(id="fine", created_at=paris(7, 10), priority="low"),
    ]
    return lambda: list(tickets)


def test_check_dispatches_alerts(service, ticket_source):
    received = []
    monitor = SLAMonitor(service, ticket_source, received.append)

    summary = monitor.check(paris(7, 11))

    assert summary["in_business_hours"]
    assert summary["tickets_scanned"] == 3
    assert summary["alerts_sent"] == 2
    assert summary["alerts_failed"] == 0
    assert summary["correlation_id"]
    assert [(a.alert_type, a.ticket.ticket_id) for a in received] == [
        ("overdue", "late"),
        ("warning", "soon"),
    ]


def test_failing_callback_is_counted(service, ticket_source):
    def flaky(alert):
        if alert.alert_type == "overdue":
            raise OSError("SMTP unreachable")

    summary = SLAMonitor(service, ticket_source, flaky).check(paris(7, 11))
    assert summary["alerts_sent"] == 1
    assert summary["alerts_failed"] == 1


def test_application_errors_from_callback_are_counted(service, ticket_source):
    def reject(alert):
        raise ApplicationException("recipient unknown")

    summary = SLAMonitor(service, ticket_source, reject).check(paris(7, 11))
    assert summary["alerts_sent"] == 0
    assert summary["alerts_failed"] == 2


def test_check_without_callback_logs_alerts(service, ticket_source):
    summary = SLAMonitor(service, ticket_source).check(paris(7, 11))
    assert summary["alerts_sent"] == 2


def test_check_outside_business_hours(service, ticket_source):
    received = []
    summary = SLAMonitor(service, ticket_source, received.append).check(paris(7, 20))
    assert summary["in_business_hours"] is False
    assert summary["alerts_sent"] == 0
    assert received == []


def test_run_uses_injected_clock(service, ticket_source):
    received = []
    monitor = SLAMonitor(service, ticket_source, received.append, clock=lambda: paris(7, 11))

    summary = asyncio.run(monitor.run())

    assert summary["alerts_sent"] == 2
    assert len(received) == 2


def test_alert_sent_once_across_passes(service, ticket_source):
    received = []
    monitor = SLAMonitor(service, ticket_source, received.append)

    first = monitor.check(paris(7, 11))
    second = monitor.check(paris(7, 11, 15))

    assert first["alerts_sent"] == 2
    assert second["alerts_sent"] == 0
    assert second["alerts_suppressed"] == 2
    assert [(a.alert_type, a.ticket.ticket_id) for a in received] == [
        ("overdue", "late"),
        ("warning", "soon"),
    ]


def test_warning_ticket_alerted_again_when_overdue(service, ticket_source):
    received = []
    monitor = SLAMonitor(service, ticket_source, received.append)

    monitor.check(paris(7, 11))
    # "soon" is due at 12:30 and has now passed it
    summary = monitor.check(paris(7, 13))

    assert summary["alerts_sent"] == 1
    assert (received[-1].alert_type, received[-1].ticket.ticket_id) == ("overdue", "soon")
    assert monitor.notified == {("late", "overdue"), ("soon", "overdue")}


def test_closed_ticket_is_forgotten(service):
    tickets = {"late": TicketSnapshot(id="late", created_at=paris(6, 10), priority="urgent")}
    received = []
    monitor = SLAMonitor(service, lambda: list(tickets.values()), received.append)

    monitor.check(paris(7, 11))
    tickets.clear()
    monitor.check(paris(7, 11, 15))
    assert monitor.notified == set()

    tickets["late"] = TicketSnapshot(id="late", created_at=paris(6, 10), priority="urgent")
    monitor.check(paris(7, 11, 30))
    assert len(received) == 2


def test_suppression_survives_off_hours_pass(service, ticket_source):
    received = []
    monitor = SLAMonitor(service, ticket_source, received.append)

    monitor.check(paris(7, 11))
    monitor.check(paris(7, 20))
    # Next morning: "late" stays suppressed, "soon" has become overdue
    summary = monitor.check(paris(8, 9))

    assert summary["alerts_suppressed"] == 1
    assert summary["alerts_sent"] == 1
    assert [(a.alert_type, a.ticket.ticket_id) for a in received[2:]] == [("overdue", "soon")]


def test_failed_alert_is_retried_next_pass(service, ticket_source):
    attempts = []

    def flaky(alert):
        attempts.append(alert.ticket.ticket_id)
        if len(attempts) == 1:
            raise OSError("SMTP unreachable")

    monitor = SLAMonitor(service, ticket_source, flaky)
    first = monitor.check(paris(7, 11))
    second = monitor.check(paris(7, 11, 15))

    assert (first["alerts_sent"], first["alerts_failed"]) == (1, 1)
    assert (second["alerts_sent"], second["alerts_suppressed"]) == (1, 1)
    assert attempts == ["late", "soon", "late"]


@pytest.mark.parametrize("error", [RuntimeError("webhook 500"), ValueError("bad payload")])
def test_unexpected_callback_error_does_not_abort_pass(service, ticket_source, error):
    received = []

    def callback(alert):
        if alert.alert_type == "overdue":
            raise error
        received.append(alert)

    summary = SLAMonitor(service, ticket_source, callback).check(paris(7, 11))

    assert summary["alerts_failed"] == 1
    assert summary["alerts_sent"] == 1
    assert [a.ticket.ticket_id for a in received] == ["soon"]


def test_run_executes_pass_off_the_event_loop_thread(service, ticket_source):
    source_threads = []

    def source():
        source_threads.append(threading.get_ident())
        return ticket_source()

    monitor = SLAMonitor(service, source, clock=lambda: paris(7, 11))

    async def scenario():
        loop_thread = threading.get_ident()
        summary = await monitor.run()
        return loop_thread, summary

    loop_thread, summary = asyncio.run(scenario())
    assert summary["alerts_sent"] == 2
    assert source_threads and source_threads[0] != loop_thread
