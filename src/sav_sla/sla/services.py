"""
SLA Monitoring
==============

Periodic SLA monitoring: pull open tickets, scan them and hand every
overdue or at-risk ticket to an alert callback (e-mail, chat, ...).

Each ticket is alerted once per alert type. The record of sent alerts
forgets a ticket once it is no longer flagged (resolved, closed, or back
within its SLA after a threshold change), so a later breach alerts again.
"""

import asyncio
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Set, Tuple

from sav_sla.config import AlertType
from sav_sla.shared.infrastructure.logging import get_context_logger
from sav_sla.sla.application import SLAAlertDTO, SLAScanResult, SLAService
from sav_sla.sla.application.services import TicketLike

TicketSource = Callable[[], Iterable[TicketLike]]
AlertCallback = Callable[[SLAAlertDTO], None]
AlertKey = Tuple[str, str]


class SLAMonitor:
    """
    Scans tickets for SLA breaches and dispatches alerts.

    This service:
    1. Fetches tickets from the ticket source
    2. Scans them (suspended outside business hours)
    3. Dispatches one alert per overdue or warning ticket not alerted yet
    """

    def __init__(
        self,
        service: SLAService,
        ticket_source: TicketSource,
        alert_callback: Optional[AlertCallback] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    ):
        self._service = service
        self._ticket_source = ticket_source
        self._alert_callback = alert_callback
        self._clock = clock
        self._notified: Set[AlertKey] = set()
        self._lock = threading.Lock()

    @property
    def notified(self) -> Set[AlertKey]:
        """(ticket_id, alert_type) pairs already alerted."""
        with self._lock:
            return set(self._notified)

    def check(self, now: Optional[datetime] = None) -> dict:
        """
        Run one monitoring pass.

        Returns:
            Summary of the pass
        """
        correlation_id = str(uuid.uuid4())
        logger = get_context_logger(__name__, correlation_id)
        now = now or self._clock()

        result: SLAScanResult = self._service.scan(self._ticket_source(), now)
        summary = {
            "correlation_id": correlation_id,
            "in_business_hours": result.in_business_hours,
            "tickets_scanned": result.tickets_scanned,
            "alerts_sent": 0,
            "alerts_failed": 0,
            "alerts_suppressed": 0,
        }
        if not result.in_business_hours:
            logger.info("SLA check skipped outside business hours")
            return summary

        with self._lock:
            alerts = result.alerts
            flagged = {(a.ticket.ticket_id, a.alert_type) for a in alerts}
            self._notified &= flagged

            for alert in alerts:
                key = (alert.ticket.ticket_id, alert.alert_type)
                if key in self._notified:
                    summary["alerts_suppressed"] += 1
                elif self._dispatch(alert, logger):
                    self._notified.add(key)
                    summary["alerts_sent"] += 1
                else:
                    summary["alerts_failed"] += 1

        logger.info(
            "SLA check finished",
            extra={
                "tickets_scanned": result.tickets_scanned,
                AlertType.OVERDUE: len(result.overdue),
                AlertType.WARNING: len(result.warning),
                "alerts_sent": summary["alerts_sent"],
                "alerts_failed": summary["alerts_failed"],
                "alerts_suppressed": summary["alerts_suppressed"],
            }
        )
        return summary

    async def run(self) -> dict:
        """Scheduler entry point; the pass runs in a worker thread."""
        return await asyncio.to_thread(self.check)

    def _dispatch(self, alert: SLAAlertDTO, logger) -> bool:
        if self._alert_callback is None:
            logger.info(
                "SLA alert",
                extra={"alert_type": alert.alert_type, "ticket_id": alert.ticket.ticket_id}
            )
            return True

        try:
            self._alert_callback(alert)
        except Exception:
            # One failing alert must not stop the rest of the pass
            logger.exception(
                "SLA alert dispatch failed",
                extra={"alert_type": alert.alert_type, "ticket_id": alert.ticket.ticket_id}
            )
            return False
        return True
