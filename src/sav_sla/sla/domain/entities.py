"""
SLA Domain Entities
====================

Pure Python domain entities for SLA tracking.

The engine never owns tickets: callers hand it a snapshot of the fields
the SLA clock needs.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sav_sla.config import CLOSED_STATUSES, Priority, TicketStatus
from sav_sla.sla.domain.calendar import ensure_aware


@dataclass(frozen=True)
class TicketSnapshot:
    """Read-only view of a support ticket as seen by the SLA clock."""

    id: str
    created_at: datetime
    priority: str = Priority.NORMAL
    status: str = TicketStatus.OPEN
    client_id: Optional[str] = None
    title: str = ""

    def __post_init__(self):
        """Normalise identifiers and reject naive timestamps."""
        object.__setattr__(self, "id", str(self.id))
        if self.client_id is not None:
            object.__setattr__(self, "client_id", str(self.client_id))
        object.__setattr__(self, "created_at", ensure_aware(self.created_at, "created_at"))

    @property
    def is_open(self) -> bool:
        """Check if ticket is still open."""
        return self.status not in CLOSED_STATUSES
