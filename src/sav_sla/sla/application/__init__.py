"""
SLA Application Layer
======================

Application layer for the SLA engine.

Contains:
- Services: Evaluate tickets and run monitoring scans
- DTOs: Views handed to ticket-rendering components

This layer depends on the domain layer and the config provider interface,
but not on concrete infrastructure implementations.
"""

from sav_sla.sla.application.dto import (
    CountdownDTO,
    TicketSLAView,
    SLAAlertDTO,
    SLAScanResult,
)
from sav_sla.sla.application.services import (
    SLAService,
    ISLAConfigProvider,
    StaticConfigProvider,
)

__all__ = [
    # DTOs
    "CountdownDTO",
    "TicketSLAView",
    "SLAAlertDTO",
    "SLAScanResult",
    # Services
    "SLAService",
    # Config Provider Interface
    "ISLAConfigProvider",
    "StaticConfigProvider",
]
