"""
SLA Module
==========

Business-hours SLA engine for support tickets.

Responsibilities:
- Evaluate instants against a configurable work calendar
- Project SLA deadlines in business hours from a ticket's creation instant
- Produce countdowns and ok / warning / critical classifications
- Resolve per-client threshold overrides
- Scan open tickets for overdue and at-risk SLAs
"""

__version__ = "1.0.0"
