"""
SAV SLA Engine
==============

Business-hours SLA deadline engine for a support-ticket application.

Clean Architecture Layers:
- Domain: business calendar, SLA clock, value objects
- Application: ticket evaluation and monitoring scans
- Infrastructure: YAML configuration, file watching, scheduling
"""

__version__ = "1.0.0"
