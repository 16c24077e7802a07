"""
SLA Infrastructure Layer
=========================

Adapters around the SLA engine:
- YAML configuration parsing, hot reload and file watching
- Interval scheduling of the monitoring pass
"""

from sav_sla.sla.infrastructure.external import (
    ConfigFileHandler,
    SLAConfigManager,
    SLAScheduler,
    parse_sla_config,
)

__all__ = [
    "ConfigFileHandler",
    "SLAConfigManager",
    "SLAScheduler",
    "parse_sla_config",
]
