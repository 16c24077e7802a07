"""
SAV SLA Engine - Bootstrap
==========================

Wires settings, configuration file, service and monitoring scheduler
together for host applications.

Usage:
    engine = create_engine_from_settings()
    views = engine.service.evaluate_many(tickets, now)

    async with monitoring(ticket_source, send_alert) as monitor:
        ...  # host application runs here
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from sav_sla.config import Settings, get_settings
from sav_sla.shared.infrastructure.logging import setup_logging, get_logger
from sav_sla.sla.application import SLAService
from sav_sla.sla.domain import BusinessCalendarConfig
from sav_sla.sla.infrastructure import SLAConfigManager, SLAScheduler
from sav_sla.sla.services import AlertCallback, SLAMonitor, TicketSource

logger = get_logger(__name__)


@dataclass
class SLAEngine:
    """Configured engine components."""
    config_manager: SLAConfigManager
    service: SLAService


def calendar_config_from_settings(settings: Settings) -> BusinessCalendarConfig:
    """Business calendar described by environment settings."""
    return BusinessCalendarConfig.from_values(
        settings.business_hours_start,
        settings.business_hours_end,
        settings.business_days,
        settings.business_timezone,
    )


def create_engine_from_settings(
    settings: Optional[Settings] = None,
    watch: bool = False
) -> SLAEngine:
    """
    Build the SLA engine from settings.

    The YAML file's calendar wins over the environment one when it
    defines one. Invalid configuration fails here, before any ticket is
    evaluated.
    """
    settings = settings or get_settings()

    default_calendar = calendar_config_from_settings(settings)

    logger.info("Loading SLA configuration", extra={"path": str(settings.sla_config_path)})
    config_manager = SLAConfigManager()
    config_manager.load(settings.sla_config_path)
    if watch:
        config_manager.start_watching()

    service = SLAService(
        config_manager,
        default_calendar=default_calendar,
        default_warning_lead_hours=settings.sla_warning_lead_hours,
    )
    # Build the clock now so a bad calendar surfaces at startup
    service.get_clock()

    return SLAEngine(config_manager=config_manager, service=service)


@asynccontextmanager
async def monitoring(
    ticket_source: TicketSource,
    alert_callback: Optional[AlertCallback] = None,
    settings: Optional[Settings] = None
) -> AsyncGenerator[SLAMonitor, None]:
    """
    Monitoring lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load SLA configuration and watch it
    3. Start SLA scheduler

    SHUTDOWN:
    1. Stop SLA scheduler
    2. Stop config watcher
    """
    settings = settings or get_settings()

    # === STARTUP ===
    setup_logging(
        "DEBUG" if settings.debug else settings.log_level,
        settings.environment,
        settings.app_name,
    )
    logger.info("Starting SLA monitoring", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    engine = create_engine_from_settings(settings, watch=True)
    monitor = SLAMonitor(engine.service, ticket_source, alert_callback)

    sla_scheduler = SLAScheduler(interval_seconds=settings.sla_evaluation_interval)
    await sla_scheduler.start(monitor.run)

    try:
        yield monitor
    finally:
        # === SHUTDOWN ===
        logger.info("Shutting down SLA monitoring")
        await sla_scheduler.stop()
        engine.config_manager.stop_watching()
