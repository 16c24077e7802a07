"""
Structured Logging
==================

JSON log lines for the SLA engine.

Every record carries the service name, the environment and, during a
monitoring pass, the pass correlation id so all lines of one scan can be
grouped together.

Usage:
    from sav_sla.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("SLA scan finished", extra={"overdue": 2})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("apscheduler", "watchdog")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping service context onto every record."""

    def __init__(
        self,
        *args: Any,
        environment: str = "unknown",
        service: str = "sav-sla-engine",
        **kwargs: Any
    ):
        self.environment = environment
        self.service = service
        super().__init__(*args, **kwargs)

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        correlation_id = getattr(record, "correlation_id", None) or message_dict.get("correlation_id")
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        log_record["service"] = self.service
        log_record["environment"] = getattr(record, "environment", self.environment)


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    service: str = "sav-sla-engine",
) -> None:
    """
    Route all logging to stdout as JSON lines.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR)
        environment: Deployment environment stamped on each line
        service: Service name stamped on each line
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(CustomJsonFormatter(
        LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        environment=environment,
        service=service,
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass ``__name__``."""
    return logging.getLogger(name)


def get_context_logger(name: str, correlation_id: str | None = None):
    """
    Logger bound to a monitoring pass.

    Returns a LoggerAdapter adding ``correlation_id`` to every record, or
    the plain logger when no id is given.
    """
    logger = get_logger(name)
    if not correlation_id:
        return logger
    return logging.LoggerAdapter(logger, {"correlation_id": correlation_id})


@contextmanager
def log_latency(logger, operation: str, **context: Any) -> Iterator[None]:
    """
    Log how long the wrapped block took, in milliseconds.

    Usage:
        with log_latency(logger, "sla_scan", tickets=len(tickets)):
            ...
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            f"{operation} completed",
            extra={"operation": operation, "latency_ms": elapsed_ms, **context},
        )
