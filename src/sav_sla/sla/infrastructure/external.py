"""
SLA Configuration & Scheduling Adapters
=======================================

- SLAConfigManager: YAML-backed config provider with hot reload
- ConfigFileHandler: watchdog bridge triggering reloads
- SLAScheduler: APScheduler wrapper running the monitoring pass
"""

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Tuple

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from sav_sla.core.exceptions import ConfigurationError
from sav_sla.shared.infrastructure.logging import get_logger
from sav_sla.sla.application.services import ISLAConfigProvider
from sav_sla.sla.domain import BusinessCalendar, SLAConfig

logger = get_logger(__name__)

FileFingerprint = Optional[Tuple[int, int]]


def parse_sla_config(text: str, source: str = "<string>") -> SLAConfig:
    """
    Parse and fully validate a YAML SLA document.

    An empty document yields the default configuration.

    Raises:
        ConfigurationError: on YAML syntax errors, schema violations or an
            unusable business calendar
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {source}: {e}", {"source": source}) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"SLA config must be a mapping, got {type(data).__name__}",
            {"source": source}
        )

    try:
        config = SLAConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid SLA config in {source}",
            {"source": source, "errors": e.errors(include_url=False)}
        ) from e

    # Hour ordering, work days and timezone are only checked by the calendar
    BusinessCalendar(config.get_calendar_config())
    return config


class ConfigFileHandler(FileSystemEventHandler):
    """Reloads the manager when its config file is written or replaced."""

    def __init__(self, config_manager: "SLAConfigManager", config_path: Path):
        super().__init__()
        self.config_manager = config_manager
        self.config_path = config_path.resolve()

    def _targets_config(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and Path(p).resolve() == self.config_path for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in ("modified", "created", "moved"):
            return
        if self._targets_config(event):
            logger.debug("SLA config file event", extra={"event": event.event_type})
            self.config_manager.reload()


class SLAConfigManager(ISLAConfigProvider):
    """
    Thread-safe holder of the current SLAConfig.

    The config is swapped atomically on reload, so readers see either the
    old or the new snapshot, never a partial one. A file that fails
    validation on reload leaves the current snapshot in place.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._config: Optional[SLAConfig] = None
        self._path: Optional[Path] = None
        self._fingerprint: FileFingerprint = None
        self._generation = 0
        self._observer = None

    # ========== Loading ==========

    def load(self, path: Path) -> SLAConfig:
        """
        Initial load. A missing file means default configuration.

        Raises:
            ConfigurationError: if the file is not a valid SLA configuration
        """
        self._path = Path(path)
        config, fingerprint = self._read(self._path)
        self._install(config, fingerprint)
        return config

    def reload(self, force: bool = False) -> bool:
        """
        Re-read the file.

        Returns True when a new snapshot was installed. Unchanged files are
        skipped unless ``force`` is set.
        """
        if self._path is None:
            return False

        if not force and self._fingerprint_of(self._path) == self._fingerprint:
            return False

        try:
            config, fingerprint = self._read(self._path)
        except (ConfigurationError, OSError) as e:
            logger.error(
                "SLA config reload rejected, keeping current configuration",
                extra={"path": str(self._path), "error": str(e)}
            )
            return False

        self._install(config, fingerprint)
        logger.info(
            "SLA configuration reloaded",
            extra={"path": str(self._path), "generation": self._generation}
        )
        return True

    @staticmethod
    def _fingerprint_of(path: Path) -> FileFingerprint:
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def _read(self, path: Path) -> Tuple[SLAConfig, FileFingerprint]:
        fingerprint = self._fingerprint_of(path)
        if fingerprint is None:
            logger.warning("SLA config file not found, using defaults", extra={"path": str(path)})
            return SLAConfig(), None
        return parse_sla_config(path.read_text(encoding="utf-8"), str(path)), fingerprint

    def _install(self, config: SLAConfig, fingerprint: FileFingerprint) -> None:
        with self._lock:
            self._config = config
            self._fingerprint = fingerprint
            self._generation += 1

    # ========== Watching ==========

    def start_watching(self) -> None:
        """
        Watch the config file's directory for changes.

        Nothing is watched when the file does not exist; deployments without
        a file run on environment settings and built-in defaults.
        """
        if self._path is None:
            raise RuntimeError("SLA configuration not loaded; call load() first")
        if self._observer is not None:
            return
        if not self._path.exists():
            logger.info("No SLA config file to watch", extra={"path": str(self._path)})
            return

        observer = Observer()
        observer.schedule(
            ConfigFileHandler(self, self._path),
            str(self._path.resolve().parent),
            recursive=False
        )
        try:
            observer.start()
        except OSError as e:
            logger.warning(
                "File watching unavailable, SLA config is static",
                extra={"path": str(self._path), "error": str(e)}
            )
            return

        self._observer = observer
        logger.info("Watching SLA config file", extra={"path": str(self._path)})

    def stop_watching(self) -> None:
        """Stop the watcher; no-op when not watching."""
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    # ========== Provider ==========

    @property
    def generation(self) -> int:
        """Number of snapshots installed so far."""
        return self._generation

    @property
    def config(self) -> SLAConfig:
        with self._lock:
            config = self._config
        if config is None:
            raise RuntimeError("SLA configuration not loaded; call load() first")
        return config

    def get_config(self) -> SLAConfig:
        return self.config


class SLAScheduler:
    """
    Runs the monitoring pass on a fixed interval inside the asyncio loop.

    One job, never overlapping itself. By default the first pass runs as
    soon as the scheduler starts.
    """

    JOB_ID = "sla_monitoring"

    def __init__(self, interval_seconds: int = 900, run_immediately: bool = True):
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self._scheduler: Optional[AsyncIOScheduler] = None

    async def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        if self.is_running:
            logger.warning("SLA scheduler already running")
            return

        scheduler = AsyncIOScheduler(timezone=timezone.utc)
        job_options = {}
        if self.run_immediately:
            job_options["next_run_time"] = datetime.now(timezone.utc)
        scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            name="SLA monitoring pass",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
            replace_existing=True,
            **job_options
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            "SLA scheduler started",
            extra={
                "interval_seconds": self.interval_seconds,
                "run_immediately": self.run_immediately,
            }
        )

    async def stop(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return
        scheduler.shutdown(wait=True)
        logger.info("SLA scheduler stopped")

    def get_job(self):
        """The monitoring job while the scheduler runs, else None."""
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(self.JOB_ID)

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None
