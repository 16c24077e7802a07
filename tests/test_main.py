"""Tests for engine bootstrap from settings."""

import asyncio

import pytest

from sav_sla import main
from sav_sla.config import Settings
from sav_sla.core.exceptions import ConfigurationError
from sav_sla.main import calendar_config_from_settings, create_engine_from_settings, monitoring
from tests.conftest import paris


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        business_hours_start=8,
        business_hours_end=16,
        business_days=[1, 2, 3, 4],
        sla_config_path=tmp_path / "sla_config.yaml",
        sla_warning_lead_hours=3,
    )


def test_calendar_config_from_settings(settings):
    config = calendar_config_from_settings(settings)
    assert (config.start_hour, config.end_hour) == (8, 16)
    assert config.work_days == frozenset({1, 2, 3, 4})
    assert config.timezone == "Europe/Paris"


def test_engine_uses_settings_calendar_without_file(settings):
    engine = create_engine_from_settings(settings)

    assert engine.service.calendar.hours_per_day == 8
    assert not engine.service.calendar.is_business_time(paris(10, 10))
    assert engine.service.warning_lead_hours == 3
    assert not engine.config_manager.is_watching


def test_engine_prefers_file_calendar(settings):
    settings.sla_config_path.write_text(
        "business_hours:\n  start_hour: 10\n  end_hour: 19\nwarning_lead_hours: 1\n",
        encoding="utf-8",
    )
    engine = create_engine_from_settings(settings)

    assert engine.service.calendar.hours_per_day == 9
    assert engine.service.calendar.is_business_time(paris(10, 18, 30))
    assert engine.service.warning_lead_hours == 1


def test_engine_rejects_invalid_settings_calendar(tmp_path):
    settings = Settings(
        business_hours_start=18,
        business_hours_end=9,
        sla_config_path=tmp_path / "sla_config.yaml",
    )
    with pytest.raises(ConfigurationError):
        create_engine_from_settings(settings)


def test_monitoring_lifespan(settings, monkeypatch):
    logging_calls = []
    monkeypatch.setattr(main, "setup_logging", lambda *args: logging_calls.append(args))
    settings.sla_config_path.write_text("thresholds:\n  urgent: 1\n", encoding="utf-8")

    async def scenario():
        async with monitoring(lambda: [], settings=settings) as monitor:
            summary = monitor.check(paris(7, 10))
            assert summary["tickets_scanned"] == 0
            return monitor

    monitor = asyncio.run(scenario())
    assert monitor is not None
    assert logging_calls == [("INFO", "development", "sav-sla-engine")]
