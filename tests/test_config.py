"""
Tests for YAML configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from bikeslots.config import AppConfig, BusinessHoursConfig


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.business_hours.open_hour == 9
        assert config.business_hours.close_hour == 18
        assert config.booking.min_lead_days == 1
        assert config.storage.backend == "sql"
        assert config.timezone == "Asia/Kolkata"
        assert config.services == []

    def test_load_from_yaml(self, tmp_path):
        path = _write(
            tmp_path,
            """
business_hours:
  open_hour: 8
  close_hour: 20
  allow_overrun_past_close: false
booking:
  min_lead_days: 0
storage:
  backend: memory
log_level: debug
services:
  - id: 7
    name: Puncture Repair
    duration_minutes: 30
    price: 15000
""",
        )

        config = AppConfig.load_from_yaml(path)
        hours = config.business_hours.to_business_hours()

        assert hours.open_hour == 8
        assert hours.close_hour == 20
        assert not hours.allow_overrun_past_close
        assert config.booking.min_lead_days == 0
        assert config.storage.backend == "memory"
        assert config.log_level == "DEBUG"
        assert config.services[0].to_service_info().name == "Puncture Repair"

    def test_empty_file_uses_defaults(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, ""))

        assert config == AppConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            AppConfig.load_from_yaml(tmp_path / "absent.yaml")

    def test_load_or_default_without_file(self, tmp_path):
        assert AppConfig.load_or_default(tmp_path / "absent.yaml") == AppConfig()

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(_write(tmp_path, "business_hours: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write(tmp_path, "- just\n- a list\n"))

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            AppConfig(storage={"backend": "redis"})

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            AppConfig(log_level="chatty")

    def test_duplicate_service_ids(self):
        entry = {"id": 1, "name": "Wash", "duration_minutes": 30}

        with pytest.raises(ValidationError, match="Duplicate service id"):
            AppConfig(services=[entry, entry])

    def test_negative_lead_days(self):
        with pytest.raises(ValidationError):
            AppConfig(booking={"min_lead_days": -1})


class TestBusinessHoursConfig:
    """Tests for opening hour validation."""

    def test_close_before_open(self):
        with pytest.raises(ValidationError, match="close_hour must be later"):
            BusinessHoursConfig(open_hour=18, close_hour=9)

    def test_hour_out_of_range(self):
        with pytest.raises(ValidationError, match="between 0 and 24"):
            BusinessHoursConfig(open_hour=9, close_hour=25)

    def test_only_hourly_slots(self):
        with pytest.raises(ValidationError):
            BusinessHoursConfig(slot_granularity_minutes=30)

    def test_zero_duration_service(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            AppConfig(services=[{"id": 1, "name": "Nothing", "duration_minutes": 0}])
