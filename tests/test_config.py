"""
Tests for YAML configuration loading and validation.
"""

from datetime import time

import pytest
from pydantic import ValidationError

from salonbook.config import AppConfig, BreakConfig, PolicyConfig, SlotConfig, SupabaseConfig


def test_defaults():
    config = AppConfig()

    assert config.timezone == "Africa/Lagos"
    assert config.salon_name == "Modern Beauty Studio"
    assert config.slots.interval_minutes == 30
    assert config.policy.to_policy().max_days_ahead == 90
    assert config.supabase is None
    assert config.email is None


def test_load_from_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
timezone: Europe/London
slots:
  interval_minutes: 15
  breaks:
    - start: "13:00"
      end: "14:00"
policy:
  min_advance_minutes: 120
supabase:
  url: https://demo.supabase.co/
  service_role_key: key
email:
  host: smtp.example.com
  from_address: bookings@example.com
""",
        encoding="utf-8",
    )

    config = AppConfig.load_from_yaml(config_path)

    assert config.timezone == "Europe/London"
    assert config.policy.min_advance_minutes == 120
    assert config.supabase.url == "https://demo.supabase.co"
    assert config.email.port == 587
    assert config.email.max_retries == 3

    calculator = config.slots.build_calculator()
    assert calculator.interval_minutes == 15
    assert calculator.breaks[0].start_time == time(13, 0)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_yaml(tmp_path / "config.yaml")


def test_yaml_must_be_mapping(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        AppConfig.load_from_yaml(config_path)


def test_invalid_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("slots: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        AppConfig.load_from_yaml(config_path)


def test_unknown_timezone():
    with pytest.raises(ValidationError):
        AppConfig(timezone="Mars/Olympus_Mons")


def test_unsupported_interval():
    with pytest.raises(ValidationError):
        SlotConfig(interval_minutes=20)


@pytest.mark.parametrize("start,end", [("14:00", "13:00"), ("13:00", "13:00"), ("1pm", "2pm")])
def test_invalid_break(start, end):
    with pytest.raises(ValidationError):
        BreakConfig(start=start, end=end)


def test_business_hours_must_be_ordered():
    with pytest.raises(ValidationError):
        PolicyConfig(business_start_hour=18, business_end_hour=9)

    with pytest.raises(ValidationError):
        PolicyConfig(business_end_hour=24)


def test_service_role_key_from_environment(monkeypatch):
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "from-env")

    config = SupabaseConfig(url="https://demo.supabase.co")

    assert config.service_role_key == "from-env"


def test_supabase_url_must_be_http():
    with pytest.raises(ValidationError):
        SupabaseConfig(url="demo.supabase.co", service_role_key="key")
