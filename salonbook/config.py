"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import BreakPeriod
from .domain.slot_calculator import SUPPORTED_INTERVALS, SlotCalculator
from .domain.times import TIME_PATTERN, parse_time
from .domain.validation import BookingPolicy


class BreakConfig(BaseModel):
    """A daily break during which no slots are offered."""
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError(f"Break times must be HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "BreakConfig":
        if parse_time(self.end) <= parse_time(self.start):
            raise ValueError("Break end must be later than break start")
        return self

    def to_period(self) -> BreakPeriod:
        return BreakPeriod(start_time=parse_time(self.start), end_time=parse_time(self.end))


class SlotConfig(BaseModel):
    """Slot grid settings."""
    interval_minutes: int = 30
    breaks: List[BreakConfig] = Field(default_factory=list)

    @field_validator("interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        """Only grid sizes that divide an hour are supported."""
        if value not in SUPPORTED_INTERVALS:
            raise ValueError(f"interval_minutes must be one of {SUPPORTED_INTERVALS}, got {value}")
        return value

    def build_calculator(self) -> SlotCalculator:
        return SlotCalculator(
            interval_minutes=self.interval_minutes,
            breaks=[item.to_period() for item in self.breaks],
        )


class PolicyConfig(BaseModel):
    """Booking rules applied before a reservation is accepted."""
    min_advance_minutes: int = 60
    max_days_ahead: int = 90
    business_start_hour: int = 9
    business_end_hour: int = 18

    @field_validator("min_advance_minutes", "max_days_ahead")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Value must not be negative")
        return value

    @field_validator("business_start_hour", "business_end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "PolicyConfig":
        """Ensure the salon opens before it closes."""
        if self.business_end_hour <= self.business_start_hour:
            raise ValueError("business_end_hour must be later than business_start_hour")
        return self

    def to_policy(self) -> BookingPolicy:
        return BookingPolicy(
            min_advance_minutes=self.min_advance_minutes,
            max_days_ahead=self.max_days_ahead,
            business_start_hour=self.business_start_hour,
            business_end_hour=self.business_end_hour,
        )


class SupabaseConfig(BaseModel):
    """Supabase project connection."""
    url: str
    service_role_key: str = Field(
        default_factory=lambda: os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
    )
    timeout_seconds: int = 10

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Supabase url must start with http:// or https://, got {value!r}")
        return value.rstrip("/")


class EmailConfig(BaseModel):
    """Outgoing mail relay and retry settings."""
    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = Field(default_factory=lambda: os.environ.get("SMTP_PASSWORD"))
    from_address: str
    use_tls: bool = True
    max_retries: int = 3
    base_delay_seconds: float = 1.0

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_retries must not be negative")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Africa/Lagos"
    salon_name: str = "Modern Beauty Studio"
    slots: SlotConfig = Field(default_factory=SlotConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    supabase: Optional[SupabaseConfig] = None
    email: Optional[EmailConfig] = None
    mock_data_file: Optional[Path] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except ValueError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
