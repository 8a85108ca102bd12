"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import BusinessHours, ServiceInfo


class BusinessHoursConfig(BaseModel):
    """Opening hours of the workshop."""
    open_hour: int = 9
    close_hour: int = 18
    slot_granularity_minutes: int = 60
    allow_overrun_past_close: bool = True

    @field_validator("open_hour", "close_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("slot_granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Only hourly slots are supported."""
        if value != 60:
            raise ValueError(f"slot_granularity_minutes must be 60, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "BusinessHoursConfig":
        """Ensure the workshop opens before it closes."""
        if self.close_hour <= self.open_hour:
            raise ValueError("close_hour must be later than open_hour")
        return self

    def to_business_hours(self) -> BusinessHours:
        return BusinessHours(
            open_hour=self.open_hour,
            close_hour=self.close_hour,
            slot_granularity_minutes=self.slot_granularity_minutes,
            allow_overrun_past_close=self.allow_overrun_past_close,
        )


class BookingConfig(BaseModel):
    """Booking policy."""
    min_lead_days: int = 1  # earliest bookable date is tomorrow

    @field_validator("min_lead_days")
    @classmethod
    def validate_lead_days(cls, value: int) -> int:
        if value < 0:
            raise ValueError("min_lead_days must not be negative")
        return value


class StorageConfig(BaseModel):
    """Where bookings live."""
    backend: Literal["memory", "sql"] = "sql"
    url: str = "sqlite:///bikeslots.db"
    echo: bool = False


class ServiceEntry(BaseModel):
    """Catalog seed entry."""
    id: int
    name: str
    duration_minutes: int
    price: int = 0
    category: str = ""
    description: str = ""
    is_active: bool = True

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    def to_service_info(self) -> ServiceInfo:
        return ServiceInfo(
            id=self.id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            is_active=self.is_active,
            price=self.price,
            category=self.category,
            description=self.description,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    booking: BookingConfig = Field(default_factory=BookingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    timezone: str = "Asia/Kolkata"
    log_level: str = "INFO"
    services: List[ServiceEntry] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceEntry]) -> List[ServiceEntry]:
        """Ensure service ids are unique."""
        seen_ids: set[int] = set()
        for service in value:
            if service.id in seen_ids:
                raise ValueError(f"Duplicate service id detected: {service.id}")
            seen_ids.add(service.id)
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

    @classmethod
    def load_or_default(cls, config_path: Path) -> "AppConfig":
        """Load the config file if present, otherwise use built-in defaults."""
        if config_path.exists():
            return cls.load_from_yaml(config_path)
        return cls()


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
