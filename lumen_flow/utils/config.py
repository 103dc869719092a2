"""Configuration management with YAML support and Pydantic validation."""

from datetime import time
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lumen_flow.nudges.kinds import DEFAULT_SUPPRESSION_WINDOWS, RuleKind


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = Field(default="sqlite:///lumen_flow.db", description="Database connection URL")
    echo: bool = Field(default=False, description="Echo SQL statements for debugging")
    statement_timeout_seconds: int = Field(
        default=10, ge=1, description="Per-query timeout applied at connection level"
    )


class NudgeConfig(BaseModel):
    """Nudge evaluator configuration."""

    enabled: bool = Field(default=True, description="Enable the scheduled nudge evaluator")
    timezone: str = Field(
        default="Australia/Melbourne",
        description="IANA time zone used for quiet hours and the daily focus window",
    )
    interval_minutes: int = Field(default=30, ge=1, description="Scheduler interval")
    run_deadline_seconds: int = Field(
        default=300, ge=1, description="Stop evaluating users once a run exceeds this"
    )
    suppression_windows: dict[RuleKind, int] = Field(
        default_factory=lambda: dict(DEFAULT_SUPPRESSION_WINDOWS),
        description="Duplicate suppression window in hours, per rule",
    )

    # Project deadline rule
    deadline_horizon_days: int = Field(default=3, ge=0)
    critical_deadline_days: int = Field(default=1, ge=0)

    # Task overdue rule
    critical_overdue_hours: int = Field(default=24, ge=0)

    # Stale project rule
    stale_after_days: int = Field(default=5, ge=1)

    # Daily focus rule, local wall-clock window
    focus_window_start: time = Field(default=time(14, 0))
    focus_window_end: time = Field(default=time(15, 0))

    # Low alignment document rule
    low_alignment_threshold: int = Field(default=60, ge=0, le=100)
    low_alignment_lookback_hours: int = Field(default=24, ge=1)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the time zone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator("suppression_windows")
    @classmethod
    def fill_suppression_windows(cls, v: dict[RuleKind, int]) -> dict[RuleKind, int]:
        """Fill in defaults for rules missing from a partial override."""
        for kind, hours in v.items():
            if hours < 0:
                raise ValueError(f"Suppression window for {kind.value} must be >= 0")
        return {**DEFAULT_SUPPRESSION_WINDOWS, **v}

    @model_validator(mode="after")
    def validate_focus_window(self) -> "NudgeConfig":
        """The focus window must not wrap midnight."""
        if self.focus_window_start > self.focus_window_end:
            raise ValueError("focus_window_start must not be after focus_window_end")
        return self

    def window_hours(self, kind: RuleKind) -> int:
        """Suppression window in hours for a rule."""
        return self.suppression_windows[kind]


class APIConfig(BaseModel):
    """HTTP API configuration."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Root log level")
    format: str = Field(default="%(asctime)s %(levelname)s %(name)s: %(message)s")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalise and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


class Config(BaseSettings):
    """Main application configuration.

    Values passed in (normally the parsed YAML file) are overlaid by
    ``LUMEN_<SECTION>__<KEY>`` environment variables, key by key.
    """

    model_config = SettingsConfigDict(
        env_prefix="LUMEN_",
        env_nested_delimiter="__",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    nudges: NudgeConfig = Field(default_factory=NudgeConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file. Defaults to config.yaml in CWD.

    Returns:
        Validated Config object.
    """
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    config_data: dict[str, Any] = {}

    if config_path.exists():
        with open(config_path) as f:
            loaded = yaml.safe_load(f)
            if loaded:
                config_data = loaded

    return Config(**config_data)


# Global config instance - initialized lazily
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Replace the global configuration (used by the CLI --config option)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
