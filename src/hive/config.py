"""Configuration management for hive."""

import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, model_validator

from .constants import (
    CONFIG_FILE_NAME,
    HEARTBEAT_INTERVAL_SECONDS,
    LOCK_ACQUIRE_TIMEOUT,
    LOCK_INITIAL_BACKOFF,
    LOCK_LEASE_SECONDS,
    LOCK_MAX_BACKOFF,
    LOCK_MAX_RETRIES,
    LONG_HELD_LOCK_SECONDS,
    RATE_DEFAULT_LIMIT,
    RATE_LOW_THRESHOLD,
    RATE_MIN_REMAINING,
    RATE_WAIT_SECONDS,
    STALE_THRESHOLD_SECONDS,
    VERSION_MAX_ATTEMPTS,
    VERSION_MAX_BACKOFF,
    VERSION_MIN_BACKOFF,
)


class LocksConfig(BaseModel):
    """Lease and backoff settings for the lock manager."""

    lease_seconds: float = Field(default=LOCK_LEASE_SECONDS, gt=0)
    acquire_timeout_seconds: float = Field(default=LOCK_ACQUIRE_TIMEOUT, gt=0)
    max_retries: int = Field(default=LOCK_MAX_RETRIES, ge=1)
    initial_backoff_seconds: float = Field(default=LOCK_INITIAL_BACKOFF, gt=0)
    max_backoff_seconds: float = Field(default=LOCK_MAX_BACKOFF, gt=0)


class RegistryConfig(BaseModel):
    """Participant registry settings."""

    stale_threshold_seconds: float = Field(default=STALE_THRESHOLD_SECONDS, gt=0)
    heartbeat_interval_seconds: float = Field(default=HEARTBEAT_INTERVAL_SECONDS, gt=0)
    serialize_writes: bool = True


class VersionsConfig(BaseModel):
    """Retry settings for optimistic updates."""

    max_attempts: int = Field(default=VERSION_MAX_ATTEMPTS, ge=1)
    min_backoff_seconds: float = Field(default=VERSION_MIN_BACKOFF, ge=0)
    max_backoff_seconds: float = Field(default=VERSION_MAX_BACKOFF, ge=0)

    @model_validator(mode="after")
    def validate_backoff_range(self) -> "VersionsConfig":
        """Ensure the backoff window is not inverted."""
        if self.min_backoff_seconds > self.max_backoff_seconds:
            raise ValueError("min_backoff_seconds must not exceed max_backoff_seconds")
        return self


class RateLimitConfig(BaseModel):
    """Shared API budget settings."""

    default_limit: int = Field(default=RATE_DEFAULT_LIMIT, ge=0)
    low_threshold: int = Field(default=RATE_LOW_THRESHOLD, ge=0)
    wait_seconds: float = Field(default=RATE_WAIT_SECONDS, ge=0)
    min_remaining: int = Field(default=RATE_MIN_REMAINING, ge=0)


class DiagnosticsConfig(BaseModel):
    """Thresholds for deadlock and hygiene reports."""

    long_held_seconds: float = Field(default=LONG_HELD_LOCK_SECONDS, gt=0)


class HiveConfig(BaseModel):
    """Root configuration for hive."""

    locks: LocksConfig = Field(default_factory=LocksConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    versions: VersionsConfig = Field(default_factory=VersionsConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)


def load_config(hive_dir: Path) -> HiveConfig:
    """Load config from .hive/config.toml.

    Args:
        hive_dir: Path to .hive directory

    Returns:
        Loaded configuration, or defaults if config.toml doesn't exist
    """
    config_path = hive_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return HiveConfig()
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return HiveConfig.model_validate(data)


def write_config_template(hive_dir: Path) -> Path:
    """Write default config.toml template.

    Args:
        hive_dir: Path to .hive directory

    Returns:
        Path to the written config file
    """
    config_path = hive_dir / CONFIG_FILE_NAME
    template = HiveConfig().model_dump(mode="json")
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
