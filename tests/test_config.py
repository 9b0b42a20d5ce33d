"""Tests for hive configuration."""

import tomllib
from pathlib import Path

import pytest
from pydantic import ValidationError

from hive.config import HiveConfig, VersionsConfig, load_config, write_config_template


def test_defaults():
    """Defaults match the documented coordination constants."""
    config = HiveConfig()
    assert config.locks.lease_seconds == 300
    assert config.locks.acquire_timeout_seconds == 300
    assert config.locks.max_retries == 10
    assert config.locks.initial_backoff_seconds == 1
    assert config.locks.max_backoff_seconds == 32
    assert config.registry.stale_threshold_seconds == 300
    assert config.registry.heartbeat_interval_seconds == 60
    assert config.registry.serialize_writes is True
    assert config.versions.max_attempts == 3
    assert config.rate_limit.default_limit == 5000
    assert config.rate_limit.low_threshold == 100
    assert config.rate_limit.wait_seconds == 10
    assert config.rate_limit.min_remaining == 10
    assert config.diagnostics.long_held_seconds == 120


def test_load_missing_config(tmp_path: Path):
    """A missing config.toml yields defaults."""
    assert load_config(tmp_path) == HiveConfig()


def test_load_partial_config(tmp_path: Path):
    """Sections and keys not present keep their defaults."""
    (tmp_path / "config.toml").write_text("[locks]\nlease_seconds = 30\n")
    config = load_config(tmp_path)
    assert config.locks.lease_seconds == 30
    assert config.locks.max_retries == 10
    assert config.registry == HiveConfig().registry


def test_invalid_config_rejected(tmp_path: Path):
    """Out-of-range values fail validation."""
    (tmp_path / "config.toml").write_text("[locks]\nmax_retries = 0\n")
    with pytest.raises(ValidationError):
        load_config(tmp_path)


def test_inverted_backoff_window():
    """min_backoff_seconds may not exceed max_backoff_seconds."""
    with pytest.raises(ValidationError):
        VersionsConfig(min_backoff_seconds=5, max_backoff_seconds=1)


def test_write_config_template(tmp_path: Path):
    """The template is valid TOML that loads back to the defaults."""
    path = write_config_template(tmp_path)
    with open(path, "rb") as f:
        data = tomllib.load(f)
    assert set(data) == {"locks", "registry", "versions", "rate_limit", "diagnostics"}
    assert load_config(tmp_path) == HiveConfig()
