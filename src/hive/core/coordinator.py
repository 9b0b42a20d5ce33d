"""Wiring of the coordination components for one hive directory."""

from dataclasses import dataclass
from pathlib import Path

from ..config import HiveConfig, load_config
from .lock_manager import LockManager
from .rate_budget import RateBudgetCoordinator
from .registry import ParticipantRegistry
from .work_streams import WorkStreams


@dataclass
class Coordinator:
    """Lock manager, registry, work streams and rate budget sharing one config."""

    hive_dir: Path
    config: HiveConfig
    locks: LockManager
    registry: ParticipantRegistry
    streams: WorkStreams
    rate: RateBudgetCoordinator

    @classmethod
    def open(cls, hive_dir: Path, config: HiveConfig | None = None) -> "Coordinator":
        """Build every component from ``.hive/config.toml`` (or ``config``)."""
        config = config or load_config(hive_dir)
        locks = LockManager(hive_dir, config.locks)
        registry = ParticipantRegistry(hive_dir, config.registry, locks)
        return cls(
            hive_dir=hive_dir,
            config=config,
            locks=locks,
            registry=registry,
            streams=WorkStreams(registry),
            rate=RateBudgetCoordinator(hive_dir, config.rate_limit),
        )
