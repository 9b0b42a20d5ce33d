"""Shared test fixtures for hive tests."""

import os
from collections.abc import Generator
from pathlib import Path
from unittest import mock

import pytest
from typer.testing import CliRunner

from hive.config import HiveConfig, LocksConfig
from hive.core import CleanupStack, Coordinator, LockManager, init_hive_dir


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def hive_dir(tmp_path: Path) -> Path:
    """Create an initialized .hive directory."""
    d = tmp_path / ".hive"
    init_hive_dir(d)
    return d


@pytest.fixture
def cleanup_stack() -> CleanupStack:
    """Private cleanup stack so tests never touch the process-wide one."""
    stack = CleanupStack()
    # Avoid installing real signal/atexit hooks from tests
    stack._installed = True
    return stack


@pytest.fixture
def fast_locks() -> LocksConfig:
    """Lock settings that give up quickly."""
    return LocksConfig(
        lease_seconds=60,
        acquire_timeout_seconds=5,
        max_retries=3,
        initial_backoff_seconds=0.01,
        max_backoff_seconds=0.02,
    )


@pytest.fixture
def lock_manager(
    hive_dir: Path, fast_locks: LocksConfig, cleanup_stack: CleanupStack
) -> LockManager:
    """Lock manager with a fixed agent id and a private cleanup stack."""
    return LockManager(hive_dir, fast_locks, agent_id="agent-test", cleanup=cleanup_stack)


@pytest.fixture
def coordinator(
    hive_dir: Path, fast_locks: LocksConfig, cleanup_stack: CleanupStack
) -> Coordinator:
    """Coordinator wired to the temporary hive directory."""
    coordinator = Coordinator.open(hive_dir, HiveConfig(locks=fast_locks))
    coordinator.locks._cleanup = cleanup_stack
    return coordinator


@pytest.fixture
def no_sleep() -> Generator[mock.MagicMock, None, None]:
    """Make lock backoff sleeps instant and observable."""
    with mock.patch("hive.core.lock_manager.time.sleep") as sleep:
        yield sleep


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Project root used as cwd, with no hive directory yet."""
    monkeypatch.delenv("HIVE_ROOT", raising=False)
    monkeypatch.delenv("HIVE_AGENT_ID", raising=False)
    original_cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def initialized_hive(project: Path) -> Path:
    """Project root with .hive already set up.

    Registry writes are not serialized so CLI tests leave no lock entries
    behind and never wait on backoff.
    """
    hive_dir = project / ".hive"
    init_hive_dir(hive_dir)
    (hive_dir / "config.toml").write_text(
        "[registry]\nserialize_writes = false\n\n[locks]\nmax_retries = 2\n"
        "initial_backoff_seconds = 0.01\nmax_backoff_seconds = 0.02\n"
    )
    return project
