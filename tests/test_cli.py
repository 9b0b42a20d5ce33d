"""CLI integration tests for hive."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from hive.cli import app
from hive.models import Lock

LOCK_PRESENT = (
    "import pathlib, sys; "
    "sys.exit(0 if pathlib.Path('.hive/locks/deploy.lock').exists() else 9)"
)


def _json(runner: CliRunner, *args: str) -> dict:
    result = runner.invoke(app, ["-q", "--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def _register(runner: CliRunner, domain: str = "epic-x") -> str:
    result = runner.invoke(app, ["-q", "agent", "register", domain])
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


def _foreign_lock(project: Path, resource: str) -> None:
    lock = Lock.new("agent-other", 424242, 600, "deploy")
    (project / ".hive" / "locks" / f"{resource}.lock").write_text(lock.model_dump_json())


class TestVersionCommand:
    """Tests for --version flag."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        """--version should display version string."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "hive" in result.stdout
        assert "0.1.0" in result.stdout

    def test_version_short_flag(self, runner: CliRunner) -> None:
        """-V should also display version."""
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "hive" in result.stdout


class TestHelpCommand:
    """Tests for --help flag."""

    def test_help_shows_commands(self, runner: CliRunner) -> None:
        """--help should list all command groups."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "lock", "agent", "agents", "stream", "doc", "rate"):
            assert command in result.stdout


class TestInitCommand:
    """Tests for hive init."""

    def test_init_creates_layout(self, runner: CliRunner, project: Path) -> None:
        """init creates locks, epics and a config template."""
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (project / ".hive" / "locks" / ".gitignore").exists()
        assert (project / ".hive" / "epics").is_dir()
        assert (project / ".hive" / "config.toml").exists()
        assert "Hive initialized" in result.stdout

    def test_init_keeps_existing_config(self, runner: CliRunner, initialized_hive: Path) -> None:
        """An existing config is not overwritten."""
        config = initialized_hive / ".hive" / "config.toml"
        before = config.read_text()
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert "already exists" in result.stdout
        assert config.read_text() == before

    def test_commands_require_init(self, runner: CliRunner, project: Path) -> None:
        """Commands other than init fail with exit code 3 before init."""
        result = runner.invoke(app, ["lock", "list"])
        assert result.exit_code == 3
        assert "not initialized" in result.stdout


class TestLockCommands:
    """Tests for hive lock."""

    def test_list_empty(self, runner: CliRunner, initialized_hive: Path) -> None:
        """No locks yields an empty listing."""
        assert _json(runner, "lock", "list") == {"locks": []}

    def test_list_and_status(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Existing locks are listed with their holder."""
        _foreign_lock(initialized_hive, "deploy")
        data = _json(runner, "lock", "list")
        assert [entry["resource"] for entry in data["locks"]] == ["deploy"]
        assert data["locks"][0]["agent_id"] == "agent-other"

        status = _json(runner, "lock", "status", "deploy")
        assert status["held"] is True
        assert status["pid"] == 424242

        assert _json(runner, "lock", "status", "free-one") == {
            "resource": "free-one",
            "held": False,
        }

    def test_release_foreign_requires_force(
        self, runner: CliRunner, initialized_hive: Path
    ) -> None:
        """Releasing another holder's lock exits 4 unless forced."""
        _foreign_lock(initialized_hive, "deploy")
        result = runner.invoke(app, ["-q", "lock", "release", "deploy"])
        assert result.exit_code == 4
        assert "held by agent-other" in result.stdout

        result = runner.invoke(app, ["-q", "lock", "release", "deploy", "--force"])
        assert result.exit_code == 0
        assert not (initialized_hive / ".hive" / "locks" / "deploy.lock").exists()

    def test_cleanup_removes_dead_holders(
        self, runner: CliRunner, initialized_hive: Path
    ) -> None:
        """cleanup sweeps locks of processes that are gone."""
        _foreign_lock(initialized_hive, "deploy")
        with patch("hive.core.lock_manager.is_pid_running", return_value=False):
            data = _json(runner, "lock", "cleanup")
        assert data["removed"] == ["deploy"]

    def test_run_holds_lock_during_command(
        self, runner: CliRunner, initialized_hive: Path
    ) -> None:
        """The command runs with the lock held and it is released after."""
        result = runner.invoke(
            app, ["-q", "lock", "run", "deploy", "--", sys.executable, "-c", LOCK_PRESENT]
        )
        assert result.exit_code == 0, result.output
        assert not (initialized_hive / ".hive" / "locks" / "deploy.lock").exists()

    def test_run_propagates_exit_code(self, runner: CliRunner, initialized_hive: Path) -> None:
        """A failing command's exit code is passed through."""
        result = runner.invoke(
            app,
            ["-q", "lock", "run", "deploy", "--", sys.executable, "-c", "raise SystemExit(7)"],
        )
        assert result.exit_code == 7
        assert not (initialized_hive / ".hive" / "locks" / "deploy.lock").exists()

    def test_run_when_lock_busy(self, runner: CliRunner, initialized_hive: Path) -> None:
        """A busy lock exits 4 without running the command."""
        _foreign_lock(initialized_hive, "deploy")
        with (
            patch("hive.core.lock_manager.is_pid_running", return_value=True),
            patch("hive.core.lock_manager.time.sleep"),
            patch("hive.commands.locks.subprocess.run") as run,
        ):
            result = runner.invoke(app, ["-q", "lock", "run", "deploy", "--", "true"])
        assert result.exit_code == 4
        run.assert_not_called()


class TestAgentCommands:
    """Tests for hive agent and hive agents."""

    def test_register_heartbeat_unregister(
        self, runner: CliRunner, initialized_hive: Path
    ) -> None:
        """A participant's lifecycle through the CLI."""
        agent_id = _register(runner)
        assert agent_id.startswith("agent-")

        result = runner.invoke(app, ["-q", "agent", "heartbeat", "epic-x", agent_id])
        assert result.exit_code == 0

        listing = _json(runner, "agent", "list", "epic-x")
        assert list(listing) == [agent_id]

        data = _json(runner, "agent", "unregister", "epic-x", agent_id)
        assert data["removed"] is True
        assert _json(runner, "agent", "list", "epic-x") == {}

    def test_heartbeat_keep_alive(self, runner: CliRunner, initialized_hive: Path) -> None:
        """--keep-alive repeats heartbeats until the count is reached."""
        agent_id = _register(runner)
        data = _json(
            runner, "agent", "heartbeat", "epic-x", agent_id, "-k", "-n", "3", "--interval", "0"
        )
        assert data == {"agent_id": agent_id, "heartbeats": 3}

    def test_heartbeat_unknown_agent(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Unknown participants exit 1."""
        _register(runner)
        result = runner.invoke(app, ["-q", "agent", "heartbeat", "epic-x", "agent-missing"])
        assert result.exit_code == 1
        assert "not registered" in result.stdout

    def test_commit_and_files(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Counters and file reservations are exposed."""
        agent_id = _register(runner)
        assert _json(runner, "agent", "commit", "epic-x", agent_id)["commits"] == 1
        data = _json(runner, "agent", "lock-file", "epic-x", agent_id, "src/a.py")
        assert data["files_locked"] == ["src/a.py"]
        data = _json(runner, "agent", "unlock-file", "epic-x", agent_id, "src/a.py")
        assert data["files_locked"] == []

    def test_agents_overview(self, runner: CliRunner, initialized_hive: Path) -> None:
        """The overview summarises every domain."""
        first = _register(runner, "epic-x")
        _register(runner, "epic-y")
        runner.invoke(app, ["-q", "agent", "commit", "epic-x", first])

        data = _json(runner, "agents")
        assert sorted(data) == ["epic-x", "epic-y"]
        assert data["epic-x"]["summary"] == {"total": 1, "active": 1, "stale": 0, "commits": 1}

        result = runner.invoke(app, ["-q", "agents"])
        assert result.exit_code == 0
        assert "Total: 1" in result.stdout


class TestStreamCommands:
    """Tests for hive stream."""

    def test_claim_conflict_exit_code(self, runner: CliRunner, initialized_hive: Path) -> None:
        """An overlapping claim exits 5."""
        result = runner.invoke(
            app, ["-q", "stream", "claim", "epic-x", "A", "api", "-f", "src/api/"]
        )
        assert result.exit_code == 0, result.output

        result = runner.invoke(
            app, ["-q", "stream", "claim", "epic-x", "B", "routes", "-f", "src/api/routes.py"]
        )
        assert result.exit_code == 5
        assert "File conflict" in result.stdout

    def test_owner_and_list(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Owners and streams can be queried."""
        runner.invoke(app, ["-q", "stream", "claim", "epic-x", "A", "api", "-f", "src/api/"])

        result = runner.invoke(app, ["-q", "stream", "owner", "epic-x", "api"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "A"

        result = runner.invoke(app, ["-q", "stream", "owner", "epic-x", "ui"])
        assert result.exit_code == 1

        data = _json(runner, "stream", "list", "epic-x")
        assert data["api"]["owner"] == "A"
        assert data["api"]["status"] == "in-progress"

    def test_complete_release_and_conflicts(
        self, runner: CliRunner, initialized_hive: Path
    ) -> None:
        """Completed streams still show up in conflict reports."""
        runner.invoke(app, ["-q", "stream", "claim", "epic-x", "A", "api", "-f", "src/api/"])
        result = runner.invoke(app, ["-q", "stream", "complete", "epic-x", "A", "api"])
        assert result.exit_code == 0
        runner.invoke(app, ["-q", "stream", "claim", "epic-x", "B", "v2", "-f", "src/api/v2/"])

        data = _json(runner, "stream", "conflicts")
        assert list(data) == ["epic-x"]
        assert len(data["epic-x"]) == 1

        result = runner.invoke(app, ["-q", "stream", "release", "epic-x", "B", "api"])
        assert result.exit_code == 5

        result = runner.invoke(app, ["-q", "stream", "release", "epic-x", "A", "api"])
        assert result.exit_code == 0
        assert _json(runner, "stream", "conflicts", "epic-x") == {}


class TestDocCommands:
    """Tests for hive doc."""

    def test_version_set_and_conflict(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Field updates bump the version and stale expectations exit 5."""
        doc = initialized_hive / "task.md"
        doc.write_text("---\nname: Task\nstatus: open\nversion: 3\n---\n\nBody\n")

        assert _json(runner, "doc", "version", str(doc))["version"] == 3

        data = _json(runner, "doc", "set", str(doc), "status", "closed", "--expect", "3")
        assert data["version"] == 4

        result = runner.invoke(app, ["-q", "doc", "set", str(doc), "status", "open", "-e", "3"])
        assert result.exit_code == 5
        assert "status: closed" in doc.read_text()

    def test_set_retries_without_expectation(
        self, runner: CliRunner, initialized_hive: Path
    ) -> None:
        """Without --expect the current version is used."""
        doc = initialized_hive / "task.md"
        doc.write_text("---\nname: Task\n---\n")
        result = runner.invoke(app, ["-q", "doc", "set", str(doc), "status", "done"])
        assert result.exit_code == 0, result.output
        assert "version: 1" in doc.read_text()

    def test_set_refuses_version_field(self, runner: CliRunner, initialized_hive: Path) -> None:
        """The version field cannot be set directly."""
        doc = initialized_hive / "task.md"
        doc.write_text("---\nversion: 1\n---\n")
        result = runner.invoke(app, ["-q", "doc", "set", str(doc), "version", "9"])
        assert result.exit_code == 1

    def test_missing_document(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Missing documents exit 1."""
        result = runner.invoke(app, ["-q", "doc", "version", "missing.md"])
        assert result.exit_code == 1

    def test_migrate(self, runner: CliRunner, initialized_hive: Path) -> None:
        """migrate versions every epic and task document."""
        epic_dir = initialized_hive / ".hive" / "epics" / "epic-x"
        epic_dir.mkdir()
        (epic_dir / "epic.md").write_text("---\nname: Epic\n---\n")
        (epic_dir / "001.md").write_text("---\nname: Task\nversion: 2\n---\n")

        data = _json(runner, "doc", "migrate")
        assert data["checked"] == 2
        assert data["already_versioned"] == 1
        assert "version: 1" in (epic_dir / "epic.md").read_text()


class TestRateCommands:
    """Tests for hive rate."""

    def test_status_and_reserve(self, runner: CliRunner, initialized_hive: Path) -> None:
        """Reservations reduce the shared budget."""
        assert _json(runner, "rate", "status")["remaining"] == 5000
        assert _json(runner, "rate", "reserve", "5")["remaining"] == 4995
        assert _json(runner, "rate", "status")["remaining"] == 4995

    def test_refresh_without_gh(self, runner: CliRunner, initialized_hive: Path) -> None:
        """An unreachable API reports the default limit."""
        with patch("hive.services.github.subprocess.run", side_effect=FileNotFoundError):
            assert _json(runner, "rate", "refresh")["remaining"] == 5000


class TestDeadlockCheck:
    """Tests for hive deadlock-check."""

    def test_no_risks(self, runner: CliRunner, initialized_hive: Path) -> None:
        """An empty hive reports no risks."""
        result = runner.invoke(app, ["-q", "deadlock-check"])
        assert result.exit_code == 0
        assert "No deadlock risks" in result.stdout

    def test_hoarding_reported(self, runner: CliRunner, initialized_hive: Path) -> None:
        """An agent holding two live locks is reported."""
        _foreign_lock(initialized_hive, "a")
        _foreign_lock(initialized_hive, "b")
        with patch("hive.core.lock_manager.is_pid_running", return_value=True):
            data = _json(runner, "deadlock-check")
        assert data["hoarders"] == {"agent-other": ["a", "b"]}
        assert data["risks"] == 1
