"""GitHub CLI integration for the shared API budget."""

import json
import logging
import subprocess
from datetime import UTC, datetime

from ..constants import GH_TIMEOUT
from ..models import RateBudget, utcnow

logger = logging.getLogger(__name__)


class GitHubError(Exception):
    """Error querying GitHub through the gh CLI."""


def run_gh(args: list[str], exec_path: str = "gh", timeout: int = GH_TIMEOUT) -> str:
    """Run a gh command and return stdout.

    Raises:
        GitHubError: If gh is missing, times out, or exits non-zero
    """
    try:
        result = subprocess.run(
            [exec_path, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitHubError(f"{exec_path} not found in PATH") from None
    except subprocess.TimeoutExpired:
        raise GitHubError(f"{exec_path} timed out after {timeout}s") from None

    if result.returncode != 0:
        raise GitHubError(f"{exec_path} failed: {result.stderr.strip()}")
    return result.stdout


def parse_rate_limit(payload: str) -> RateBudget:
    """Build a RateBudget from ``gh api rate_limit`` output.

    Raises:
        GitHubError: If the payload lacks ``resources.core``
    """
    try:
        core = json.loads(payload)["resources"]["core"]
        return RateBudget(
            remaining=int(core["remaining"]),
            limit=int(core["limit"]),
            reset=datetime.fromtimestamp(int(core["reset"]), tz=UTC),
            last_updated=utcnow(),
        )
    except (ValueError, KeyError, TypeError) as e:
        raise GitHubError(f"Unexpected rate_limit payload: {e}") from e


def fetch_rate_limit(exec_path: str = "gh") -> RateBudget | None:
    """Fetch the core API budget, or None when GitHub is unreachable."""
    try:
        return parse_rate_limit(run_gh(["api", "rate_limit"], exec_path=exec_path))
    except GitHubError as e:
        logger.debug("Rate limit unavailable: %s", e)
        return None
