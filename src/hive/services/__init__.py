"""External collaborators consumed by the coordination core.

- process: process-liveness check used by the lock manager
- ids: unique identifiers for participants and lock holders
- github: API rate-limit source for the budget coordinator
"""

from .github import GitHubError, fetch_rate_limit
from .ids import generate_agent_id
from .process import is_pid_running

__all__ = [
    "GitHubError",
    "fetch_rate_limit",
    "generate_agent_id",
    "is_pid_running",
]
