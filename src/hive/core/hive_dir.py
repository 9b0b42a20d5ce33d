"""Hive directory utilities."""

import os
import re
from pathlib import Path

from ..constants import (
    DOMAINS_DIR_NAME,
    ENV_ROOT,
    HIVE_DIR_NAME,
    LOCK_SUFFIX,
    LOCKS_DIR_NAME,
    REGISTRY_FILE_NAME,
)

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_name(name: str, kind: str = "name") -> str:
    """Ensure a resource or domain name maps to a single file name.

    Raises:
        ValueError: If the name is empty or contains path characters
    """
    if not _NAME_RE.match(name) or ".." in name:
        raise ValueError(f"Invalid {kind}: {name!r} (allowed: letters, digits, '.', '_', '-')")
    return name


def get_hive_dir(root: Path | None = None) -> Path:
    """Get .hive directory path.

    Args:
        root: Optional project root; ``$HIVE_ROOT`` or the cwd if not provided

    Returns:
        Path to .hive directory
    """
    if root is None:
        root = Path(os.environ.get(ENV_ROOT) or Path.cwd())
    return root / HIVE_DIR_NAME


def get_locks_dir(hive_dir: Path) -> Path:
    """Directory holding one entry per locked resource."""
    return hive_dir / LOCKS_DIR_NAME


def get_lock_path(hive_dir: Path, resource: str) -> Path:
    """Path of the lock entry for a resource."""
    return get_locks_dir(hive_dir) / f"{validate_name(resource, 'resource')}{LOCK_SUFFIX}"


def get_domains_dir(hive_dir: Path) -> Path:
    """Directory holding one subdirectory per coordination domain."""
    return hive_dir / DOMAINS_DIR_NAME


def get_domain_dir(hive_dir: Path, domain: str) -> Path:
    """Directory of one coordination domain (e.g. an epic)."""
    return get_domains_dir(hive_dir) / validate_name(domain, "domain")


def get_registry_path(hive_dir: Path, domain: str) -> Path:
    """Registry document of a domain."""
    return get_domain_dir(hive_dir, domain) / REGISTRY_FILE_NAME


def list_domains(hive_dir: Path) -> list[str]:
    """Domains that have a registry document, sorted by name."""
    domains_dir = get_domains_dir(hive_dir)
    if not domains_dir.exists():
        return []
    return sorted(
        d.name for d in domains_dir.iterdir() if d.is_dir() and (d / REGISTRY_FILE_NAME).exists()
    )


def init_hive_dir(hive_dir: Path) -> None:
    """Create the hive directory skeleton (idempotent)."""
    locks_dir = get_locks_dir(hive_dir)
    locks_dir.mkdir(parents=True, exist_ok=True)
    get_domains_dir(hive_dir).mkdir(parents=True, exist_ok=True)
    gitignore = locks_dir / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text("*\n")
