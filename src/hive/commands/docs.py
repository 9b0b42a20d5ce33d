"""Versioned document command implementations."""

from pathlib import Path

import typer

from ..config import load_config
from ..core import (
    ensure_version,
    get_hive_dir,
    get_version,
    migrate_versions,
    retry_with_backoff,
    update_field,
)
from ..core.frontmatter import set_field
from ..output import get_output_context
from .common import handle_errors, require_hive_dir

doc_app = typer.Typer(help="Versioned document commands")


@doc_app.command("version")
def doc_version(
    path: Path = typer.Argument(..., help="Markdown document"),
) -> None:
    """Print the version of a document (0 if unversioned)."""
    ctx = get_output_context()
    with handle_errors():
        version = get_version(path)
    ctx.value({"path": str(path), "version": version}, str(version))


@doc_app.command("ensure")
def doc_ensure(
    path: Path = typer.Argument(..., help="Markdown document"),
) -> None:
    """Add ``version: 1`` to a document that has no version."""
    ctx = get_output_context()
    with handle_errors():
        added = ensure_version(path)
    message = f"Added version to {path}" if added else f"{path} already versioned"
    ctx.report({"path": str(path), "migrated": added}, message)


@doc_app.command("set")
def doc_set(
    path: Path = typer.Argument(..., help="Markdown document"),
    key: str = typer.Argument(..., help="Frontmatter field"),
    value: str = typer.Argument(..., help="New value"),
    expect: int | None = typer.Option(
        None, "--expect", "-e", help="Fail unless the document is at this version"
    ),
) -> None:
    """Set a frontmatter field and bump the version.

    Without --expect, version conflicts are retried with backoff.
    """
    ctx = get_output_context()
    versions = load_config(get_hive_dir()).versions

    def mutate(temp_path: Path) -> None:
        temp_path.write_text(set_field(temp_path.read_text(), key, value))

    with handle_errors():
        if key == "version":
            raise ValueError("The version field is managed by hive")
        if expect is not None:
            new_version = update_field(path, key, value, expected_version=expect)
        else:
            new_version = retry_with_backoff(
                path,
                mutate,
                max_attempts=versions.max_attempts,
                min_backoff=versions.min_backoff_seconds,
                max_backoff=versions.max_backoff_seconds,
            )
    ctx.report(
        {"path": str(path), key: value, "version": new_version},
        f"Updated {key} in {path} (version {new_version})",
    )


@doc_app.command("migrate")
def doc_migrate() -> None:
    """Add version fields to every domain document that lacks one."""
    ctx = get_output_context()
    hive_dir = require_hive_dir()
    with handle_errors():
        report = migrate_versions(hive_dir)

    for document in report.migrated:
        ctx.info(f"Migrated: {document}")
    ctx.success(
        f"Checked {report.checked} document(s): {len(report.migrated)} migrated, "
        f"{report.already_versioned} already versioned",
        {
            "checked": report.checked,
            "migrated": [str(p) for p in report.migrated],
            "already_versioned": report.already_versioned,
        },
    )
