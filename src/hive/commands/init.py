"""Init command implementation."""

from ..config import write_config_template
from ..constants import CONFIG_FILE_NAME
from ..core import get_hive_dir, init_hive_dir
from ..output import get_output_context


def init() -> None:
    """Initialize hive in the current directory."""
    ctx = get_output_context()
    hive_dir = get_hive_dir()

    init_hive_dir(hive_dir)

    config_path = hive_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        write_config_template(hive_dir)
        ctx.info(f"[green]Created config template:[/green] {config_path}")
    else:
        ctx.info(f"[yellow]Config already exists:[/yellow] {config_path}")

    ctx.success("Hive initialized", {"hive_dir": str(hive_dir)})
