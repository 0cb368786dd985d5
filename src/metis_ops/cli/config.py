"""
CLI: ``metis-ops config`` -- configuration inspection.
"""

from __future__ import annotations

import typer

from metis_ops.cli.utils import console

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the effective settings (environment, .env and defaults)."""
    from rich.table import Table

    from metis_ops.core.settings import get_settings

    settings = get_settings()

    if json_out:
        console.print_json(settings.model_dump_json())
        return

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Env var")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        if key == "retry_limit" and value is None:
            value = "unbounded"
        table.add_row(key, f"METIS_OPS_{key.upper()}", str(value))
    console.print(table)
