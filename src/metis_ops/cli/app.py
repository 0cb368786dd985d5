"""
Root Typer application for the metis-ops CLI.

The callback configures structured logging from ``OpsSettings`` before any
sub-command runs; log lines go to stderr so that tables and JSON on stdout
stay machine-readable.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

app = Typer(
    name="metis-ops",
    help="metis-ops: administrative tooling for Metis dataset migrations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from metis_ops import __version__

        try:
            v = pkg_version("metis-ops")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"metis-ops {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Override METIS_OPS_LOG_LEVEL."
    ),
) -> None:
    """metis-ops CLI: migration results, skip lists and namespace lookups."""
    from metis_ops.core.logging import configure_logging
    from metis_ops.core.settings import get_settings

    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_json,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from metis_ops.cli.config import app as config_app  # noqa: E402
from metis_ops.cli.namespaces import app as namespaces_app  # noqa: E402
from metis_ops.cli.results import app as results_app  # noqa: E402

app.add_typer(results_app, name="results", help="Migration results, statistics and skip lists.")
app.add_typer(namespaces_app, name="namespaces", help="Namespace prefixes and vocabulary sets.")
app.add_typer(config_app, name="config", help="Configuration inspection.")
