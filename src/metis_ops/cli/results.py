"""
CLI: ``metis-ops results`` -- statistics, skip lists, invalidation and rename reports
over a directory of ``final-dataset-status-<runId>.log`` files.
"""

from __future__ import annotations

from pathlib import Path

import typer

from metis_ops.cli.utils import cli_errors, console, output_rows, read_id_file
from metis_ops.results.model import FUTURE_RUN_ID, PRE_HARVEST_RUN_ID, PluginType

app = typer.Typer(no_args_is_help=True)


def _parser(directory: Path):
    from metis_ops.results.parser import ResultParser

    return ResultParser.from_settings(directory=directory)


def _plugin_type(value: str) -> PluginType:
    try:
        return PluginType(value.upper())
    except ValueError as e:
        choices = ", ".join(p.value for p in PluginType)
        raise typer.BadParameter(f"Unknown plugin type {value!r}; choose from {choices}") from e


@app.command("stats")
def stats(
    directory: Path = typer.Argument(..., help="Directory with status logs"),
    from_run: str = typer.Option(PRE_HARVEST_RUN_ID, "--from", help="First run id (inclusive)"),
    to_run: str = typer.Option(FUTURE_RUN_ID, "--to", help="Last run id (exclusive)"),
    plugin: list[str] | None = typer.Option(None, "--plugin", "-p", help="Plugin type(s)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Count datasets per result status for each plugin."""
    from metis_ops.results.model import ResultStatus
    from metis_ops.results.reports import plugin_statistics

    plugin_types = [_plugin_type(p) for p in plugin] if plugin else None
    with cli_errors():
        results = _parser(directory).parse(from_run, to_run)

    if plugin_types is None:
        plugin_types = [p for p in PluginType if p in results.categories()]

    rows = []
    for plugin_type in plugin_types:
        plugin_stats = plugin_statistics(results, plugin_type)
        row = {"plugin": plugin_type.value, "total": plugin_stats.total}
        row.update({status.value: plugin_stats.count(status) for status in ResultStatus})
        row["successful_records"] = plugin_stats.successful_records
        rows.append(row)
    output_rows(rows, as_json=json_out, title="Migration results")


@app.command("skip-files")
def skip_files(
    directory: Path = typer.Argument(..., help="Directory with status logs"),
    output_dir: Path = typer.Argument(..., help="Directory to write the skip files to"),
    ignore_file: Path | None = typer.Option(
        None, "--ignore-file", "-i", exists=True, dir_okay=False,
        help="Datasets to always skip, one id per line",
    ),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Write one skip file per plugin for the next execution run."""
    from metis_ops.results.model import PLUGIN_CHAIN
    from metis_ops.results.reports import SKIP_FILE_NAMES, build_skip_list, write_skip_file

    ignored = read_id_file(ignore_file)
    # Skip lists need the complete history, not a run range.
    with cli_errors():
        results = _parser(directory).parse_all()

    rows = []
    for plugin_type in PLUGIN_CHAIN:
        skip_list = build_skip_list(results, plugin_type, ignored)
        path = output_dir / SKIP_FILE_NAMES[plugin_type]
        written = write_skip_file(path, skip_list.skip)
        rows.append({
            "plugin": plugin_type.value,
            "skipped": written,
            "invalidated": len(skip_list.invalidated),
            "available": len(skip_list.available),
            "available_records": skip_list.available_records,
            "file": str(path),
        })
    output_rows(rows, as_json=json_out, title="Skip files")


@app.command("invalidated")
def invalidated(
    directory: Path = typer.Argument(..., help="Directory with status logs"),
    split_run: str = typer.Argument(..., help="Run id separating 'before' from 'after'"),
    output_csv: Path = typer.Argument(..., help="CSV report to write"),
) -> None:
    """Compare results before and after a run for datasets processed in both."""
    from metis_ops.results.reports import write_invalidated_report

    with cli_errors():
        parser = _parser(directory)
        before = parser.parse(PRE_HARVEST_RUN_ID, split_run)
        after = parser.parse_from(split_run)

    rows = write_invalidated_report(output_csv, before, after)
    console.print(f"[green]✓[/green] Wrote {rows} rows to {output_csv}")


@app.command("renamed")
def renamed(
    directory: Path = typer.Argument(..., help="Directory with status logs"),
    output_csv: Path = typer.Argument(..., help="CSV report to write"),
    dataset_info_file: Path | None = typer.Option(
        None, "--dataset-info", "-d", dir_okay=False,
        help="Dataset info JSON (default: METIS_OPS_DATASET_INFO_FILE)",
    ),
) -> None:
    """List datasets renamed on import, grouped by their original name."""
    from metis_ops.core.errors import MissingConfigError
    from metis_ops.core.settings import get_settings
    from metis_ops.results.parser import ResultParser, read_dataset_info
    from metis_ops.results.reports import write_name_change_report

    with cli_errors():
        info_path = dataset_info_file or get_settings().dataset_info_file
        if info_path is None:
            raise MissingConfigError(
                "dataset_info_file",
                "No dataset info: pass --dataset-info or set METIS_OPS_DATASET_INFO_FILE",
            )
        dataset_info = read_dataset_info(info_path)
        results = ResultParser(directory, dataset_info=dataset_info).parse_all()

    count = write_name_change_report(output_csv, results, dataset_info)
    console.print(f"[green]✓[/green] Wrote {count} renamed datasets to {output_csv}")
