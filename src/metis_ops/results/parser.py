"""Reads execution status logs into a ``LatestOutcomeAggregator``.

The datasets execution script writes one ``final-dataset-status-<runId>.log``
per run, where ``<runId>`` is a ``YYYY-MM-DD-HHMMSS`` timestamp, so sorting
file names sorts runs chronologically. ``ResultParser`` selects the logs of a
run range and feeds every line into a fresh aggregator.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from metis_ops.core.errors import InvalidConfigError, MissingConfigError, OpsError
from metis_ops.core.logging import LogContext, get_logger
from metis_ops.core.settings import OpsSettings, get_settings
from metis_ops.results.aggregator import LatestOutcomeAggregator
from metis_ops.results.model import (
    FUTURE_RUN_ID,
    PRE_HARVEST_RUN_ID,
    DatasetInfo,
    MigrationResult,
    PluginStatus,
    PluginType,
    TaskStatus,
)

logger = get_logger(__name__)

LOG_FILE_PREFIX = "final-dataset-status-"
LOG_FILE_SUFFIX = ".log"

MigrationResults = LatestOutcomeAggregator[MigrationResult]


def run_id_of(path: Path) -> str | None:
    """Run id encoded in a status log file name, or None for other files."""
    name = path.name
    if not (name.startswith(LOG_FILE_PREFIX) and name.endswith(LOG_FILE_SUFFIX)):
        return None
    return name[len(LOG_FILE_PREFIX):-len(LOG_FILE_SUFFIX)]


def read_dataset_info(path: Path) -> dict[str, DatasetInfo]:
    """Load ``{dataset_id: {"nameInDb", "nameInCsv", "stateInCsv"}}`` JSON.

    Raises:
        InvalidConfigError: The file is missing, is not JSON of that shape,
            or lacks a required name.
    """
    logger.info("dataset_info.reading", path=str(path))
    try:
        with path.open(encoding="utf-8") as f:
            raw = json.load(f)
        return {
            dataset_id: DatasetInfo(
                name_in_db=info["nameInDb"],
                name_in_csv=info["nameInCsv"],
                state_in_csv=info.get("stateInCsv", ""),
            )
            for dataset_id, info in raw.items()
        }
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise InvalidConfigError(
            "dataset_info_file", str(path), f"Cannot read dataset info from {path}: {e!r}"
        ) from e


class ResultParser:
    """Parses a directory of status logs.

    Args:
        directory: Directory containing the status logs
        dataset_info: Dataset id -> naming info, attached to each result
        pre_processed: Dataset id -> record count of datasets migrated before
            the first logged run; injected as finished harvest and preview
            results under ``PRE_HARVEST_RUN_ID``
    """

    def __init__(
        self,
        directory: Path,
        dataset_info: Mapping[str, DatasetInfo] | None = None,
        pre_processed: Mapping[str, int] | None = None,
    ):
        self.directory = Path(directory)
        self.dataset_info = dict(dataset_info or {})
        self.pre_processed = dict(pre_processed or {})

    @classmethod
    def from_settings(
        cls, settings: OpsSettings | None = None, directory: Path | None = None
    ) -> ResultParser:
        """Parser over ``directory`` (default: ``results_dir``) with the configured dataset info."""
        settings = settings or get_settings()
        dataset_info = None
        if settings.dataset_info_file is not None:
            dataset_info = read_dataset_info(settings.dataset_info_file)
        return cls(directory or settings.results_dir, dataset_info=dataset_info)

    def log_files(self, from_run_id: str, to_run_id: str) -> list[Path]:
        """Status logs with ``from_run_id <= run id < to_run_id``, oldest first."""
        if not self.directory.is_dir():
            raise MissingConfigError(
                "results_dir", f"Results directory does not exist: {self.directory}"
            )
        files = []
        for path in self.directory.iterdir():
            run_id = run_id_of(path)
            if run_id is not None and from_run_id <= run_id < to_run_id:
                files.append(path)
        return sorted(files, key=lambda p: p.name)

    def parse_all(self) -> MigrationResults:
        return self.parse(PRE_HARVEST_RUN_ID, FUTURE_RUN_ID)

    def parse_from(self, run_id: str) -> MigrationResults:
        return self.parse(run_id, FUTURE_RUN_ID)

    def parse(self, from_run_id: str, to_run_id: str) -> MigrationResults:
        results: MigrationResults = LatestOutcomeAggregator()
        if PRE_HARVEST_RUN_ID >= from_run_id:
            self._add_pre_processed(results)
        for path in self.log_files(from_run_id, to_run_id):
            self._process_file(path, results)
        return results

    def _add_pre_processed(self, results: MigrationResults) -> None:
        if not self.pre_processed:
            return
        logger.info("run.parsing", run_id=PRE_HARVEST_RUN_ID, datasets=len(self.pre_processed))
        for dataset_id, size in self.pre_processed.items():
            for plugin_type in (PluginType.OAIPMH_HARVEST, PluginType.PREVIEW):
                results.record(
                    MigrationResult(
                        run_id=PRE_HARVEST_RUN_ID,
                        dataset_id=dataset_id,
                        ecloud_dataset_id="UNKNOWN",
                        execution_id="UNKNOWN",
                        plugin_type=plugin_type,
                        external_task_id="UNKNOWN",
                        plugin_status=PluginStatus.FINISHED,
                        expected_records=size,
                        processed_records=size,
                        error_records=0,
                        task_status=TaskStatus.PROCESSED,
                        dataset_info=self.dataset_info.get(dataset_id),
                    )
                )

    def _process_file(self, path: Path, results: MigrationResults) -> None:
        run_id = run_id_of(path)
        with LogContext(run_id=run_id):
            logger.info("run.parsing", file=path.name)
            try:
                # Decoded up front: an unreadable file contributes no results at all
                lines = path.read_text(encoding="utf-8").splitlines()
            except (OSError, UnicodeDecodeError) as e:
                # One unreadable log should not lose the other runs.
                logger.error("run.unreadable", file=path.name, error=str(e))
                return
            try:
                for line in lines:
                    if line.strip():
                        results.record(
                            MigrationResult.from_line(run_id, line, self.dataset_info.get)
                        )
            except OpsError as e:
                logger.error("run.invalid_line", file=path.name, **e.to_dict())
                raise


__all__ = [
    "LOG_FILE_PREFIX",
    "LOG_FILE_SUFFIX",
    "MigrationResults",
    "ResultParser",
    "read_dataset_info",
    "run_id_of",
]
