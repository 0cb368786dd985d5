"""Migration result model.

A ``MigrationResult`` is one line of a ``final-dataset-status-<runId>.log``
file: the final state of one plugin execution for one dataset during one
execution run. It carries the counters needed to decide whether the dataset
can move on to the next plugin (harvest -> preview -> publish).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Hashable, Protocol, runtime_checkable

from metis_ops.core.errors import ResultParseError

PRE_HARVEST_RUN_ID = "0000-00-00-000000"
FUTURE_RUN_ID = "9999-99-99-999999"

# Harvest errors of these datasets are known and accepted.
IGNORE_HARVEST_ERRORS_DATASETS = frozenset({
    "0940408", "0940414", "0940429", "0940431", "0940433", "0940435", "0940442",
})


@runtime_checkable
class Outcome(Protocol):
    """Anything the latest-outcome aggregator can retain."""

    @property
    def category(self) -> Hashable: ...

    @property
    def entity_id(self) -> str: ...

    @property
    def run_id(self) -> str: ...


class PluginType(str, Enum):
    """Processing plugin an execution ran."""

    OAIPMH_HARVEST = "OAIPMH_HARVEST"
    HTTP_HARVEST = "HTTP_HARVEST"
    VALIDATION_EXTERNAL = "VALIDATION_EXTERNAL"
    TRANSFORMATION = "TRANSFORMATION"
    VALIDATION_INTERNAL = "VALIDATION_INTERNAL"
    NORMALIZATION = "NORMALIZATION"
    ENRICHMENT = "ENRICHMENT"
    MEDIA_PROCESS = "MEDIA_PROCESS"
    LINK_CHECKING = "LINK_CHECKING"
    PREVIEW = "PREVIEW"
    PUBLISH = "PUBLISH"


# The chain the migration moves datasets along.
PLUGIN_CHAIN = (PluginType.OAIPMH_HARVEST, PluginType.PREVIEW, PluginType.PUBLISH)


class PluginStatus(str, Enum):
    INQUEUE = "INQUEUE"
    CLEANING = "CLEANING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class TaskStatus(str, Enum):
    """Status of the external (eCloud) task behind a plugin execution."""

    PENDING = "PENDING"
    SENT = "SENT"
    CURRENTLY_PROCESSING = "CURRENTLY_PROCESSING"
    DROPPED = "DROPPED"
    PROCESSED = "PROCESSED"


class ResultStatus(str, Enum):
    """Derived verdict on a result, in order of precedence."""

    EMPTY = "EMPTY"
    DID_NOT_END_NORMALLY = "DID_NOT_END_NORMALLY"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    TOTALS_DONT_MATCH = "TOTALS_DONT_MATCH"
    SUCCESS = "SUCCESS"


@dataclass(frozen=True)
class DatasetInfo:
    """Dataset naming as found in the database and in the source CSV."""

    name_in_db: str
    name_in_csv: str
    state_in_csv: str = ""

    @property
    def was_renamed(self) -> bool:
        return self.name_in_db != self.name_in_csv


_FIELDS = (
    ("dataset_id", "datasetId"),
    ("ecloud_dataset_id", "EcloudDatasetId"),
    ("execution_id", "ExecutionId"),
    ("plugin_type", "PluginType"),
    ("external_task_id", "ExternalTaskId"),
    ("plugin_status", "PluginStatus"),
    ("expected_records", "ExpectedRecords"),
    ("processed_records", "ProcessedRecords"),
    ("error_records", "ErrorRecords"),
    ("task_status", "TaskStatus"),
)

LINE_PATTERN = re.compile(
    r".*?- "
    + ", ".join(f"{label}: (?P<{group}>[^,].*)" for group, label in _FIELDS)
    + r".*"
)


def _parse_count(value: str) -> int | None:
    value = value.strip()
    if value == "UNKNOWN":
        return None
    count = int(value)
    return None if count == -1 else count


@dataclass(frozen=True)
class MigrationResult:
    """Final state of one plugin execution for one dataset in one run."""

    run_id: str
    dataset_id: str
    ecloud_dataset_id: str
    execution_id: str
    plugin_type: PluginType
    external_task_id: str
    plugin_status: PluginStatus
    expected_records: int | None
    processed_records: int | None
    error_records: int | None
    task_status: TaskStatus | None
    dataset_info: DatasetInfo | None = None

    # Outcome protocol
    @property
    def category(self) -> PluginType:
        return self.plugin_type

    @property
    def entity_id(self) -> str:
        return self.dataset_id

    @classmethod
    def from_line(
        cls,
        run_id: str,
        line: str,
        dataset_info: Callable[[str], DatasetInfo | None] | None = None,
    ) -> MigrationResult:
        """Parse one status log line.

        Raises:
            ResultParseError: The line does not have the expected shape.
        """
        match = LINE_PATTERN.fullmatch(line.strip())
        if match is None:
            raise ResultParseError(f"Line does not match pattern: {line}").with_context(
                run_id=run_id
            )

        strings = {
            name: match.group(name).strip()
            for name in ("dataset_id", "ecloud_dataset_id", "execution_id", "external_task_id")
        }
        if not all(strings.values()):
            raise ResultParseError(f"One of the string variables is empty: {line}").with_context(
                run_id=run_id
            )

        task_status = match.group("task_status").strip()
        try:
            return cls(
                run_id=run_id,
                plugin_type=PluginType(match.group("plugin_type").strip()),
                plugin_status=PluginStatus(match.group("plugin_status").strip()),
                task_status=None if task_status == "null" else TaskStatus(task_status),
                expected_records=_parse_count(match.group("expected_records")),
                processed_records=_parse_count(match.group("processed_records")),
                error_records=_parse_count(match.group("error_records")),
                dataset_info=dataset_info(strings["dataset_id"]) if dataset_info else None,
                **strings,
            )
        except ValueError as e:
            raise ResultParseError(
                f"Invalid value in line: {line}", cause=e
            ).with_context(run_id=run_id, dataset_id=strings["dataset_id"]) from e

    @property
    def ignores_harvest_errors(self) -> bool:
        return (
            self.plugin_type == PluginType.OAIPMH_HARVEST
            and self.dataset_id in IGNORE_HARVEST_ERRORS_DATASETS
        )

    @property
    def status(self) -> ResultStatus:
        errors_occurred = self.error_records is not None and self.error_records > 0

        if (
            self.processed_records == 0
            and not self.expected_records
            and not errors_occurred
            and self.plugin_status != PluginStatus.CANCELLED
        ):
            return ResultStatus.EMPTY

        if self.ignores_harvest_errors:
            return ResultStatus.SUCCESS

        if (
            self.plugin_status != PluginStatus.FINISHED
            or self.task_status != TaskStatus.PROCESSED
        ):
            return ResultStatus.DID_NOT_END_NORMALLY

        if errors_occurred:
            return ResultStatus.COMPLETED_WITH_ERRORS

        if (
            self.expected_records is None
            or self.processed_records is None
            or self.error_records is None
            or self.expected_records != self.processed_records
        ):
            return ResultStatus.TOTALS_DONT_MATCH

        return ResultStatus.SUCCESS

    def was_successful(self) -> bool:
        """Completed normally with no missing records or errors (or empty)."""
        return self.ignores_harvest_errors or self.status in (
            ResultStatus.EMPTY,
            ResultStatus.SUCCESS,
        )

    def should_do_again(self) -> bool:
        # Results are never redone for now.
        return False

    def ready_for_next_plugin(self) -> bool:
        """Successful, non-empty and definitive."""
        return (
            self.was_successful()
            and self.status != ResultStatus.EMPTY
            and not self.should_do_again()
        )

    def summary_with_status(self) -> str:
        task_status = self.task_status.value if self.task_status else None
        return (
            f"Dataset: {self.dataset_id}, Run {self.run_id}, "
            f"Plugin status: {self.plugin_status.value}, Task status: {task_status}"
        )

    def summary_with_counts(self) -> str:
        return (
            f"Dataset: {self.dataset_id}, Run {self.run_id}, "
            f"Expected records: {self.expected_records}, "
            f"Processed records: {self.processed_records}, Errors: {self.error_records}"
        )


def parse_line(
    run_id: str,
    line: str,
    dataset_info: Callable[[str], DatasetInfo | None] | None = None,
) -> MigrationResult:
    """Shorthand for ``MigrationResult.from_line``."""
    return MigrationResult.from_line(run_id, line, dataset_info)


__all__ = [
    "parse_line",
    "PRE_HARVEST_RUN_ID",
    "FUTURE_RUN_ID",
    "Outcome",
    "PluginType",
    "PLUGIN_CHAIN",
    "PluginStatus",
    "TaskStatus",
    "ResultStatus",
    "DatasetInfo",
    "MigrationResult",
]
