"""Migration results: model, latest-outcome aggregation, log parsing, reports."""

from metis_ops.results.aggregator import LatestOutcomeAggregator
from metis_ops.results.model import (
    FUTURE_RUN_ID,
    PLUGIN_CHAIN,
    PRE_HARVEST_RUN_ID,
    DatasetInfo,
    MigrationResult,
    Outcome,
    PluginStatus,
    PluginType,
    ResultStatus,
    TaskStatus,
    parse_line,
)
from metis_ops.results.parser import MigrationResults, ResultParser, read_dataset_info
from metis_ops.results.reports import (
    build_skip_list,
    plugin_statistics,
    write_invalidated_report,
    write_name_change_report,
    write_skip_file,
)

__all__ = [
    "LatestOutcomeAggregator",
    "FUTURE_RUN_ID",
    "PLUGIN_CHAIN",
    "PRE_HARVEST_RUN_ID",
    "DatasetInfo",
    "MigrationResult",
    "Outcome",
    "PluginStatus",
    "PluginType",
    "ResultStatus",
    "TaskStatus",
    "parse_line",
    "MigrationResults",
    "ResultParser",
    "read_dataset_info",
    "build_skip_list",
    "plugin_statistics",
    "write_invalidated_report",
    "write_name_change_report",
    "write_skip_file",
]
