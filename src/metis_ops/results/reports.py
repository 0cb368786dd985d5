"""Reports built from aggregated migration results.

- ``plugin_statistics``: how many datasets ended in each ``ResultStatus``
- ``build_skip_list``: dataset ids the next execution run must skip
- ``write_skip_file`` / ``write_invalidated_report``: file outputs
- ``write_name_change_report``: datasets renamed on import, next to the
  dataset that kept the original name

Skip lists follow the plugin chain harvest -> preview -> publish. A dataset
is skipped for a plugin when it already has a definitive result for that
plugin, unless that result is *invalidated*: the previous plugin has a later
result that is ready to build on. Datasets whose earlier plugins are not
ready are skipped as well.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from metis_ops.core.logging import get_logger
from metis_ops.results.aggregator import LatestOutcomeAggregator
from metis_ops.results.model import (
    PLUGIN_CHAIN,
    DatasetInfo,
    MigrationResult,
    PluginType,
    ResultStatus,
)

logger = get_logger(__name__)

INVALIDATED_REPORT_HEADER = [
    "ID", "Name", "Plugin",
    "Run 1", "Plugin status 1", "Processed 1", "Errors 1",
    "Run 2", "Plugin status 2", "Processed 2", "Errors 2",
]

SKIP_FILE_NAMES = {
    PluginType.OAIPMH_HARVEST: "processed-datasets-harvesting.log",
    PluginType.PREVIEW: "processed-datasets-preview.log",
    PluginType.PUBLISH: "processed-datasets-publish.log",
}

NAME_CHANGE_REPORT_HEADER = ["Original name", "Unique name", "ID", "Harvested", "Processed records"]


@dataclass
class PluginStatistics:
    """Results of one plugin grouped by their derived status."""

    plugin_type: PluginType
    by_status: dict[ResultStatus, list[MigrationResult]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(results) for results in self.by_status.values())

    def count(self, status: ResultStatus) -> int:
        return len(self.by_status.get(status, []))

    @property
    def successful_records(self) -> int:
        return sum(
            result.processed_records or 0
            for result in self.by_status.get(ResultStatus.SUCCESS, [])
        )


@dataclass
class SkipList:
    """Outcome of ``build_skip_list`` for one plugin."""

    plugin_type: PluginType
    skip: set[str]
    available: list[MigrationResult] = field(default_factory=list)
    invalidated: set[str] = field(default_factory=set)

    @property
    def available_records(self) -> int:
        return sum(result.processed_records or 0 for result in self.available)

    def sorted_ids(self) -> list[str]:
        return sorted(self.skip)


def plugin_statistics(
    results: LatestOutcomeAggregator[MigrationResult], plugin_type: PluginType
) -> PluginStatistics:
    stats = PluginStatistics(plugin_type=plugin_type)
    for result in results.get(plugin_type).values():
        stats.by_status.setdefault(result.status, []).append(result)
    return stats


def is_invalidated(
    result: MigrationResult, previous_plugin_results: Mapping[str, MigrationResult]
) -> bool:
    """Whether the previous plugin has a later result that is ready to build on."""
    previous = previous_plugin_results.get(result.dataset_id)
    return (
        previous is not None
        and previous.ready_for_next_plugin()
        and previous.run_id > result.run_id
    )


def _not_ready(results: Mapping[str, MigrationResult]) -> set[str]:
    return {dataset_id for dataset_id, r in results.items() if not r.ready_for_next_plugin()}


def build_skip_list(
    results: LatestOutcomeAggregator[MigrationResult],
    plugin_type: PluginType,
    ignored: Iterable[str] = (),
) -> SkipList:
    """Compute the datasets the next run of ``plugin_type`` must skip.

    Args:
        results: Latest results per plugin, over all runs
        plugin_type: One of harvest, preview or publish
        ignored: Datasets that are always skipped (e.g. known to be too large)
    """
    if plugin_type not in PLUGIN_CHAIN:
        raise ValueError(f"No skip list rules for plugin {plugin_type.value}")

    this_plugin = results.get(plugin_type)
    ignored = set(ignored)
    skip = set(ignored)
    skip.update(r.dataset_id for r in this_plugin.values() if not r.should_do_again())

    position = PLUGIN_CHAIN.index(plugin_type)
    if position == 0:
        return SkipList(plugin_type=plugin_type, skip=skip)

    chain = [results.get(p) for p in PLUGIN_CHAIN[: position + 1]]
    previous = chain[position - 1]

    invalidated = {r.dataset_id for r in this_plugin.values() if is_invalidated(r, previous)}
    skip -= invalidated

    # Everything an earlier plugin did not finish properly
    for earlier in chain[:position]:
        skip |= _not_ready(earlier)

    # Datasets that did not make it through an intermediate plugin
    for before, intermediate in zip(chain[: position - 1], chain[1:position]):
        failed = _not_ready(intermediate)
        skip.update(
            dataset_id
            for dataset_id in before
            if dataset_id not in intermediate or dataset_id in failed
        )

    # Invalidation never un-skips an ignored dataset
    skip |= ignored

    available = [
        r for r in previous.values() if r.ready_for_next_plugin() and r.dataset_id not in skip
    ]
    skip_list = SkipList(
        plugin_type=plugin_type, skip=skip, available=available, invalidated=invalidated
    )
    logger.info(
        "skip_list.built",
        plugin=plugin_type.value,
        skipped=len(skip),
        available=len(available),
        available_records=skip_list.available_records,
        invalidated=len(invalidated),
    )
    return skip_list


def write_skip_file(path: Path, dataset_ids: Iterable[str]) -> int:
    """Write one dataset id per line, sorted. Returns the number written."""
    ids = sorted(set(dataset_ids))
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as f:
        for dataset_id in ids:
            f.write(f"{dataset_id}\n")
    logger.info("skip_file.written", path=str(path), count=len(ids))
    return len(ids)


def _result_columns(result: MigrationResult) -> list[str]:
    if result.status == ResultStatus.DID_NOT_END_NORMALLY:
        return [result.run_id, "FAILED", "", ""]
    verdict = (
        "COMPLETED_WITH_ERRORS"
        if result.status == ResultStatus.COMPLETED_WITH_ERRORS
        else "SUCCEEDED"
    )
    return [
        result.run_id,
        verdict,
        "" if result.processed_records is None else str(result.processed_records),
        "" if result.error_records is None else str(result.error_records),
    ]


def invalidated_rows(
    before: LatestOutcomeAggregator[MigrationResult],
    after: LatestOutcomeAggregator[MigrationResult],
) -> list[list[str]]:
    """Rows comparing datasets processed both before and after a split run."""
    rows = []
    for plugin_type in PLUGIN_CHAIN:
        earlier = before.get(plugin_type)
        for dataset_id, later in after.get(plugin_type).items():
            if dataset_id not in earlier:
                continue
            name = later.dataset_info.name_in_csv if later.dataset_info else ""
            rows.append(
                [dataset_id, name, plugin_type.value]
                + _result_columns(earlier[dataset_id])
                + _result_columns(later)
            )
    return rows


def write_invalidated_report(
    path: Path,
    before: LatestOutcomeAggregator[MigrationResult],
    after: LatestOutcomeAggregator[MigrationResult],
) -> int:
    """Write the before/after comparison CSV. Returns the number of data rows."""
    rows = invalidated_rows(before, after)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(INVALIDATED_REPORT_HEADER)
        writer.writerows(rows)
    logger.info("invalidated_report.written", path=str(path), rows=len(rows))
    return len(rows)


def name_change_groups(
    dataset_info: Mapping[str, DatasetInfo],
) -> dict[str, list[tuple[str, DatasetInfo]]]:
    """Renamed datasets grouped by their original (CSV) name.

    A dataset that kept the original name is listed first in its group.
    Groups are ordered by original name, members by dataset id.
    """
    unchanged_by_name = {
        info.name_in_db: dataset_id
        for dataset_id, info in sorted(dataset_info.items())
        if not info.was_renamed
    }
    groups: dict[str, list[tuple[str, DatasetInfo]]] = {}
    for dataset_id, info in sorted(dataset_info.items()):
        if info.was_renamed:
            groups.setdefault(info.name_in_csv, []).append((dataset_id, info))
    for original_name, members in groups.items():
        unchanged = unchanged_by_name.get(original_name)
        if unchanged is not None:
            members.insert(0, (unchanged, dataset_info[unchanged]))
    return dict(sorted(groups.items()))


def name_change_rows(
    results: LatestOutcomeAggregator[MigrationResult],
    dataset_info: Mapping[str, DatasetInfo],
) -> list[list[str]]:
    """Report rows; every group is preceded by an empty row."""
    harvests = results.get(PluginType.OAIPMH_HARVEST)
    rows = []
    for members in name_change_groups(dataset_info).values():
        rows.append([""] * len(NAME_CHANGE_REPORT_HEADER))
        for dataset_id, info in members:
            harvest = harvests.get(dataset_id)
            processed = ""
            if harvest is not None and harvest.processed_records is not None:
                processed = str(harvest.processed_records)
            rows.append([
                info.name_in_csv,
                info.name_in_db,
                dataset_id,
                "No" if harvest is None else "Yes",
                processed,
            ])
    return rows


def write_name_change_report(
    path: Path,
    results: LatestOutcomeAggregator[MigrationResult],
    dataset_info: Mapping[str, DatasetInfo],
) -> int:
    """Write the renamed datasets CSV. Returns the number of renamed datasets."""
    rows = name_change_rows(results, dataset_info)
    renamed = sum(1 for info in dataset_info.values() if info.was_renamed)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(NAME_CHANGE_REPORT_HEADER)
        writer.writerows(rows)
    logger.info("name_change_report.written", path=str(path), renamed=renamed)
    return renamed


__all__ = [
    "INVALIDATED_REPORT_HEADER",
    "NAME_CHANGE_REPORT_HEADER",
    "SKIP_FILE_NAMES",
    "PluginStatistics",
    "SkipList",
    "plugin_statistics",
    "is_invalidated",
    "build_skip_list",
    "write_skip_file",
    "invalidated_rows",
    "write_invalidated_report",
    "name_change_groups",
    "name_change_rows",
    "write_name_change_report",
]
