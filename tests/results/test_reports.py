"""Tests for statistics, skip lists and the CSV reports."""

import csv

import pytest

from metis_ops.results.aggregator import LatestOutcomeAggregator
from metis_ops.results.model import (
    DatasetInfo,
    MigrationResult,
    PluginStatus,
    PluginType,
    ResultStatus,
    TaskStatus,
)
from metis_ops.results.reports import (
    INVALIDATED_REPORT_HEADER,
    NAME_CHANGE_REPORT_HEADER,
    build_skip_list,
    invalidated_rows,
    is_invalidated,
    name_change_groups,
    name_change_rows,
    plugin_statistics,
    write_invalidated_report,
    write_name_change_report,
    write_skip_file,
)

HARVEST = PluginType.OAIPMH_HARVEST
PREVIEW = PluginType.PREVIEW
PUBLISH = PluginType.PUBLISH


def result(dataset_id, plugin_type, run_id, *, failed=False, errors=0, processed=10, info=None):
    return MigrationResult(
        run_id=run_id,
        dataset_id=dataset_id,
        ecloud_dataset_id="ecloud",
        execution_id="exec",
        plugin_type=plugin_type,
        external_task_id="task",
        plugin_status=PluginStatus.FAILED if failed else PluginStatus.FINISHED,
        expected_records=10,
        processed_records=processed,
        error_records=errors,
        task_status=TaskStatus.PROCESSED,
        dataset_info=info,
    )


@pytest.fixture
def results():
    """Harvest A ok, B failed, C re-harvested after its preview; previews of A and C."""
    aggregator = LatestOutcomeAggregator()
    aggregator.record_all([
        result("A", HARVEST, "r1"),
        result("B", HARVEST, "r1", failed=True),
        result("C", HARVEST, "r3"),
        result("A", PREVIEW, "r2"),
        result("C", PREVIEW, "r2"),
    ])
    return aggregator


class TestPluginStatistics:
    def test_counts_by_status(self, results):
        stats = plugin_statistics(results, HARVEST)
        assert stats.total == 3
        assert stats.count(ResultStatus.SUCCESS) == 2
        assert stats.count(ResultStatus.DID_NOT_END_NORMALLY) == 1
        assert stats.count(ResultStatus.EMPTY) == 0
        assert stats.successful_records == 20

    def test_plugin_without_results(self, results):
        stats = plugin_statistics(results, PUBLISH)
        assert stats.total == 0
        assert stats.successful_records == 0


class TestIsInvalidated:
    def test_later_ready_previous_result(self, results):
        harvests = results.get(HARVEST)
        assert is_invalidated(results.get(PREVIEW)["C"], harvests)
        assert not is_invalidated(results.get(PREVIEW)["A"], harvests)

    def test_later_failed_previous_result_does_not_invalidate(self):
        previous = {"A": result("A", HARVEST, "r3", failed=True)}
        assert not is_invalidated(result("A", PREVIEW, "r2"), previous)


class TestBuildSkipList:
    def test_harvest_skips_everything_already_harvested(self, results):
        skip_list = build_skip_list(results, HARVEST, ignored=["X"])
        assert skip_list.sorted_ids() == ["A", "B", "C", "X"]
        assert skip_list.available == []

    def test_preview(self, results):
        skip_list = build_skip_list(results, PREVIEW)
        # A: previewed; B: harvest failed; C: preview invalidated by the re-harvest
        assert skip_list.sorted_ids() == ["A", "B"]
        assert skip_list.invalidated == {"C"}
        assert [r.dataset_id for r in skip_list.available] == ["C"]
        assert skip_list.available_records == 10

    def test_publish(self, results):
        skip_list = build_skip_list(results, PUBLISH)
        # B never made it through harvest nor preview
        assert skip_list.sorted_ids() == ["B"]
        assert sorted(r.dataset_id for r in skip_list.available) == ["A", "C"]

    def test_publish_skips_failed_preview(self, results):
        results.record(result("A", PREVIEW, "r4", errors=2))
        skip_list = build_skip_list(results, PUBLISH)
        assert skip_list.sorted_ids() == ["A", "B"]

    def test_ignored_always_skipped(self, results):
        skip_list = build_skip_list(results, PREVIEW, ignored=["C"])
        assert "C" in skip_list.skip
        assert skip_list.available == []

    def test_plugin_outside_chain(self, results):
        with pytest.raises(ValueError):
            build_skip_list(results, PluginType.ENRICHMENT)


class TestWriteSkipFile:
    def test_sorted_unique_lines(self, tmp_path):
        path = tmp_path / "skip" / "processed-datasets-preview.log"
        count = write_skip_file(path, ["9200365", "01004", "9200365"])
        assert count == 2
        assert path.read_text() == "01004\n9200365\n"

    def test_empty(self, tmp_path):
        path = tmp_path / "empty.log"
        assert write_skip_file(path, []) == 0
        assert path.read_text() == ""


class TestInvalidatedReport:
    @pytest.fixture
    def before_after(self):
        before = LatestOutcomeAggregator()
        before.record_all([
            result("A", HARVEST, "r1", info=DatasetInfo("A db", "A csv")),
            result("B", PREVIEW, "r1", failed=True),
        ])
        after = LatestOutcomeAggregator()
        after.record_all([
            result("A", HARVEST, "r3", errors=2, info=DatasetInfo("A db", "A csv")),
            result("B", PREVIEW, "r3"),
            result("D", HARVEST, "r3"),
        ])
        return before, after

    def test_rows(self, before_after):
        rows = invalidated_rows(*before_after)
        assert rows == [
            ["A", "A csv", "OAIPMH_HARVEST",
             "r1", "SUCCEEDED", "10", "0",
             "r3", "COMPLETED_WITH_ERRORS", "10", "2"],
            ["B", "", "PREVIEW",
             "r1", "FAILED", "", "",
             "r3", "SUCCEEDED", "10", "0"],
        ]

    def test_write_csv(self, tmp_path, before_after):
        path = tmp_path / "invalidated_report.csv"
        assert write_invalidated_report(path, *before_after) == 2
        with path.open(newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == INVALIDATED_REPORT_HEADER
        assert [row[0] for row in rows[1:]] == ["A", "B"]


class TestNameChangeReport:
    @pytest.fixture
    def dataset_info(self):
        return {
            "1": DatasetInfo("Paintings", "Paintings"),
            "2": DatasetInfo("Paintings_1", "Paintings"),
            "3": DatasetInfo("Paintings_2", "Paintings"),
            "4": DatasetInfo("Maps_1", "Maps"),
            "5": DatasetInfo("Letters", "Letters"),
        }

    @pytest.fixture
    def harvests(self):
        aggregator = LatestOutcomeAggregator()
        aggregator.record_all([
            result("1", HARVEST, "r1", processed=120),
            result("2", HARVEST, "r1", processed=None),
            result("4", HARVEST, "r2", processed=7),
            result("3", PREVIEW, "r2"),
        ])
        return aggregator

    def test_groups_by_original_name(self, dataset_info):
        groups = name_change_groups(dataset_info)
        assert list(groups) == ["Maps", "Paintings"]
        assert [dataset_id for dataset_id, _ in groups["Paintings"]] == ["1", "2", "3"]
        assert [dataset_id for dataset_id, _ in groups["Maps"]] == ["4"]

    def test_unrenamed_only_gives_no_groups(self):
        assert name_change_groups({"5": DatasetInfo("Letters", "Letters")}) == {}

    def test_rows(self, harvests, dataset_info):
        blank = [""] * 5
        assert name_change_rows(harvests, dataset_info) == [
            blank,
            ["Maps", "Maps_1", "4", "Yes", "7"],
            blank,
            ["Paintings", "Paintings", "1", "Yes", "120"],
            ["Paintings", "Paintings_1", "2", "Yes", ""],
            ["Paintings", "Paintings_2", "3", "No", ""],
        ]

    def test_write_csv(self, tmp_path, harvests, dataset_info):
        path = tmp_path / "reports" / "duplicate_name_report.csv"
        assert write_name_change_report(path, harvests, dataset_info) == 3
        with path.open(newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == NAME_CHANGE_REPORT_HEADER
        assert len(rows) == 7
