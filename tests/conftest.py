"""
Shared pytest fixtures for metis-ops tests.

This module provides:
- Settings and logging isolation between tests
- Status log builders (``status_line``, ``write_run_log``)
- A small vocabulary file for registry tests
"""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from metis_ops.core.settings import get_settings
from metis_ops.results.parser import LOG_FILE_PREFIX, LOG_FILE_SUFFIX


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Clear cached settings and keep a developer's .env / env vars out of tests."""
    for key in list(os.environ):
        if key.startswith("METIS_OPS_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """CLI runs reconfigure structlog onto a temporary stream; undo that."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Status log builders
# =============================================================================


def build_status_line(
    dataset_id: str,
    plugin_type: str = "OAIPMH_HARVEST",
    plugin_status: str = "FINISHED",
    expected: int | str = 10,
    processed: int | str = 10,
    errors: int | str = 0,
    task_status: str = "PROCESSED",
) -> str:
    """One line as written by the datasets execution script."""
    return (
        "2018-08-13 17:03:36 INFO  DatasetsExecutionMain - "
        f"datasetId: {dataset_id}, EcloudDatasetId: ecloud-{dataset_id}, "
        f"ExecutionId: exec-{dataset_id}, PluginType: {plugin_type}, "
        f"ExternalTaskId: task-{dataset_id}, PluginStatus: {plugin_status}, "
        f"ExpectedRecords: {expected}, ProcessedRecords: {processed}, "
        f"ErrorRecords: {errors}, TaskStatus: {task_status}"
    )


@pytest.fixture
def status_line() -> Callable[..., str]:
    return build_status_line


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "logs"
    directory.mkdir()
    return directory


@pytest.fixture
def write_run_log(results_dir: Path) -> Callable[[str, list[str]], Path]:
    """Write ``final-dataset-status-<run_id>.log`` with the given lines."""

    def _write(run_id: str, lines: list[str]) -> Path:
        path = results_dir / f"{LOG_FILE_PREFIX}{run_id}{LOG_FILE_SUFFIX}"
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


# =============================================================================
# Vocabularies
# =============================================================================


SAMPLE_VOCABULARIES = """
known_namespaces:
  rdf:
    uri: "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
  skos:
    uri: "http://www.w3.org/2004/02/skos/core#"
    capitalize:
      concept: Concept

namespace_sets:
  - name: GENERAL_OUTPUT
    namespaces: [rdf, skos]
  - name: GENERAL_INPUT
    namespaces:
      - rdf
      - rdfs: "http://www.w3.org/2000/01/rdf-schema#"
  - name: TEST_VOCAB
    applies_to: ["http://example.org/vocab/"]
    namespaces:
      - skos
      - ex: "http://example.org/ns#"
      - ex_term: "http://example.org/ns/term#"
"""


@pytest.fixture
def vocabularies_file(tmp_path: Path) -> Path:
    path = tmp_path / "vocabularies.yaml"
    path.write_text(SAMPLE_VOCABULARIES, encoding="utf-8")
    return path
