"""Tests for core.settings module.

Covers:
- OpsSettings defaults
- METIS_OPS_ environment variable override
- .env file support
- Validation of retry values
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from metis_ops.core.settings import OpsSettings, get_settings


class TestOpsSettingsDefaults:
    def test_default_log_level(self):
        assert OpsSettings().log_level == "INFO"

    def test_log_json_auto(self):
        assert OpsSettings().log_json is None

    def test_retry_defaults_are_unbounded_with_two_seconds(self):
        s = OpsSettings()
        assert s.retry_limit is None
        assert s.retry_delay_seconds == 2.0

    def test_results_dir_under_cwd(self, tmp_path):
        assert OpsSettings().results_dir == Path.cwd() / "logs"

    def test_optional_files_unset(self):
        s = OpsSettings()
        assert s.dataset_info_file is None
        assert s.vocabularies_file is None


class TestOpsSettingsEnvOverride:
    def test_retry_from_env(self, monkeypatch):
        monkeypatch.setenv("METIS_OPS_RETRY_LIMIT", "5")
        monkeypatch.setenv("METIS_OPS_RETRY_DELAY_SECONDS", "0.5")
        s = OpsSettings()
        assert s.retry_limit == 5
        assert s.retry_delay_seconds == 0.5

    def test_paths_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("METIS_OPS_RESULTS_DIR", str(tmp_path))
        assert OpsSettings().results_dir == tmp_path

    def test_unprefixed_vars_ignored(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert OpsSettings().log_level == "INFO"

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("METIS_OPS_LOG_LEVEL=WARNING\n")
        assert OpsSettings().log_level == "WARNING"


class TestOpsSettingsValidation:
    def test_negative_retry_limit_rejected(self, monkeypatch):
        monkeypatch.setenv("METIS_OPS_RETRY_LIMIT", "-1")
        with pytest.raises(ValidationError):
            OpsSettings()

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            OpsSettings(retry_delay_seconds=-0.1)


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_cache_clear_rereads_env(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("METIS_OPS_LOG_LEVEL", "ERROR")
        get_settings.cache_clear()
        second = get_settings()
        assert first.log_level == "INFO"
        assert second.log_level == "ERROR"
