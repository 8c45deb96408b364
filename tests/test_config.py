"""
Tests for configuration and logging setup
=========================================
"""

import json
import logging

import pytest

from keycorrect import config as kc_config
from keycorrect.config_logging import (
    DictionaryLoadError, JsonFormatter, KeyCorrectError, LogConfig, StructuredLogger, get_logger,
)


class TestConfigDefaults:
    """Tests for default values."""

    def test_defaults(self):
        cfg = kc_config.get_config()
        assert cfg.dictionary.languages == ["en", "id"]
        assert cfg.matching.max_edit_distance == 2
        assert cfg.matching.adjacent_substitution_cost == 0.5
        assert cfg.ranking.max_suggestions == 5
        assert cfg.ranking.contraction_confidence == 0.95
        assert cfg.session.auto_apply_threshold == 0.8
        assert cfg.session.ambiguity_margin == 0.05
        assert cfg.session.context_size == 10
        assert cfg.backup.format_version == 1

    def test_singleton(self):
        assert kc_config.get_config() is kc_config.get_config()


class TestConfigSources:
    """Tests for file and environment overrides."""

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("KEYCORRECT_MAX_SUGGESTIONS", "3")
        monkeypatch.setenv("KEYCORRECT_LANGUAGES", "en, fr")
        monkeypatch.setenv("KEYCORRECT_ENABLED", "no")
        kc_config.reset_config()

        cfg = kc_config.get_config()
        assert cfg.ranking.max_suggestions == 3
        assert cfg.dictionary.languages == ["en", "fr"]
        assert cfg.session.enabled is False

    def test_invalid_env_ignored(self, monkeypatch):
        monkeypatch.setenv("KEYCORRECT_MAX_SUGGESTIONS", "many")
        kc_config.reset_config()
        assert kc_config.get_config().ranking.max_suggestions == 5

    def test_file_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom_config.json"
        path.write_text(json.dumps({"session": {"auto_apply_threshold": 0.9},
                                    "unknown": {"x": 1}}), encoding="utf-8")
        monkeypatch.setenv("KEYCORRECT_CONFIG_FILE", str(path))
        kc_config.reset_config()
        assert kc_config.get_config().session.auto_apply_threshold == 0.9

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom_config.json"
        path.write_text(json.dumps({"ranking": {"max_suggestions": 7}}), encoding="utf-8")
        monkeypatch.setenv("KEYCORRECT_CONFIG_FILE", str(path))
        monkeypatch.setenv("KEYCORRECT_MAX_SUGGESTIONS", "2")
        kc_config.reset_config()
        assert kc_config.get_config().ranking.max_suggestions == 2

    def test_broken_file_ignored(self, tmp_path, monkeypatch):
        path = tmp_path / "broken.json"
        path.write_text("{broken", encoding="utf-8")
        monkeypatch.setenv("KEYCORRECT_CONFIG_FILE", str(path))
        kc_config.reset_config()
        assert kc_config.get_config().ranking.max_suggestions == 5


class TestConfigApi:
    """Tests for get/set/save."""

    def test_get(self):
        assert kc_config.get("session.auto_apply_threshold") == 0.8
        assert kc_config.get("session.missing", "fallback") == "fallback"

    def test_set(self):
        kc_config.set("ranking.max_suggestions", 3)
        assert kc_config.get_config().ranking.max_suggestions == 3

    @pytest.mark.parametrize("key", ["ranking", "nope.key", "ranking.nope"])
    def test_set_invalid(self, key):
        with pytest.raises(ValueError):
            kc_config.set(key, 1)

    def test_save_and_reload(self, tmp_path, monkeypatch):
        path = tmp_path / "saved.json"
        kc_config.set("session.ambiguity_margin", 0.1)
        kc_config.save_config(path)

        monkeypatch.setenv("KEYCORRECT_CONFIG_FILE", str(path))
        kc_config.reset_config()
        assert kc_config.get_config().session.ambiguity_margin == 0.1


class TestLogging:
    """Tests for the structured logging helpers."""

    def test_log_config_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("KEYCORRECT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("KEYCORRECT_LOG_FORMAT", "json")
        monkeypatch.setenv("KEYCORRECT_LOG_DIR", str(tmp_path))
        cfg = LogConfig.from_env()
        assert cfg.log_level == "DEBUG"
        assert cfg.log_format == "json"
        assert cfg.log_dir == tmp_path

    def test_get_logger_cached(self):
        assert get_logger("keycorrect.test") is get_logger("keycorrect.test")

    def test_correlation_id(self):
        StructuredLogger.set_correlation_id("job-1")
        assert StructuredLogger.get_correlation_id() == "job-1"
        new_id = StructuredLogger.new_correlation_id()
        assert new_id != "job-1"
        assert StructuredLogger.get_correlation_id() == new_id

    def test_json_formatter(self):
        record = logging.LogRecord("keycorrect", logging.INFO, __file__, 1, "loaded", None, None)
        record.language = "en"
        data = json.loads(JsonFormatter().format(record))
        assert data["message"] == "loaded"
        assert data["language"] == "en"

    def test_error_to_dict(self):
        error = DictionaryLoadError("missing", language="fr")
        assert isinstance(error, KeyCorrectError)
        assert error.to_dict()["error"]["details"]["language"] == "fr"
        assert error.code == "LOAD_ERROR"
