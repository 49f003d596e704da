"""Tests for configuration loading, validation and hot reload."""

import os
import time
from pathlib import Path

import pytest
from pydantic import ValidationError

from threadparser.config import (
    ConfigChange,
    get_config,
    get_config_path,
    header_vocabulary,
    load_config,
    reload_config_if_changed,
    validate_config_file,
)
from threadparser.config_schema import AppConfig, ParserConfig, WorkerConfig
from threadparser.core.errors import ConfigLoadError, ConfigValidationError
from threadparser.parser.headers import DEFAULT_HEADER_FIELDS


def _touch_later(path: Path) -> None:
    future = time.time() + 10
    os.utime(path, (future, future))


class TestSchema:
    """Tests for the Pydantic schema."""

    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.database.path == "data/threadparser.db"
        assert config.parser.extra_header_fields == []
        assert config.parser.regex_timeout_seconds == 1.0
        assert config.worker.expiry_hours == 24
        assert config.notifications.delivery == "log"
        assert config.logging.level == "INFO"

    def test_sample_config(self, sample_config: AppConfig) -> None:
        assert sample_config.parser.extra_header_fields == ["x-priority"]
        assert sample_config.worker.batch_size == 5

    def test_header_fields_canonicalized(self) -> None:
        config = ParserConfig(extra_header_fields=["X Priority", "List-Id"])
        assert config.extra_header_fields == ["x-priority", "list-id"]

    def test_invalid_header_field(self) -> None:
        with pytest.raises(ValidationError):
            ParserConfig(extra_header_fields=["Bad: name"])
        with pytest.raises(ValidationError):
            ParserConfig(extra_header_fields=["   "])

    def test_worker_bounds(self) -> None:
        with pytest.raises(ValidationError):
            WorkerConfig(batch_size=0)
        with pytest.raises(ValidationError):
            WorkerConfig(expiry_hours=0)

    def test_database_path_traversal(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(database={"path": "../outside.db"})

    def test_unknown_delivery(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(notifications={"delivery": "email"})


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_valid_file(self, config_file: Path) -> None:
        config = load_config(config_file)
        assert config.database.path == "data/test.db"
        assert config.worker.interval_seconds == 30

    def test_missing_file(self, temp_config_dir: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(temp_config_dir / "missing.yaml")

    def test_invalid_yaml(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("worker: [unclosed\n")
        with pytest.raises(ConfigLoadError, match="Failed to parse YAML"):
            load_config(path)

    def test_not_a_mapping(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigLoadError, match="YAML mapping"):
            load_config(path)

    def test_empty_file_uses_defaults(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_validation_error_names_field(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("worker:\n  batch_size: 'many'\n")
        with pytest.raises(ConfigValidationError, match="worker.batch_size"):
            load_config(path)

    def test_validation_error_hints_header_names(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("parser:\n  extra_header_fields: ['Bad: name']\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)
        assert "parser.extra_header_fields:" in str(exc_info.value)
        assert "without the colon" in str(exc_info.value)

    def test_newer_schema_version(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("schema_version: 99\n")
        with pytest.raises(ConfigValidationError, match="newer than"):
            load_config(path)


class TestConfigSingleton:
    """Tests for get_config() and hot reload."""

    def test_env_var_path(self, config_file: Path, set_config_env: None) -> None:
        assert get_config_path() == config_file

    def test_default_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("THREADPARSER_CONFIG_PATH", raising=False)
        assert get_config_path() == Path("config/config.yaml")

    def test_get_config_is_cached(self, set_config_env: None) -> None:
        assert get_config() is get_config()

    def test_explicit_path(self, temp_config_dir: Path, set_config_env: None) -> None:
        """Asking for another file replaces the cached config."""
        other = temp_config_dir / "other.yaml"
        other.write_text("worker:\n  batch_size: 7\n")

        assert get_config().worker.batch_size == 5
        assert get_config(other).worker.batch_size == 7
        assert get_config(other) is get_config(other)

    def test_reload_without_load(self) -> None:
        assert reload_config_if_changed() is None

    def test_reload_unchanged(self, set_config_env: None) -> None:
        get_config()
        assert reload_config_if_changed() is None

    def test_reload_reports_changed_sections(
        self, config_file: Path, sample_config_yaml: str, set_config_env: None
    ) -> None:
        assert get_config().worker.batch_size == 5

        config_file.write_text(sample_config_yaml.replace("batch_size: 5", "batch_size: 50"))
        _touch_later(config_file)

        change = reload_config_if_changed()
        assert isinstance(change, ConfigChange)
        assert change.sections == {"worker"}
        assert change.touches("worker", "parser")
        assert not change.touches("parser")
        assert change.previous.worker.batch_size == 5
        assert get_config() is change.current
        assert get_config().worker.batch_size == 50

    def test_reload_picks_up_header_fields(
        self, config_file: Path, sample_config_yaml: str, set_config_env: None
    ) -> None:
        get_config()

        config_file.write_text(
            sample_config_yaml.replace('["X-Priority"]', '["X-Priority", "List-Id"]')
        )
        _touch_later(config_file)

        change = reload_config_if_changed()
        assert change is not None
        assert change.sections == {"parser"}
        assert change.current.parser.extra_header_fields == ["x-priority", "list-id"]

    def test_reload_only_once_per_edit(self, config_file: Path, set_config_env: None) -> None:
        get_config()
        config_file.write_text("worker:\n  batch_size: 50\n")
        _touch_later(config_file)

        assert reload_config_if_changed() is not None
        assert reload_config_if_changed() is None

    def test_invalid_reload_keeps_previous(self, config_file: Path, set_config_env: None) -> None:
        previous = get_config()

        config_file.write_text("worker:\n  batch_size: -1\n")
        _touch_later(config_file)

        assert reload_config_if_changed() is None
        assert get_config() is previous


class TestValidateConfigFile:
    """Tests for validate_config_file()."""

    def test_valid(self, config_file: Path) -> None:
        is_valid, message = validate_config_file(config_file)
        assert is_valid
        assert "data/test.db" in message
        assert f"header fields: {len(DEFAULT_HEADER_FIELDS) + 1} (extra: x-priority)" in message
        assert "regex timeout: 1.0s" in message

    def test_file_delivery_shows_path(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("notifications:\n  delivery: file\n  file_path: out/ready.jsonl\n")
        is_valid, message = validate_config_file(path)
        assert is_valid
        assert "notifications: file (out/ready.jsonl)" in message

    def test_missing(self, temp_config_dir: Path) -> None:
        is_valid, message = validate_config_file(temp_config_dir / "nope.yaml")
        assert not is_valid
        assert message.startswith("Load error")

    def test_invalid(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("notifications:\n  delivery: pigeon\n")
        is_valid, message = validate_config_file(path)
        assert not is_valid
        assert message.startswith("Validation error")
        assert "'log' or 'file'" in message


def test_header_vocabulary_deduplicates() -> None:
    config = AppConfig(parser={"extra_header_fields": ["Subject", "X-Priority"]})
    vocabulary = header_vocabulary(config)
    assert vocabulary[: len(DEFAULT_HEADER_FIELDS)] == DEFAULT_HEADER_FIELDS
    assert vocabulary[len(DEFAULT_HEADER_FIELDS):] == ("x-priority",)
