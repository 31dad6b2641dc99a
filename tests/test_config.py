"""Tests for the layered config: key checks, value rules, dotted-key edits."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from uistable.core.config import (
    CONFIG_DIRNAME,
    DEFAULT_CONFIG_FILENAME,
    config_keys,
    env_layer,
    env_var_name,
    find_config_file,
    load_config,
    read_config_file,
    save_config,
    set_config_value,
)
from uistable.core.exceptions import ConfigError
from uistable.core.models import Config

_NOWHERE = Path("/nonexistent/uistable.config.yaml")


def _write(path: Path, data: object) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestConfigKeys:
    def test_lists_every_leaf(self) -> None:
        assert config_keys() == [
            "idle.threshold",
            "idle.timeout_ms",
            "idle.poll_interval_ms",
            "idle.strict_exact_match",
            "log_level",
        ]

    def test_env_var_name(self) -> None:
        assert env_var_name("idle.poll_interval_ms") == "UISTABLE_IDLE__POLL_INTERVAL_MS"
        assert env_var_name("log_level") == "UISTABLE_LOG_LEVEL"


class TestLayers:
    def test_defaults_without_file(self) -> None:
        config = load_config(config_path=_NOWHERE)
        assert config.idle.threshold == 100
        assert config.idle.timeout_ms == 3000
        assert config.log_level == "WARNING"

    def test_yaml_then_env_then_overrides(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = _write(
            tmp_path / DEFAULT_CONFIG_FILENAME,
            {"idle": {"threshold": 60, "timeout_ms": 9000, "poll_interval_ms": 200}},
        )
        monkeypatch.setenv("UISTABLE_IDLE__THRESHOLD", "70")
        monkeypatch.setenv("UISTABLE_IDLE__TIMEOUT_MS", "8000")

        config = load_config(config_path=path, overrides={"idle": {"threshold": 80}})

        assert config.idle.threshold == 80
        assert config.idle.timeout_ms == 8000
        assert config.idle.poll_interval_ms == 200

    def test_empty_override_section_is_harmless(self) -> None:
        config = load_config(config_path=_NOWHERE, overrides={"idle": {}})
        assert config.idle.poll_interval_ms == 500

    def test_discovers_file_in_parent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / CONFIG_DIRNAME).mkdir()
        _write(tmp_path / CONFIG_DIRNAME / DEFAULT_CONFIG_FILENAME, {"log_level": "info"})
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)

        assert find_config_file() == tmp_path / CONFIG_DIRNAME / DEFAULT_CONFIG_FILENAME
        assert load_config().log_level == "INFO"

    def test_nearest_file_wins(self, tmp_path: Path) -> None:
        _write(tmp_path / DEFAULT_CONFIG_FILENAME, {"log_level": "ERROR"})
        nested = tmp_path / "project"
        nested.mkdir()
        _write(nested / DEFAULT_CONFIG_FILENAME, {"log_level": "DEBUG"})

        assert find_config_file(nested) == nested / DEFAULT_CONFIG_FILENAME


class TestUnknownKeys:
    def test_yaml_typo_lists_valid_keys(self, tmp_path: Path) -> None:
        path = _write(tmp_path / DEFAULT_CONFIG_FILENAME, {"idle": {"treshold": 90}})
        with pytest.raises(ConfigError, match="Unknown config key 'idle.treshold'") as exc:
            load_config(config_path=path)
        assert "idle.threshold, idle.timeout_ms" in str(exc.value)
        assert str(path) in str(exc.value)

    def test_unknown_section(self, tmp_path: Path) -> None:
        path = _write(tmp_path / DEFAULT_CONFIG_FILENAME, {"engine": {"type": "web"}})
        with pytest.raises(ConfigError, match="'engine.type'"):
            load_config(config_path=path)

    def test_unknown_override(self) -> None:
        with pytest.raises(ConfigError, match=r"Unknown config key 'idle.interval' \(overrides\)"):
            load_config(config_path=_NOWHERE, overrides={"idle": {"interval": 10}})

    def test_unknown_env_var_ignored(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("UISTABLE_IDLE__TRESHOLD", "5")
        monkeypatch.setenv("UISTABLE_LOG_LEVEL", "error")

        with caplog.at_level("WARNING", logger="uistable.core.config"):
            layer = env_layer()

        assert layer == {"log_level": "error"}
        assert "UISTABLE_IDLE__TRESHOLD" in caplog.text


class TestValueRules:
    def test_threshold_message_matches_waiter(self, tmp_path: Path) -> None:
        path = _write(tmp_path / DEFAULT_CONFIG_FILENAME, {"idle": {"threshold": 150}})
        with pytest.raises(ConfigError) as exc:
            load_config(config_path=path)
        assert str(exc.value) == (
            "Config validation failed: idle.threshold: "
            "Threshold must be between 0 and 100, got: 150"
        )

    def test_timeout_message_matches_waiter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UISTABLE_IDLE__TIMEOUT_MS", "60000")
        with pytest.raises(ConfigError, match="between 1 and 30000 ms, got: 60000"):
            load_config(config_path=_NOWHERE)

    def test_non_numeric_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UISTABLE_IDLE__THRESHOLD", "lots")
        with pytest.raises(ConfigError, match="idle.threshold"):
            load_config(config_path=_NOWHERE)

    def test_poll_interval_floor(self) -> None:
        with pytest.raises(ConfigError, match="idle.poll_interval_ms"):
            load_config(config_path=_NOWHERE, overrides={"idle": {"poll_interval_ms": 5}})


class TestReadConfigFile:
    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / DEFAULT_CONFIG_FILENAME
        path.write_text("", encoding="utf-8")
        assert read_config_file(path) == {}

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / DEFAULT_CONFIG_FILENAME
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            read_config_file(path)

    def test_broken_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / DEFAULT_CONFIG_FILENAME
        path.write_text("idle: [broken: {{", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            read_config_file(path)

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / DEFAULT_CONFIG_FILENAME
        path.write_bytes(b"log_level: \xff\n")
        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            read_config_file(path)


class TestSetConfigValue:
    def test_coerces_and_keeps_other_entries(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / DEFAULT_CONFIG_FILENAME, {"idle": {"timeout_ms": 9000}, "log_level": "INFO"}
        )

        assert set_config_value(path, "idle.threshold", "85") == 85

        data = read_config_file(path)
        assert data == {"idle": {"timeout_ms": 9000, "threshold": 85}, "log_level": "INFO"}

    def test_creates_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / DEFAULT_CONFIG_FILENAME
        assert set_config_value(path, "idle.strict_exact_match", "true") is True
        assert read_config_file(path) == {"idle": {"strict_exact_match": True}}

    def test_env_values_not_copied(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UISTABLE_IDLE__TIMEOUT_MS", "1234")
        path = tmp_path / DEFAULT_CONFIG_FILENAME

        set_config_value(path, "log_level", "debug")

        assert read_config_file(path) == {"log_level": "DEBUG"}

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / DEFAULT_CONFIG_FILENAME
        with pytest.raises(ConfigError, match="Valid keys: idle.threshold"):
            set_config_value(path, "idle.treshold", "90")
        assert not path.exists()

    def test_section_is_not_a_key(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown config key 'idle'"):
            set_config_value(tmp_path / DEFAULT_CONFIG_FILENAME, "idle", "90")

    def test_invalid_value_leaves_file_untouched(self, tmp_path: Path) -> None:
        path = _write(tmp_path / DEFAULT_CONFIG_FILENAME, {"idle": {"threshold": 70}})
        with pytest.raises(ConfigError, match="got: 500"):
            set_config_value(path, "idle.threshold", "500")
        assert read_config_file(path) == {"idle": {"threshold": 70}}


def test_save_config_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "out" / DEFAULT_CONFIG_FILENAME
    save_config(Config(idle={"threshold": 88}), path)
    assert load_config(config_path=path).idle.threshold == 88
