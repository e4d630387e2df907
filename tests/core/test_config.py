#!/usr/bin/env python3
"""Tests for the ConfigManager module."""

import pytest
import yaml

from presetgate.core.config import (
    ConfigError,
    ConfigManager,
    ConfigSource,
    ConfigValue,
    deep_merge,
    parse_env_value,
)
from presetgate.core.constants import ErrorCode


class TestConfigSource:
    """Tests for ConfigSource enum."""

    def test_precedence_order(self):
        """Test config source precedence ordering."""
        sources = [
            ConfigSource.COMPILED_DEFAULTS,
            ConfigSource.USER_CONFIG,
            ConfigSource.ENVIRONMENT,
            ConfigSource.CLI_ARGS,
            ConfigSource.RUNTIME,
        ]
        for i in range(len(sources) - 1):
            assert sources[i].value < sources[i + 1].value


class TestLoading:
    """Tests for loading configuration."""

    def test_defaults(self):
        """Test compiled defaults are present."""
        config = ConfigManager(load_environment=False)
        assert config.get("presetgate.logging.level") == "INFO"
        assert config.get("presetgate.presets") == []
        assert config.get("presetgate.missing", "fallback") == "fallback"

    def test_load_file(self, tmp_path):
        """Test loading a rooted YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"presetgate": {"presets": ["env"]}}))
        config = ConfigManager(str(path))
        assert config.get("presetgate.presets") == ["env"]

    def test_load_file_without_root(self, write_config):
        """Test files without the root key are wrapped."""
        config = ConfigManager(str(write_config({"logging": {"level": "ERROR"}})))
        assert config.get("presetgate.logging.level") == "ERROR"

    def test_missing_file(self, tmp_path):
        """Test missing files."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(str(tmp_path / "missing.yaml"))
        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable files."""
        path = tmp_path / "bad.yaml"
        path.write_text("presetgate: {unclosed")
        with pytest.raises(ConfigError, match="YAML parse error"):
            ConfigManager(str(path))

    def test_non_mapping(self, tmp_path):
        """Test files that are not mappings."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Invalid config format"):
            ConfigManager(str(path))

    def test_load_dict(self):
        """Test loading from a dictionary."""
        config = ConfigManager(load_environment=False)
        config.load_dict({"options": {"compact": True}})
        assert config.get("presetgate.options.compact") is True


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_environment_overrides_file(self, write_config, monkeypatch):
        """Test environment variables beat the file."""
        monkeypatch.setenv("PRESETGATE_LOGGING_LEVEL", "DEBUG")
        config = ConfigManager(str(write_config({"logging": {"level": "ERROR"}})))
        assert config.get("presetgate.logging.level") == "DEBUG"
        assert config.get_value("presetgate.logging.level").source == ConfigSource.ENVIRONMENT

    def test_value_parsing(self, monkeypatch):
        """Test typed environment values."""
        monkeypatch.setenv("PRESETGATE_OPTIONS_COMPACT", "true")
        monkeypatch.setenv("PRESETGATE_OPTIONS_RETRIES", "3")
        monkeypatch.setenv("PRESETGATE_OPTIONS_RATIO", "0.5")
        monkeypatch.setenv("PRESETGATE_OPTIONS_SOURCEMAPS", "no")
        config = ConfigManager()
        assert config.get("presetgate.options") == {
            "compact": True,
            "retries": 3,
            "ratio": 0.5,
            "sourcemaps": False,
        }

    def test_disabled(self, monkeypatch):
        """Test environment loading can be disabled."""
        monkeypatch.setenv("PRESETGATE_LOGGING_LEVEL", "DEBUG")
        assert ConfigManager(load_environment=False).get("presetgate.logging.level") == "INFO"


class TestAccess:
    """Tests for get/set and merging."""

    def test_set_and_precedence(self, write_config):
        """Test runtime values win over file values."""
        config = ConfigManager(str(write_config({"logging": {"level": "ERROR"}})))
        config.set("presetgate.logging.level", "WARNING", ConfigSource.CLI_ARGS)
        assert config.get("presetgate.logging.level") == "WARNING"
        config.set("presetgate.logging.level", "DEBUG")
        assert config.get_value("presetgate.logging.level").source == ConfigSource.RUNTIME

    def test_get_value(self):
        """Test ConfigValue metadata."""
        value = ConfigManager(load_environment=False).get_value("presetgate.logging.level")
        assert isinstance(value, ConfigValue)
        assert value.source == ConfigSource.COMPILED_DEFAULTS
        assert ConfigManager(load_environment=False).get_value("presetgate.nope") is None

    def test_get_section_deep_merge(self, write_config):
        """Test sections are deep-merged and lists replaced."""
        config = ConfigManager(
            str(write_config({"presets": ["env"], "logging": {"file": "/tmp/x.log"}})),
            load_environment=False,
        )
        section = config.get_section()
        assert section["presets"] == ["env"]
        assert section["logging"] == {"level": "INFO", "file": "/tmp/x.log"}
        assert section["plugins"] == []

    def test_watchers(self):
        """Test watchers are notified on set and can be removed."""
        config = ConfigManager(load_environment=False)
        seen = []

        def watcher(merged):
            seen.append(merged["presetgate"]["logging"]["level"])

        config.add_watcher(watcher)
        config.set("presetgate.logging.level", "DEBUG")
        config.remove_watcher(watcher)
        config.set("presetgate.logging.level", "ERROR")
        assert seen == ["DEBUG"]

    def test_clear(self, write_config):
        """Test clearing sources keeps defaults."""
        config = ConfigManager(str(write_config({"logging": {"level": "ERROR"}})), load_environment=False)
        config.clear(ConfigSource.USER_CONFIG)
        assert config.get("presetgate.logging.level") == "INFO"

        config.set("presetgate.logging.level", "DEBUG")
        config.clear()
        assert config.get("presetgate.logging.level") == "INFO"

        config.clear(ConfigSource.COMPILED_DEFAULTS)
        assert config.get("presetgate.logging.level") == "INFO"


class TestHelpers:
    """Tests for module-level helpers."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("on", True), ("OFF", False), ("12", 12), ("1e3", 1000.0), ("src/**", "src/**")],
    )
    def test_parse_env_value(self, raw, expected):
        """Test environment string interpretation."""
        assert parse_env_value(raw) == expected

    def test_deep_merge_does_not_mutate(self):
        """Test deep_merge returns a new mapping."""
        base = {"a": {"b": 1, "c": [1]}}
        merged = deep_merge(base, {"a": {"c": [2]}, "d": 3})
        assert merged == {"a": {"b": 1, "c": [2]}, "d": 3}
        assert base == {"a": {"b": 1, "c": [1]}}
