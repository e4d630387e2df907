#!/usr/bin/env python3
"""Layered configuration for presetgate.

Values come from up to five layers; a higher layer shadows a lower one:

    compiled defaults < YAML file < PRESETGATE_* variables < CLI < runtime

Each layer is a nested dictionary rooted at ``presetgate``. Single keys are
read with a dotted path (``presetgate.logging.level``); whole sections are
deep-merged, with lists replaced rather than concatenated.

Example:
    >>> config = ConfigManager("presetgate.yaml")
    >>> config.get("presetgate.logging.level", default="INFO")
"""

import copy
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import yaml

from presetgate.core.constants import DEFAULT_CONFIG, ConfigKey, ErrorCode

Watcher = Callable[[Dict[str, Any]], None]

_TRUE = ("true", "yes", "on")
_FALSE = ("false", "no", "off")


class ConfigSource(Enum):
    """Configuration layers, lowest precedence first."""

    COMPILED_DEFAULTS = 1
    USER_CONFIG = 2
    ENVIRONMENT = 3
    CLI_ARGS = 4
    RUNTIME = 5


@dataclass
class ConfigValue:
    """A resolved value and the layer that supplied it."""

    value: Any
    source: ConfigSource
    timestamp: float = field(default_factory=time.time)


class ConfigError(Exception):
    """Configuration file missing, unreadable or malformed."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def parse_env_value(value: str) -> Any:
    """Interpret an environment string as bool, int, float or plain str."""
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    for kind in (int, float):
        try:
            return kind(value)
        except ValueError:
            continue
    return value


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; only dicts recurse."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _rooted(data: Dict[str, Any]) -> Dict[str, Any]:
    return data if ConfigKey.ROOT in data else {ConfigKey.ROOT: data}


def _lookup(tree: Dict[str, Any], key: str) -> Optional[Any]:
    node: Any = tree
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


class ConfigManager:
    """Thread-safe stack of configuration layers."""

    ENV_PREFIX = "PRESETGATE_"

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: YAML file loaded into the USER_CONFIG layer
            load_environment: Read PRESETGATE_* variables into the ENVIRONMENT layer
        """
        self._lock = threading.RLock()
        self._layers: Dict[ConfigSource, Dict[str, Any]] = {
            ConfigSource.COMPILED_DEFAULTS: {ConfigKey.ROOT: copy.deepcopy(DEFAULT_CONFIG)}
        }
        self._watchers: List[Watcher] = []

        if config_file:
            self.load_file(config_file)
        if load_environment:
            self._load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Replace ``source`` with the contents of a YAML file.

        A file without a top-level ``presetgate`` key is treated as the
        section itself.

        Raises:
            ConfigError: NOT_FOUND for a missing file, INVALID_INPUT for bad
                YAML or a non-mapping document, PERMISSION_DENIED on OS errors
        """
        path = Path(file_path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT) from e
        except OSError as e:
            raise ConfigError(f"Error loading config {file_path}: {e}", ErrorCode.PERMISSION_DENIED) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config format in {file_path}", ErrorCode.INVALID_INPUT)

        with self._lock:
            self._layers[source] = _rooted(data)

    def load_dict(self, config_data: Dict[str, Any], source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Replace ``source`` with a copy of ``config_data``."""
        with self._lock:
            self._layers[source] = copy.deepcopy(_rooted(config_data))

    def _load_environment(self) -> None:
        # PRESETGATE_LOGGING_LEVEL=DEBUG -> {"logging": {"level": "DEBUG"}}
        section: Dict[str, Any] = {}
        for name, raw in os.environ.items():
            if not name.startswith(self.ENV_PREFIX):
                continue
            parts = name[len(self.ENV_PREFIX):].lower().split("_")
            if not all(parts):
                continue

            node = section
            for part in parts[:-1]:
                child = node.setdefault(part, {})
                if not isinstance(child, dict):
                    break
                node = child
            else:
                node[parts[-1]] = parse_env_value(raw)

        if section:
            with self._lock:
                self._layers[ConfigSource.ENVIRONMENT] = {ConfigKey.ROOT: section}

    def _resolve(self, key: str) -> Iterator[Tuple[ConfigSource, Any]]:
        with self._lock:
            layers = sorted(self._layers.items(), key=lambda item: item[0].value, reverse=True)
        for source, tree in layers:
            value = _lookup(tree, key)
            if value is not None:
                yield source, value

    def get(self, key: str, default: Any = None) -> Any:
        """Value of a dotted key from the highest layer defining it."""
        for _, value in self._resolve(key):
            return value
        return default

    def get_value(self, key: str) -> Optional[ConfigValue]:
        """Like ``get`` but reports the supplying layer; None if undefined."""
        for source, value in self._resolve(key):
            return ConfigValue(value=value, source=source)
        return None

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set a dotted key in ``source`` and notify watchers."""
        parts = key.split(".")
        with self._lock:
            node = self._layers.setdefault(source, {})
            for part in parts[:-1]:
                node = node.setdefault(part, {})
            node[parts[-1]] = value
        self._notify_watchers()

    def get_all(self) -> Dict[str, Any]:
        """All layers deep-merged, lowest precedence first."""
        with self._lock:
            merged: Dict[str, Any] = {}
            for source in sorted(self._layers, key=lambda s: s.value):
                merged = deep_merge(merged, self._layers[source])
            return merged

    def get_section(self) -> Dict[str, Any]:
        """The merged ``presetgate`` section."""
        return self.get_all().get(ConfigKey.ROOT, {})

    def add_watcher(self, callback: Watcher) -> None:
        """Call ``callback(get_all())`` after every ``set``."""
        with self._lock:
            self._watchers.append(callback)

    def remove_watcher(self, callback: Watcher) -> None:
        with self._lock:
            if callback in self._watchers:
                self._watchers.remove(callback)

    def _notify_watchers(self) -> None:
        # Watcher errors reach the caller of set().
        merged = self.get_all()
        with self._lock:
            watchers = list(self._watchers)
        for watcher in watchers:
            watcher(merged)

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Drop one layer, or every layer but the compiled defaults."""
        with self._lock:
            targets = [source] if source else list(self._layers)
            for target in targets:
                if target != ConfigSource.COMPILED_DEFAULTS:
                    self._layers.pop(target, None)
