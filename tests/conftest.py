"""Shared pytest fixtures for presetgate tests."""
import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
import yaml

from presetgate.core.logging import set_global_logger
from presetgate.plugin import CompileOutput
from presetgate.rules.filters import FileContext
from presetgate.rules.presets import Preset


class RecordingHandler(logging.Handler):
    """Logging handler that keeps every record."""

    def __init__(self):
        super().__init__()
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    @property
    def messages(self) -> List[str]:
        return [record.getMessage() for record in self.records]


class RecordingCompiler:
    """Compiler double that records its calls."""

    def __init__(self, output: Any = None):
        self.calls: List[Dict[str, Any]] = []
        self.output = output

    def __call__(self, options: Dict[str, Any], content: str, path: str) -> Any:
        self.calls.append({"options": options, "content": content, "path": path})
        if self.output is not None:
            return self.output
        return CompileOutput(code=f"/* {len(options['presets'])} presets */\n{content}")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove PRESETGATE_* variables and reset the global logger."""
    for key in list(os.environ):
        if key.startswith("PRESETGATE_"):
            monkeypatch.delenv(key)
    set_global_logger(None)
    yield
    set_global_logger(None)


@pytest.fixture
def recording_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def compiler() -> RecordingCompiler:
    return RecordingCompiler()


@pytest.fixture
def tsx_context() -> FileContext:
    return FileContext(
        path="src/components/App.tsx",
        category="tsx",
        content="import styled from 'styled-components';\nexport const App = styled.div``;\n",
    )


@pytest.fixture
def react_preset() -> Preset:
    return Preset("react", filter={"path": re.compile(r"\.[jt]sx$"), "category": ["jsx", "tsx"]})


@pytest.fixture
def styled_preset() -> Preset:
    return Preset("styled", filter={"content": re.compile(r"styled\.")})


@pytest.fixture
def vue_preset() -> Preset:
    return Preset("vue", filter={"path": "**/*.vue"})


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Dict[str, Any]], Path]:
    """Write a YAML configuration file and return its path."""

    def _write(data: Dict[str, Any], name: str = "presetgate.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


@pytest.fixture
def compiler_factory():
    """Build a RecordingCompiler returning a fixed output."""
    return RecordingCompiler
