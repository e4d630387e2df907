#!/usr/bin/env python3
"""Host integration: lifecycle hooks, per-environment state and compiler calls.

The host drives a PresetPlugin through its build:
1. ``config_resolved(config)`` once per build applies the phase gate
2. ``apply_to_environment(env)`` tells the host whether anything is left to do
3. ``transform_filter(env)`` exposes the pre-filter for the host dispatcher
4. ``transform(content, path, category, env)`` selects presets for one file
   and hands them to the external compiler

Per-environment state (gated options, pre-filter, compiled predicates) is
built once per environment name and replaced wholesale when the build
configuration changes.

Example:
    >>> plugin = PresetPlugin({"presets": [react_preset]}, compiler=compile_source)
    >>> plugin.config_resolved({"command": "build"})
    >>> result = plugin.transform(code, "src/App.tsx", "tsx", Environment("client"))
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from presetgate.core.constants import ErrorCode
from presetgate.core.logging import Logger, get_logger
from presetgate.options import OptionsConverter, PluginOptions, resolve_options
from presetgate.rules.algebra import PreFilter, calculate_pre_filter, compile_pre_filter
from presetgate.rules.filters import FileContext, compile_dimension
from presetgate.rules.lifecycle import filter_presets_with_config, filter_presets_with_environment
from presetgate.rules.patterns import is_static_pattern
from presetgate.rules.presets import Environment, preset_label


@dataclass
class CompileOutput:
    """Successful compiler output."""

    code: str
    map: Any = None


@dataclass
class CompileFailure:
    """Structured failure returned by a compiler."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None


class CompileError(Exception):
    """Raised by a compiler that reports failures as exceptions."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(message)


class TransformError(Exception):
    """User-visible build error for one file."""

    def __init__(
        self,
        message: str,
        path: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        error_code: ErrorCode = ErrorCode.COMPILE_FAILED,
    ):
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        self.error_code = error_code
        super().__init__(f"{self.location}: {message}")

    @property
    def location(self) -> str:
        location = self.path
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return location


@dataclass
class TransformResult:
    """Result of transforming one file."""

    code: str
    path: str
    map: Any = None
    presets: List[str] = field(default_factory=list)
    duration_ms: float = 0.0


Compiler = Callable[[Dict[str, Any], str, str], Union[CompileOutput, CompileFailure, str, None]]


@dataclass(frozen=True)
class EnvironmentState:
    """Everything derived from the options for one environment."""

    name: Optional[str]
    options: PluginOptions
    pre_filter: PreFilter
    converter: OptionsConverter
    matches: Callable[..., bool]
    user_filter: Optional[Callable[[str], bool]] = None

    def accepts(self, path: str, category: Optional[str] = None, content: Optional[str] = None) -> bool:
        """Pre-filter check plus the user include/exclude entries it cannot represent."""
        if not self.matches(path, category, content):
            return False
        return self.user_filter is None or self.user_filter(path)


def compile_user_filter(options: PluginOptions) -> Optional[Callable[[str], bool]]:
    """Compile the user include/exclude when either list holds a dynamic matcher.

    Static-only lists are already enforced by the pre-filter; a dynamic entry
    widens the pre-filter, so the full lists are checked per file instead.
    """
    entries = list(options.include or []) + list(options.exclude or [])
    if all(is_static_pattern(entry) for entry in entries):
        return None
    return compile_dimension(options.include, options.exclude)


class PresetPlugin:
    """Preset selection plugin for a host build pipeline.

    Features:
    - Phase gate applied once per build configuration
    - Environment gate applied once per environment, on phase-gated options
    - Pre-filter and compiled predicates cached per environment
    - Compiler failures surfaced as TransformError with location
    """

    name = "presetgate"

    def __init__(
        self,
        options: Union[PluginOptions, Mapping[str, Any], None] = None,
        compiler: Optional[Compiler] = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize plugin.

        Args:
            options: Plugin options (resolved here)
            compiler: External compiler ``(options, content, path) -> output``
            logger: Optional logger (defaults to the global one)

        Raises:
            ValidationError: If options are malformed
        """
        self._resolved = resolve_options(options)
        self._phase_options = self._resolved
        self._compiler = compiler
        self._logger = logger or get_logger()
        self._lock = threading.RLock()
        self._states: Dict[Optional[str], EnvironmentState] = {}
        self._stats = {
            "files_seen": 0,
            "files_skipped": 0,
            "files_transformed": 0,
            "failures": 0,
        }

    @property
    def options(self) -> PluginOptions:
        """Options after the phase gate (or as resolved, before any build)."""
        return self._phase_options

    def config_resolved(self, config: Any) -> None:
        """Apply the phase gate for a new build configuration.

        Every cached environment state is dropped.
        """
        phase_options = filter_presets_with_config(self._resolved, config)
        with self._lock:
            self._phase_options = phase_options
            self._states = {}
        self._logger.debug(
            "Build configuration resolved",
            presets=len(phase_options.presets),
            overrides=len(phase_options.overrides),
        )

    def apply_to_environment(self, environment: Environment) -> bool:
        """Return True if any preset or plugin remains for the environment."""
        return self.environment_state(environment).options.has_work()

    def environment_state(self, environment: Optional[Environment] = None) -> EnvironmentState:
        """Get or build the state for an environment (None = no environment)."""
        key = environment.name if environment is not None else None

        state = self._states.get(key)
        if state is not None:
            return state

        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = self._build_state(environment)
                self._states[key] = state
        return state

    def _build_state(self, environment: Optional[Environment]) -> EnvironmentState:
        options = self._phase_options
        if environment is not None:
            options = filter_presets_with_environment(options, environment)

        pre_filter = calculate_pre_filter(options)
        self._logger.debug(
            "Environment state built",
            environment=environment.name if environment is not None else "-",
            presets=[preset_label(p) for p in options.presets],
        )
        return EnvironmentState(
            name=environment.name if environment is not None else None,
            options=options,
            pre_filter=pre_filter,
            converter=OptionsConverter(options),
            matches=compile_pre_filter(pre_filter),
            user_filter=compile_user_filter(options),
        )

    def transform_filter(self, environment: Optional[Environment] = None) -> PreFilter:
        """Pre-filter for the host dispatcher."""
        return self.environment_state(environment).pre_filter

    def transform(
        self,
        content: str,
        path: str,
        category: str,
        environment: Optional[Environment] = None,
    ) -> Optional[TransformResult]:
        """Transform one file with the presets that apply to it.

        Args:
            content: Source text
            path: File path (identity)
            category: Module type tag
            environment: Current environment, if the host has one

        Returns:
            TransformResult, or None when the file is skipped or unchanged

        Raises:
            TransformError: If no compiler is configured or compilation fails
        """
        state = self.environment_state(environment)
        self._count("files_seen")

        if not state.accepts(path, category, content):
            self._count("files_skipped")
            self._logger.debug("File skipped by filter", path=path)
            return None

        if self._compiler is None:
            raise TransformError("No compiler configured", path, error_code=ErrorCode.DEPENDENCY_ERROR)

        context = FileContext(path=path, category=category, content=content)
        selected = state.converter.select(context)
        compiler_options = state.converter(context, selected, state.converter.select_overrides(context))

        start_time = time.time()
        try:
            output = self._compiler(compiler_options, content, path)
        except CompileError as e:
            self._count("failures")
            self._logger.error("Compilation failed", path=path, error=e.message)
            raise TransformError(e.message, path, e.line, e.column) from e
        duration_ms = (time.time() - start_time) * 1000

        if isinstance(output, CompileFailure):
            self._count("failures")
            self._logger.error("Compilation failed", path=path, error=output.message)
            raise TransformError(output.message, path, output.line, output.column)

        if output is None:
            return None

        if isinstance(output, str):
            output = CompileOutput(code=output)

        self._count("files_transformed")
        return TransformResult(
            code=output.code,
            path=path,
            map=output.map,
            presets=[preset_label(p) for p in selected],
            duration_ms=duration_ms,
        )

    def _count(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    def get_stats(self) -> Dict[str, int]:
        """Get transform statistics."""
        with self._lock:
            return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset transform statistics."""
        with self._lock:
            for key in self._stats:
                self._stats[key] = 0
