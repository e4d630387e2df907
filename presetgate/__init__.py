"""presetgate: per-file preset selection for build pipelines.

Presets are selected for each file by path, category and content filters,
gated by build phase and environment, and summarized as a conservative
pre-filter the host can apply before reading any file.
"""

from presetgate.core.constants import PRESETGATE_VERSION
from presetgate.options import OverrideOptions, PluginOptions, options_from_config, resolve_options
from presetgate.plugin import (
    CompileError,
    CompileFailure,
    CompileOutput,
    PresetPlugin,
    TransformError,
    TransformResult,
)
from presetgate.rules import Environment, FileContext, FilterSpec, PreFilter, Preset, define_preset

__version__ = PRESETGATE_VERSION

__all__ = [
    "PresetPlugin",
    "PluginOptions",
    "OverrideOptions",
    "resolve_options",
    "options_from_config",
    "Preset",
    "define_preset",
    "FilterSpec",
    "FileContext",
    "Environment",
    "PreFilter",
    "CompileOutput",
    "CompileFailure",
    "CompileError",
    "TransformError",
    "TransformResult",
]
