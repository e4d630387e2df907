"""
presetgate Foundation: Constants and Type Definitions

This module provides system-wide constants, error codes, default path filters
and type aliases shared by the rule and option layers.
"""
import re
from enum import Enum, IntEnum
from typing import Callable, Pattern, TypeAlias, Union

# Version information
PRESETGATE_VERSION = "1.0.0"


# Error codes (0-9 range)
class ErrorCode(IntEnum):
    """Standardized error codes for presetgate operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad pattern, invalid configuration
    NOT_FOUND = 2  # Config file or source file doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    DEPENDENCY_ERROR = 5  # Compiler unavailable
    COMPILE_FAILED = 8  # External compiler reported a failure


# Type aliases for clarity
PatternLike: TypeAlias = Union[str, Pattern[str], Callable[[str], bool]]
Matcher: TypeAlias = Callable[[str], bool]


class Dimension(str, Enum):
    """Filter dimensions a preset can constrain."""

    PATH = "path"  # File identity
    CATEGORY = "category"  # Coarse module type tag (tsx, jsx, ...)
    CONTENT = "content"  # File source text


# Default user-level path filters
DEFAULT_INCLUDE = [re.compile(r"\.(?:[jt]sx?|[cm][jt]s)(?:$|\?)")]
DEFAULT_EXCLUDE = [re.compile(r"[/\\]node_modules[/\\]")]


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    # Top-level keys
    ROOT = "presetgate"
    INCLUDE = "include"
    EXCLUDE = "exclude"
    PRESETS = "presets"
    PLUGINS = "plugins"
    OVERRIDES = "overrides"
    OPTIONS = "options"
    LOGGING = "logging"

    # Preset configuration
    PRESET_NAME = "name"
    PRESET_FILTER = "filter"
    PRESET_COMMANDS = "commands"
    PRESET_MODES = "modes"
    PRESET_ENVIRONMENTS = "environments"

    # Regex pattern configuration
    REGEX = "regex"
    REGEX_FLAGS = "flags"


# Regex flags accepted in configuration files
REGEX_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "a": re.ASCII,
}


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.INCLUDE: None,
    ConfigKey.EXCLUDE: None,
    ConfigKey.PRESETS: [],
    ConfigKey.PLUGINS: [],
    ConfigKey.OVERRIDES: [],
    ConfigKey.OPTIONS: {},
    ConfigKey.LOGGING: {
        "level": "INFO",
        "file": None,
    },
}
