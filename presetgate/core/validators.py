"""
presetgate Foundation: Input Validators.

This module provides input validation for user-supplied options: patterns,
per-dimension filters, category tags and regex definitions loaded from
configuration files. Every check raises ValidationError, which callers treat
as a fatal configuration failure.
"""
import re
from typing import Any, Mapping, Pattern

from presetgate.core.constants import REGEX_FLAG_MAP, ConfigKey, ErrorCode


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_pattern(pattern: Any) -> bool:
    """Validate a single pattern.

    Accepted kinds are glob strings, compiled regular expressions and
    callables (dynamic matchers).

    Args:
        pattern: Pattern to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If pattern is of an unrecognized kind or malformed
    """
    if isinstance(pattern, re.Pattern):
        if not isinstance(pattern.pattern, str):
            raise ValidationError("Regex patterns must be compiled from str, not bytes")
        return True

    if isinstance(pattern, str):
        return validate_glob(pattern)

    if callable(pattern):
        return True

    raise ValidationError(
        f"Unrecognized pattern kind: {type(pattern).__name__} "
        "(expected glob string, compiled regex or callable)"
    )


def validate_pattern_input(value: Any, field: str = "pattern") -> bool:
    """Validate a single pattern or a list of patterns.

    None is accepted and means "not set".

    Args:
        value: Pattern, list of patterns or None
        field: Field name used in error messages

    Returns:
        True if valid

    Raises:
        ValidationError: If any entry is invalid
    """
    if value is None:
        return True

    if isinstance(value, (list, tuple)):
        for i, pattern in enumerate(value):
            try:
                validate_pattern(pattern)
            except ValidationError as e:
                raise ValidationError(f"Invalid {field} entry at index {i}: {e}")
        return True

    try:
        return validate_pattern(value)
    except ValidationError as e:
        raise ValidationError(f"Invalid {field}: {e}")


def validate_filter_input(value: Any, field: str) -> bool:
    """Validate a raw pattern-dimension filter.

    Raw shapes are a single pattern, a list of patterns, or a mapping (or
    object) with optional ``include`` and ``exclude`` entries.

    Args:
        value: Raw filter value
        field: Dimension name used in error messages

    Returns:
        True if valid

    Raises:
        ValidationError: If the filter is malformed
    """
    if value is None:
        return True

    if isinstance(value, Mapping):
        unknown = set(value) - {ConfigKey.INCLUDE, ConfigKey.EXCLUDE}
        if unknown:
            raise ValidationError(f"Unknown keys in {field} filter: {sorted(unknown)}")
        validate_pattern_input(value.get(ConfigKey.INCLUDE), f"{field}.include")
        validate_pattern_input(value.get(ConfigKey.EXCLUDE), f"{field}.exclude")
        return True

    if hasattr(value, "include") and hasattr(value, "exclude"):
        validate_pattern_input(value.include, f"{field}.include")
        validate_pattern_input(value.exclude, f"{field}.exclude")
        return True

    return validate_pattern_input(value, field)


def validate_category_input(value: Any) -> bool:
    """Validate a raw category filter (exact string tags).

    Args:
        value: A tag, a list of tags, or a mapping with ``include``

    Returns:
        True if valid

    Raises:
        ValidationError: If the filter is malformed
    """
    if value is None or isinstance(value, str):
        return True

    if isinstance(value, Mapping):
        unknown = set(value) - {ConfigKey.INCLUDE}
        if unknown:
            raise ValidationError(f"Category filter only supports 'include', got: {sorted(unknown)}")
        value = value.get(ConfigKey.INCLUDE)
        if value is None:
            return True

    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"Category filter must be a list of tags, got {type(value).__name__}")

    for tag in value:
        if not isinstance(tag, str):
            raise ValidationError(f"Category tag must be string, got {type(tag).__name__}")

    return True


def validate_regex(pattern: str, flags: str = "") -> Pattern[str]:
    """Compile a configured regex such as ``{regex: "\\.vue$", flags: "i"}``.

    ``flags`` holds letters from REGEX_FLAG_MAP. The compiled pattern is
    returned so configuration loading compiles each regex once.
    """
    if not isinstance(pattern, str):
        raise ValidationError(f"Regex pattern must be string, got {type(pattern).__name__}")
    if not pattern:
        raise ValidationError("Regex pattern cannot be empty")

    unknown = [letter for letter in flags or "" if letter not in REGEX_FLAG_MAP]
    if unknown:
        raise ValidationError(f"Unknown regex flag: {unknown[0]!r}")

    combined = 0
    for letter in flags or "":
        combined |= REGEX_FLAG_MAP[letter]

    try:
        return re.compile(pattern, combined)
    except re.error as e:
        raise ValidationError(f"Failed to compile regex pattern {pattern!r}: {e}") from e


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def validate_glob(pattern: str) -> bool:
    """Reject empty globs and globs carrying control characters."""
    if not pattern:
        raise ValidationError("Glob pattern cannot be empty")

    found = _CONTROL_CHARS.search(pattern)
    if found:
        raise ValidationError(
            f"Invalid glob pattern {pattern!r}: control character at offset {found.start()}"
        )

    return True


_ENVIRONMENT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")


def validate_environment_name(name: str) -> bool:
    """Check an environment name (``client``, ``ssr``, ``edge-runtime``)."""
    if not isinstance(name, str) or not name:
        raise ValidationError("Environment name must be a non-empty string")

    if not _ENVIRONMENT_NAME.match(name):
        raise ValidationError(
            f"Invalid environment name: {name!r} (letters, digits, '_', '.', '-' only)"
        )

    return True
