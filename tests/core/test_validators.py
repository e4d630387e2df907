#!/usr/bin/env python3
"""Tests for input validators."""

import re

import pytest

from presetgate.core.constants import ErrorCode
from presetgate.core.validators import (
    ValidationError,
    validate_category_input,
    validate_environment_name,
    validate_filter_input,
    validate_glob,
    validate_pattern,
    validate_pattern_input,
    validate_regex,
)
from presetgate.rules.filters import DimensionFilter


class TestValidationError:
    """Tests for ValidationError."""

    def test_default_code(self):
        """Test default error code."""
        assert ValidationError("bad").error_code == ErrorCode.INVALID_INPUT

    def test_custom_code(self):
        """Test custom error code."""
        assert ValidationError("bad", ErrorCode.NOT_FOUND).error_code == ErrorCode.NOT_FOUND


class TestValidatePattern:
    """Tests for pattern validation."""

    def test_valid_kinds(self):
        """Test globs, regexes and callables."""
        assert validate_pattern("*.ts")
        assert validate_pattern(re.compile(r"\.ts$"))
        assert validate_pattern(lambda value: True)

    def test_bytes_regex(self):
        """Test bytes regexes are rejected."""
        with pytest.raises(ValidationError, match="bytes"):
            validate_pattern(re.compile(rb"\.ts$"))

    @pytest.mark.parametrize("value", [42, None, 1.5, b"*.ts"])
    def test_invalid_kinds(self, value):
        """Test unrecognized kinds."""
        with pytest.raises(ValidationError, match="Unrecognized pattern kind"):
            validate_pattern(value)

    def test_pattern_input(self):
        """Test single values, lists and None."""
        assert validate_pattern_input(None)
        assert validate_pattern_input("*.ts")
        assert validate_pattern_input(["*.ts", re.compile("x")])

    def test_pattern_input_index(self):
        """Test errors name the failing index."""
        with pytest.raises(ValidationError, match="exclude entry at index 1"):
            validate_pattern_input(["*.ts", 3], "exclude")


class TestValidateFilterInput:
    """Tests for dimension filter validation."""

    def test_shapes(self):
        """Test accepted shapes."""
        assert validate_filter_input(None, "path")
        assert validate_filter_input("*.ts", "path")
        assert validate_filter_input([re.compile("x")], "path")
        assert validate_filter_input({"include": "*.ts", "exclude": ["*.d.ts"]}, "path")
        assert validate_filter_input(DimensionFilter(include=["*.ts"]), "path")

    def test_unknown_keys(self):
        """Test unknown mapping keys."""
        with pytest.raises(ValidationError, match="Unknown keys in content filter"):
            validate_filter_input({"includes": "*.ts"}, "content")

    def test_invalid_nested(self):
        """Test invalid nested patterns."""
        with pytest.raises(ValidationError, match="path.exclude"):
            validate_filter_input({"exclude": [None]}, "path")


class TestValidateCategoryInput:
    """Tests for category filter validation."""

    def test_shapes(self):
        """Test accepted shapes."""
        assert validate_category_input(None)
        assert validate_category_input("tsx")
        assert validate_category_input(["tsx", "jsx"])
        assert validate_category_input({"include": ["tsx"]})
        assert validate_category_input({"include": None})

    def test_exclude_rejected(self):
        """Test category filters have no exclude."""
        with pytest.raises(ValidationError, match="only supports 'include'"):
            validate_category_input({"exclude": ["tsx"]})

    def test_non_string_tags(self):
        """Test tags must be strings."""
        with pytest.raises(ValidationError, match="must be string"):
            validate_category_input(["tsx", 1])

    def test_non_list(self):
        """Test scalars other than strings."""
        with pytest.raises(ValidationError, match="list of tags"):
            validate_category_input(7)


class TestValidateRegex:
    """Tests for regex validation."""

    def test_compile_with_flags(self):
        """Test flags are applied."""
        pattern = validate_regex("abc", "im")
        assert pattern.flags & re.IGNORECASE
        assert pattern.flags & re.MULTILINE

    def test_empty(self):
        """Test empty pattern."""
        with pytest.raises(ValidationError, match="empty"):
            validate_regex("")

    def test_unknown_flag(self):
        """Test unknown flags."""
        with pytest.raises(ValidationError, match="Unknown regex flag"):
            validate_regex("a", "g")

    def test_invalid(self):
        """Test uncompilable patterns."""
        with pytest.raises(ValidationError, match="Failed to compile"):
            validate_regex("(")

    def test_non_string(self):
        """Test non-string patterns."""
        with pytest.raises(ValidationError, match="must be string"):
            validate_regex(123)


class TestValidateGlob:
    """Tests for glob validation."""

    def test_valid(self):
        """Test valid globs."""
        assert validate_glob("src/**/*.{ts,tsx}")

    @pytest.mark.parametrize("pattern", ["", "a\0b", "a\x01b"])
    def test_invalid(self, pattern):
        """Test empty globs and control characters."""
        with pytest.raises(ValidationError):
            validate_glob(pattern)


class TestValidateEnvironmentName:
    """Tests for environment name validation."""

    @pytest.mark.parametrize("name", ["client", "ssr", "edge-runtime", "worker_1", "rsc.server"])
    def test_valid(self, name):
        """Test valid names."""
        assert validate_environment_name(name)

    @pytest.mark.parametrize("name", ["", "bad name", "1client", "a/b"])
    def test_invalid(self, name):
        """Test invalid names."""
        with pytest.raises(ValidationError):
            validate_environment_name(name)
