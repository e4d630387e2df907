#!/usr/bin/env python3
r"""Pattern matching with glob, regex and dynamic matcher support.

This module compiles single patterns into reusable predicates:
- Glob patterns (``*.tsx``, ``src/**/*.ts``, ``[!_]*.js``, ``*.{ts,tsx}``)
- Compiled regular expressions (``re.compile(r"\.tsx$")``), matched with search
- Callables, treated as dynamic matchers and invoked directly
- Multiple pattern support with OR logic

Globs normally match paths. Compiled with ``paths=False`` (the content
dimension) they match raw text instead: no separator handling, and ``*``,
``**`` and ``?`` match any character including ``/`` and newlines.

Example:
    >>> matcher = PatternMatcher.from_patterns(["**/*.tsx", re.compile(r"\.jsx$")])
    >>> matcher.matches("src/components/App.jsx")
    True
    >>> compile_pattern("*use client*", paths=False)("'use client'\nexport {}")
    True
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Pattern, Tuple

from presetgate.core.constants import REGEX_FLAG_MAP, ConfigKey, Matcher, PatternLike
from presetgate.core.validators import ValidationError, validate_pattern, validate_regex


class PatternType(Enum):
    """Pattern matching type."""

    GLOB = "glob"  # Shell-style patterns (*.ts, **/*.tsx)
    REGEX = "regex"  # Compiled regular expressions
    DYNAMIC = "dynamic"  # Arbitrary (str) -> bool callables


@dataclass
class PatternEntry:
    """A single compiled pattern with metadata."""

    pattern: PatternLike
    pattern_type: PatternType
    compiled: Matcher


def pattern_type_of(pattern: PatternLike) -> PatternType:
    """Classify a pattern.

    Raises:
        TypeError: If the pattern is of an unrecognized kind
    """
    if isinstance(pattern, str):
        return PatternType.GLOB
    if isinstance(pattern, re.Pattern):
        return PatternType.REGEX
    if callable(pattern):
        return PatternType.DYNAMIC
    raise TypeError(f"Unrecognized pattern kind: {type(pattern).__name__}")


def is_static_pattern(pattern: PatternLike) -> bool:
    """Return True for patterns that can be represented outside a process (glob, regex)."""
    return isinstance(pattern, (str, re.Pattern))


def pattern_key(pattern: PatternLike) -> Tuple:
    """Key used to compare patterns for set union and intersection.

    Globs compare by text, regexes by source and flags. Callables only equal
    themselves.
    """
    if isinstance(pattern, str):
        return ("s", pattern)
    if isinstance(pattern, re.Pattern):
        return ("r", pattern.pattern, pattern.flags)
    return ("f", id(pattern))


def glob_to_regex(pattern: str, text: bool = False) -> str:
    """Translate a glob into a regular expression source (for fullmatch).

    ``*`` and ``?`` never cross ``/``. ``**`` as a whole segment matches any
    number of segments, including none. With ``text=True`` there are no
    segments: ``*`` and ``**`` match any run of characters, ``?`` any one.
    """
    parts: List[str] = []
    i, n = 0, len(pattern)

    while i < n:
        ch = pattern[i]

        if ch == "*" and text:
            parts.append(".*")
            while i + 1 < n and pattern[i + 1] == "*":
                i += 1

        elif ch == "?" and text:
            parts.append(".")

        elif ch == "*":
            if pattern.startswith("**", i):
                segment_start = i == 0 or pattern[i - 1] == "/"
                after = i + 2
                if segment_start and after < n and pattern[after] == "/":
                    # "**/" matches "a/b/" or nothing
                    parts.append("(?:.*/)?")
                    i = after + 1
                    continue
                if segment_start and after == n and parts and parts[-1] == "/":
                    # trailing "/**" matches "/a/b" or nothing
                    parts[-1] = "(?:/.*)?"
                    i = after
                    continue
                parts.append(".*")
                i = after
                continue
            parts.append("[^/]*")

        elif ch == "?":
            parts.append("[^/]")

        elif ch == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                parts.append(re.escape(ch))
            else:
                body = pattern[i + 1:end]
                negate = body[:1] in ("!", "^")
                if negate:
                    body = body[1:]
                body = body.replace("\\", "\\\\")
                parts.append("[" + ("^" if negate else "") + body + "]")
                i = end + 1
                continue

        elif ch == "{":
            end = pattern.find("}", i)
            if end == -1 or "," not in pattern[i:end]:
                parts.append(re.escape(ch))
            else:
                alternatives = pattern[i + 1:end].split(",")
                parts.append("(?:" + "|".join(glob_to_regex(alt, text) for alt in alternatives) + ")")
                i = end + 1
                continue

        else:
            parts.append(re.escape(ch))

        i += 1

    return "".join(parts)


def _normalize_path(value: str) -> str:
    value = value.replace("\\", "/")
    if value.startswith("./"):
        value = value[2:]
    return value


def compile_glob(pattern: str, case_sensitive: bool = True, paths: bool = True) -> Matcher:
    """Compile a glob pattern into a predicate.

    A glob without ``/`` matches the basename of the value. A glob not starting
    with ``/`` ignores a leading ``/`` on the value.

    Args:
        pattern: Glob pattern
        case_sensitive: Whether matching is case-sensitive
        paths: False to match raw text (whole value, no path handling)

    Returns:
        Predicate over path strings, or over text when ``paths`` is False
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    if not paths:
        text_regex = re.compile(glob_to_regex(pattern, text=True), flags | re.DOTALL)
        return lambda value: text_regex.fullmatch(value) is not None

    normalized = _normalize_path(pattern)
    match_base = "/" not in normalized
    anchored = normalized.startswith("/")
    regex = re.compile(glob_to_regex(normalized), flags)

    def match(value: str) -> bool:
        path = _normalize_path(value)
        if match_base:
            path = path.rsplit("/", 1)[-1]
        elif not anchored:
            path = path.lstrip("/")
        return regex.fullmatch(path) is not None

    return match


def compile_pattern(pattern: PatternLike, case_sensitive: bool = True, paths: bool = True) -> Matcher:
    """Compile a single pattern into a predicate.

    Args:
        pattern: Glob string, compiled regex or callable
        case_sensitive: Case sensitivity for globs (regexes carry their own flags)
        paths: Whether globs match paths (True) or raw text (False)

    Returns:
        Predicate over strings

    Raises:
        TypeError: If the pattern is of an unrecognized kind
    """
    pattern_type = pattern_type_of(pattern)

    if pattern_type == PatternType.GLOB:
        return compile_glob(pattern, case_sensitive, paths)
    if pattern_type == PatternType.REGEX:
        return lambda value: pattern.search(value) is not None
    return lambda value: bool(pattern(value))


def compile_patterns(
    patterns: Iterable[PatternLike], case_sensitive: bool = True, paths: bool = True
) -> Matcher:
    """Compile patterns into one predicate that is True if any pattern matches.

    An empty list yields a predicate that never matches.
    """
    return PatternMatcher.from_patterns(patterns, case_sensitive, paths).matches


class PatternMatcher:
    """Ordered set of compiled patterns with OR logic.

    Features:
    - Glob, regex and dynamic patterns
    - Case-sensitive/insensitive globs
    - Path or raw-text glob semantics
    - Patterns compiled once when added
    """

    def __init__(self, case_sensitive: bool = True, paths: bool = True):
        """Initialize pattern matcher.

        Args:
            case_sensitive: Whether glob patterns are case-sensitive
            paths: Whether globs match paths (True) or raw text (False)
        """
        self._patterns: List[PatternEntry] = []
        self._case_sensitive = case_sensitive
        self._paths = paths

    @classmethod
    def from_patterns(
        cls, patterns: Iterable[PatternLike], case_sensitive: bool = True, paths: bool = True
    ) -> "PatternMatcher":
        """Build a matcher from a list of mixed patterns."""
        matcher = cls(case_sensitive, paths)
        for pattern in patterns:
            matcher.add_pattern(pattern)
        return matcher

    def add_pattern(self, pattern: PatternLike) -> None:
        """Add a pattern of any supported kind.

        Raises:
            TypeError: If the pattern is of an unrecognized kind
        """
        entry = PatternEntry(
            pattern=pattern,
            pattern_type=pattern_type_of(pattern),
            compiled=compile_pattern(pattern, self._case_sensitive, self._paths),
        )
        self._patterns.append(entry)

    def matches(self, value: str) -> bool:
        """Check if value matches any pattern."""
        for entry in self._patterns:
            if entry.compiled(value):
                return True
        return False

    def __len__(self) -> int:
        return len(self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)


def describe_pattern(pattern: PatternLike) -> str:
    """Human-readable rendering of a pattern."""
    if isinstance(pattern, str):
        return pattern
    if isinstance(pattern, re.Pattern):
        return f"/{pattern.pattern}/{regex_flag_letters(pattern)}"
    return f"<{getattr(pattern, '__name__', type(pattern).__name__)}>"


def regex_flag_letters(pattern: Pattern[str]) -> str:
    """Flag letters of a compiled regex, in configuration file notation."""
    return "".join(letter for letter, flag in REGEX_FLAG_MAP.items() if pattern.flags & flag)


def pattern_from_config(value: Any) -> PatternLike:
    """Build a pattern from its configuration file form.

    Strings are globs; ``{"regex": "...", "flags": "i"}`` is a regular expression.

    Raises:
        ValidationError: If the value is not a recognized pattern form
    """
    if isinstance(value, Mapping):
        unknown = set(value) - {ConfigKey.REGEX, ConfigKey.REGEX_FLAGS}
        if ConfigKey.REGEX not in value or unknown:
            raise ValidationError(
                f"Regex pattern takes 'regex' and optional 'flags' keys, got: {sorted(value)}"
            )
        return validate_regex(value[ConfigKey.REGEX], value.get(ConfigKey.REGEX_FLAGS, ""))
    validate_pattern(value)
    return value


def pattern_to_config(pattern: PatternLike) -> Any:
    """Render a static pattern in configuration file form."""
    if isinstance(pattern, re.Pattern):
        data = {ConfigKey.REGEX: pattern.pattern}
        letters = regex_flag_letters(pattern)
        if letters:
            data[ConfigKey.REGEX_FLAGS] = letters
        return data
    if isinstance(pattern, str):
        return pattern
    return describe_pattern(pattern)
