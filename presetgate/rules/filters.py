#!/usr/bin/env python3
"""Per-preset filter specifications and their compiled predicates.

A preset may constrain three independent dimensions of a file:
- path: the file identity, matched with glob/regex/dynamic patterns
- category: a coarse module type tag ("tsx", "jsx", ...), matched by membership
- content: the source text, matched with glob/regex/dynamic patterns

Each dimension compiles to a predicate, or to None when it matches every
file. The dimensions of one FilterSpec are combined with AND.

Example:
    >>> spec = FilterSpec(path=re.compile(r"\\.tsx$"), category=["tsx"])
    >>> predicate = compile_filter_spec(spec)
    >>> predicate(FileContext("src/App.tsx", "tsx", "export {}"))
    True
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from presetgate.core.constants import ConfigKey, Dimension, Matcher, PatternLike
from presetgate.rules.patterns import compile_patterns


@dataclass(frozen=True)
class FileContext:
    """The file presented to every compiled predicate."""

    path: str
    category: str
    content: str


CompiledPredicate = Callable[[FileContext], bool]


@dataclass(frozen=True)
class DimensionFilter:
    """Normalized include/exclude filter for one dimension.

    None for either list means "not constrained" (not "match nothing").
    """

    include: Optional[List[PatternLike]] = None
    exclude: Optional[List[PatternLike]] = None

    def is_empty(self) -> bool:
        return self.include is None and self.exclude is None


@dataclass(frozen=True)
class FilterSpec:
    """Raw filter values of one preset, keyed by dimension.

    Values keep the shape they were given in (single pattern, list, or
    include/exclude mapping); normalization happens at compile time.
    """

    path: Any = None
    category: Any = None
    content: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterSpec":
        """Build a FilterSpec from a mapping keyed by dimension name.

        Raises:
            ValueError: If the mapping has keys other than the dimensions
        """
        known = {d.value for d in Dimension}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown filter dimensions: {sorted(unknown)}")
        return cls(
            path=data.get(Dimension.PATH.value),
            category=data.get(Dimension.CATEGORY.value),
            content=data.get(Dimension.CONTENT.value),
        )

    def get(self, dimension: Dimension) -> Any:
        return getattr(self, dimension.value)

    def to_dict(self) -> Dict[str, Any]:
        return {d.value: self.get(d) for d in Dimension if self.get(d) is not None}


def coerce_filter_spec(value: Any) -> Optional[FilterSpec]:
    """Accept a FilterSpec, a mapping, or None."""
    if value is None or isinstance(value, FilterSpec):
        return value
    if isinstance(value, Mapping):
        return FilterSpec.from_dict(value)
    raise TypeError(f"Filter must be a FilterSpec or mapping, got {type(value).__name__}")


def arrayify(value: Any) -> Optional[List[Any]]:
    """Wrap a single value in a list; keep lists; keep None."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _is_single_pattern(value: Any) -> bool:
    return isinstance(value, (str, re.Pattern)) or callable(value)


def normalize_filter(raw: Any) -> DimensionFilter:
    """Normalize a raw pattern-dimension filter.

    A bare pattern or list of patterns is an include list; a mapping or
    DimensionFilter provides include and exclude separately.
    """
    if raw is None:
        return DimensionFilter()
    if isinstance(raw, DimensionFilter):
        return raw
    if _is_single_pattern(raw):
        return DimensionFilter(include=[raw])
    if isinstance(raw, (list, tuple)):
        return DimensionFilter(include=list(raw))
    if isinstance(raw, Mapping):
        return DimensionFilter(
            include=arrayify(raw.get(ConfigKey.INCLUDE)),
            exclude=arrayify(raw.get(ConfigKey.EXCLUDE)),
        )
    raise TypeError(f"Unrecognized filter shape: {type(raw).__name__}")


def normalize_category_filter(raw: Any) -> List[str]:
    """Normalize a raw category filter to a list of tags (empty = unconstrained)."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, DimensionFilter):
        return list(raw.include or [])
    if isinstance(raw, Mapping):
        return arrayify(raw.get(ConfigKey.INCLUDE)) or []
    return list(raw)


def compile_dimension(
    include: Optional[List[PatternLike]],
    exclude: Optional[List[PatternLike]],
    paths: bool = True,
) -> Optional[Matcher]:
    """Compile include/exclude lists into one predicate.

    Returns None when neither list is given. A value that is both included and
    excluded is rejected. Pass ``paths=False`` for the content dimension.
    """
    include_matcher = compile_patterns(include, paths=paths) if include is not None else None
    exclude_matcher = compile_patterns(exclude, paths=paths) if exclude is not None else None

    if include_matcher and exclude_matcher:
        return lambda value: not exclude_matcher(value) and include_matcher(value)
    if exclude_matcher:
        return lambda value: not exclude_matcher(value)
    return include_matcher


def compile_filter(raw: Any, paths: bool = True) -> Optional[Matcher]:
    """Normalize and compile a raw pattern-dimension filter."""
    normalized = normalize_filter(raw)
    return compile_dimension(normalized.include, normalized.exclude, paths)


def compile_category_filter(raw: Any) -> Optional[Matcher]:
    """Compile a category filter into a set-membership predicate."""
    tags = normalize_category_filter(raw)
    if not tags:
        return None
    tag_set = frozenset(tags)
    return lambda value: value in tag_set


def compile_filter_spec(spec: Optional[FilterSpec]) -> Optional[CompiledPredicate]:
    """Compile every dimension of a FilterSpec into one predicate.

    Returns None when no dimension is constrained, so callers can skip the
    call entirely.
    """
    if spec is None:
        return None

    match_path = compile_filter(spec.path)
    match_category = compile_category_filter(spec.category)
    match_content = compile_filter(spec.content, paths=False)

    if match_path is None and match_category is None and match_content is None:
        return None

    def predicate(ctx: FileContext) -> bool:
        return (
            (match_path is None or match_path(ctx.path))
            and (match_category is None or match_category(ctx.category))
            and (match_content is None or match_content(ctx.content))
        )

    return predicate
