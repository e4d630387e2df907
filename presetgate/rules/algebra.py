#!/usr/bin/env python3
"""Pre-filter computation over all configured presets.

Before a file's content is read, the host asks one question: could any preset
possibly apply? This module answers it statically by combining the filters of
every preset with the user's own include/exclude settings:
- includes are unioned across presets (OR); one unconstrained preset makes
  the whole dimension unconstrained, and it stays that way
- excludes are intersected across presets; a pattern survives only if every
  preset excludes it
- the user include replaces the preset include union on the path dimension;
  the user exclude is concatenated with the intersected preset excludes

The result never rejects a file that some preset would have selected.

Example:
    >>> options = resolve_options({"presets": [Preset("a", filter={"path": "**/*.tsx"})]})
    >>> calculate_pre_filter(options).path.include == DEFAULT_INCLUDE
    True
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence

from presetgate.core.constants import Dimension, PatternLike
from presetgate.rules.filters import (
    DimensionFilter,
    arrayify,
    compile_category_filter,
    compile_dimension,
    normalize_category_filter,
    normalize_filter,
)
from presetgate.rules.patterns import is_static_pattern, pattern_key, pattern_to_config
from presetgate.rules.presets import is_annotated


@dataclass(frozen=True)
class PreFilter:
    """Conservative per-dimension filter handed to the host dispatcher.

    A dimension set to None matches every file.
    """

    path: Optional[DimensionFilter] = None
    category: Optional[DimensionFilter] = None
    content: Optional[DimensionFilter] = None

    def get(self, dimension: Dimension) -> Optional[DimensionFilter]:
        return getattr(self, dimension.value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in configuration file notation (omitting unconstrained parts)."""
        result: Dict[str, Any] = {}
        for dimension in Dimension:
            dimension_filter = self.get(dimension)
            if dimension_filter is None:
                continue
            entry = {}
            if dimension_filter.include is not None:
                entry["include"] = [pattern_to_config(p) for p in dimension_filter.include]
            if dimension_filter.exclude is not None:
                entry["exclude"] = [pattern_to_config(p) for p in dimension_filter.exclude]
            result[dimension.value] = entry
        return result


@dataclass
class DimensionUnion:
    """Union of one dimension across presets."""

    includes: Optional[List[Any]]  # None = match all
    excludes: List[Any]


def extract_static_patterns(raw: Any) -> Optional[List[PatternLike]]:
    """Keep a pattern list only if every entry is a glob or regex.

    A dynamic matcher could match anything, so its presence makes the whole
    list unusable. An empty list is returned as None.
    """
    if raw is None:
        return None

    result = []
    for item in arrayify(raw):
        if not is_static_pattern(item):
            return None
        result.append(item)
    return result or None


def intersect_lists(lists: Sequence[Optional[List[Any]]], key: Callable[[Any], Hashable]) -> List[Any]:
    """Items present (by key) in every list, in the order of the first list.

    If any list is None the intersection is empty.
    """
    if not lists or any(items is None for items in lists):
        return []

    result = {key(item): item for item in lists[0]}
    for items in lists[1:]:
        keys = {key(item) for item in items}
        result = {k: item for k, item in result.items() if k in keys}
    return list(result.values())


def concat_lists(first: Optional[List[Any]], second: Optional[List[Any]]) -> Optional[List[Any]]:
    if first is None:
        return second
    if second is None:
        return first
    return first + second


def union_filters(
    raw_filters: Sequence[Any],
    normalize: Callable[[Any], DimensionFilter],
    key: Callable[[Any], Hashable],
) -> DimensionUnion:
    """Union one dimension's filters across presets.

    Args:
        raw_filters: Per-preset raw filter values; None means unconstrained
        normalize: Converts a raw value into a DimensionFilter
        key: Identity of an item for de-duplication and intersection

    Returns:
        DimensionUnion with unioned includes and intersected excludes
    """
    match_all = False
    includes: List[Any] = []
    seen = set()
    exclude_lists: List[Optional[List[Any]]] = []

    for raw in raw_filters:
        if raw is None:
            match_all = True
            exclude_lists.append(None)
            continue

        normalized = normalize(raw)
        if not match_all:
            if normalized.include:
                for item in normalized.include:
                    item_key = key(item)
                    if item_key not in seen:
                        seen.add(item_key)
                        includes.append(item)
            else:
                match_all = True
        exclude_lists.append(normalized.exclude)

    return DimensionUnion(
        includes=None if match_all or not includes else includes,
        excludes=intersect_lists(exclude_lists, key),
    )


def _normalize_pattern_filter(raw: Any) -> DimensionFilter:
    normalized = normalize_filter(raw)
    return DimensionFilter(
        include=extract_static_patterns(normalized.include),
        exclude=extract_static_patterns(normalized.exclude),
    )


def _normalize_category_filter(raw: Any) -> DimensionFilter:
    return DimensionFilter(include=normalize_category_filter(raw) or None)


def _has_plugins(options: Any) -> bool:
    if options.plugins:
        return True
    return any(override.plugins for override in options.overrides)


def _all_presets(options: Any) -> List[Any]:
    presets = list(options.presets)
    for override in options.overrides:
        presets.extend(override.presets)
    return presets


def calculate_pre_filter(options: Any) -> PreFilter:
    """Compute the pre-filter for resolved plugin options.

    Args:
        options: Resolved options (include, exclude, presets, plugins, overrides)

    Returns:
        PreFilter over path, category and content
    """
    user_include = extract_static_patterns(options.include)
    user_exclude = extract_static_patterns(options.exclude)
    base_filter = PreFilter(path=DimensionFilter(include=user_include, exclude=user_exclude))

    # Plugins are opaque and may touch any file the user selected
    if _has_plugins(options):
        return base_filter

    presets = _all_presets(options)
    if not presets:
        return base_filter

    for preset in presets:
        if not is_annotated(preset) or preset.filter is None:
            return base_filter

    filters = [preset.filter for preset in presets]

    path_union = union_filters(
        [f.path for f in filters], _normalize_pattern_filter, pattern_key
    )
    category_union = union_filters(
        [f.category for f in filters], _normalize_category_filter, lambda tag: tag
    )
    content_union = union_filters(
        [f.content for f in filters], _normalize_pattern_filter, pattern_key
    )

    path_include = user_include if user_include is not None else path_union.includes
    path_exclude = concat_lists(user_exclude, path_union.excludes or None)
    path = None
    if path_include is not None or path_exclude is not None:
        path = DimensionFilter(include=path_include, exclude=path_exclude)

    category = None
    if category_union.includes is not None:
        category = DimensionFilter(include=category_union.includes)

    content = None
    if content_union.includes is not None:
        content = DimensionFilter(
            include=content_union.includes, exclude=content_union.excludes or None
        )

    return PreFilter(path=path, category=category, content=content)


def compile_pre_filter(pre_filter: PreFilter) -> Callable[..., bool]:
    """Compile a PreFilter into ``matches(path, category=None, content=None)``.

    A dimension whose value is not known yet (None) is not checked.
    """

    def compile_optional(dimension_filter: Optional[DimensionFilter], paths: bool = True):
        if dimension_filter is None:
            return None
        return compile_dimension(dimension_filter.include, dimension_filter.exclude, paths)

    match_path = compile_optional(pre_filter.path)
    match_content = compile_optional(pre_filter.content, paths=False)
    match_category = None
    if pre_filter.category is not None:
        match_category = compile_category_filter(pre_filter.category.include)

    def matches(path: str, category: Optional[str] = None, content: Optional[str] = None) -> bool:
        if match_path is not None and not match_path(path):
            return False
        if category is not None and match_category is not None and not match_category(category):
            return False
        if content is not None and match_content is not None and not match_content(content):
            return False
        return True

    return matches
