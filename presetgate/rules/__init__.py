"""presetgate Rules System.

This package decides which presets apply to which files:
- patterns: glob/regex/dynamic pattern compilation
- filters: per-preset filter specs compiled into predicates
- presets: preset model and per-file selection
- algebra: conservative pre-filter over all presets
- lifecycle: build-phase and environment gates
"""

from .algebra import (
    DimensionUnion,
    PreFilter,
    calculate_pre_filter,
    compile_pre_filter,
    extract_static_patterns,
    intersect_lists,
    union_filters,
)
from .filters import (
    DimensionFilter,
    FileContext,
    FilterSpec,
    compile_category_filter,
    compile_dimension,
    compile_filter_spec,
    normalize_filter,
)
from .lifecycle import filter_presets_with_config, filter_presets_with_environment
from .patterns import PatternMatcher, PatternType, compile_pattern, compile_patterns, pattern_key
from .presets import (
    Environment,
    Preset,
    compile_presets,
    define_preset,
    is_annotated,
    select_presets,
    unwrap_preset,
)

__all__ = [
    # Pattern matching
    "PatternType",
    "PatternMatcher",
    "compile_pattern",
    "compile_patterns",
    "pattern_key",
    # Dimension filters
    "FileContext",
    "FilterSpec",
    "DimensionFilter",
    "normalize_filter",
    "compile_dimension",
    "compile_category_filter",
    "compile_filter_spec",
    # Presets
    "Environment",
    "Preset",
    "define_preset",
    "is_annotated",
    "unwrap_preset",
    "compile_presets",
    "select_presets",
    # Pre-filter
    "PreFilter",
    "DimensionUnion",
    "extract_static_patterns",
    "intersect_lists",
    "union_filters",
    "calculate_pre_filter",
    "compile_pre_filter",
    # Lifecycle
    "filter_presets_with_config",
    "filter_presets_with_environment",
]
