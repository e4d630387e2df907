#!/usr/bin/env python3
"""Preset model and per-file preset selection.

A configured preset is either:
- a plain preset: any opaque value handed to the compiler unchanged; it is
  always selected and never narrows the pre-filter
- an annotated ``Preset``: the compiler payload plus optional capabilities
  (a FilterSpec, a build-phase gate, an environment gate)

Each capability is optional and queried on its own.

Example:
    >>> react = Preset("react", filter={"path": "**/*.tsx"})
    >>> predicates = compile_presets([react, "env"])
    >>> select_presets(FileContext("src/App.tsx", "tsx", ""), [react, "env"], predicates)
    [Preset(preset='react', ...), 'env']
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from presetgate.rules.filters import (
    CompiledPredicate,
    FileContext,
    FilterSpec,
    coerce_filter_spec,
    compile_filter_spec,
)


@dataclass(frozen=True)
class Environment:
    """Descriptor of one build environment (client, ssr, ...)."""

    name: str
    config: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Preset:
    """A preset annotated with selection capabilities."""

    preset: Any
    filter: Optional[FilterSpec] = None
    config_resolved_hook: Optional[Callable[[Any], bool]] = None
    apply_to_environment_hook: Optional[Callable[[Environment], bool]] = None
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "filter", coerce_filter_spec(self.filter))

    @property
    def label(self) -> str:
        """Name used in logs and reports."""
        return self.name or preset_label(self.preset)


def define_preset(preset: Any, **capabilities: Any) -> Preset:
    """Wrap a compiler preset with optional filter and gate hooks."""
    return Preset(preset, **capabilities)


def is_annotated(rule: Any) -> bool:
    """Return True for presets carrying selection capabilities."""
    return isinstance(rule, Preset)


def unwrap_preset(rule: Any) -> Any:
    """Return the payload forwarded to the compiler."""
    return rule.preset if is_annotated(rule) else rule


def preset_label(rule: Any) -> str:
    if is_annotated(rule):
        return rule.label
    if isinstance(rule, str):
        return rule
    return getattr(rule, "__name__", repr(rule))


def compile_presets(presets: Sequence[Any]) -> List[Optional[CompiledPredicate]]:
    """Compile the filter of every preset once, aligned by index.

    Plain presets and presets without a filter compile to None.
    """
    return [compile_filter_spec(p.filter) if is_annotated(p) else None for p in presets]


def select_presets(
    context: FileContext,
    presets: Sequence[Any],
    compiled: Sequence[Optional[CompiledPredicate]],
) -> List[Any]:
    """Keep the presets that apply to one file, in their original order.

    Args:
        context: The file being transformed
        presets: Configured presets
        compiled: Predicates from ``compile_presets``, aligned with presets

    Returns:
        Matching presets (possibly empty)
    """
    selected = []
    for preset, predicate in zip(presets, compiled):
        if predicate is None or predicate(context):
            selected.append(preset)
    return selected
