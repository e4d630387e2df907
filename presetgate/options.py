#!/usr/bin/env python3
"""Plugin options: resolution, validation and per-file conversion.

This module turns user options into the shape the rest of presetgate works
with:
- resolve_options: fills defaults and validates every pattern up front
- OptionsConverter: compiles preset filters once and produces, per file, the
  options mapping handed to the compiler
- options_from_config: builds options from a YAML configuration section

Keys other than include/exclude/presets/plugins/overrides are compiler
options and are forwarded verbatim.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from presetgate.core.constants import DEFAULT_EXCLUDE, DEFAULT_INCLUDE, ConfigKey, Dimension
from presetgate.core.validators import (
    ValidationError,
    validate_category_input,
    validate_filter_input,
    validate_pattern_input,
)
from presetgate.rules.filters import FileContext, FilterSpec, arrayify
from presetgate.rules.patterns import pattern_from_config
from presetgate.rules.presets import (
    Environment,
    Preset,
    compile_presets,
    is_annotated,
    select_presets,
    unwrap_preset,
)

_RESERVED_KEYS = {
    ConfigKey.INCLUDE,
    ConfigKey.EXCLUDE,
    ConfigKey.PRESETS,
    ConfigKey.PLUGINS,
    ConfigKey.OVERRIDES,
}


@dataclass(frozen=True)
class OverrideOptions:
    """A configuration fragment merged in later by the compiler."""

    presets: List[Any] = field(default_factory=list)
    plugins: List[Any] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PluginOptions:
    """Resolved plugin options."""

    include: Optional[List[Any]] = None
    exclude: Optional[List[Any]] = None
    presets: List[Any] = field(default_factory=list)
    plugins: List[Any] = field(default_factory=list)
    overrides: List[OverrideOptions] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    def has_work(self) -> bool:
        """True if any preset or plugin is left to run."""
        if self.presets or self.plugins:
            return True
        return any(o.presets or o.plugins for o in self.overrides)


def _split_extra(raw: Mapping[str, Any]) -> Dict[str, Any]:
    extra = {k: v for k, v in raw.items() if k not in _RESERVED_KEYS}
    extra.update(raw.get(ConfigKey.OPTIONS) or {})
    extra.pop(ConfigKey.OPTIONS, None)
    return extra


def _coerce_override(raw: Union[OverrideOptions, Mapping[str, Any]]) -> OverrideOptions:
    if isinstance(raw, OverrideOptions):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Override must be a mapping, got {type(raw).__name__}")
    return OverrideOptions(
        presets=list(raw.get(ConfigKey.PRESETS) or []),
        plugins=list(raw.get(ConfigKey.PLUGINS) or []),
        options=_split_extra(raw),
    )


def validate_presets(presets: Sequence[Any], field_name: str = "presets") -> bool:
    """Validate the filters of annotated presets.

    Raises:
        ValidationError: If any filter contains an unrecognized pattern
    """
    for i, preset in enumerate(presets):
        if not is_annotated(preset) or preset.filter is None:
            continue
        spec = preset.filter
        try:
            validate_filter_input(spec.path, Dimension.PATH.value)
            validate_category_input(spec.category)
            validate_filter_input(spec.content, Dimension.CONTENT.value)
        except ValidationError as e:
            raise ValidationError(f"Invalid filter for {field_name}[{i}] ({preset.label}): {e}")
    return True


def resolve_options(raw: Union[PluginOptions, Mapping[str, Any], None] = None) -> PluginOptions:
    """Fill defaults and validate plugin options.

    ``include`` defaults to source-file extensions and ``exclude`` to
    dependency directories; a single pattern is wrapped in a list.

    Args:
        raw: PluginOptions, a mapping of options, or None

    Returns:
        Resolved PluginOptions

    Raises:
        ValidationError: If a pattern or filter is malformed
    """
    if raw is None:
        raw = {}

    if isinstance(raw, PluginOptions):
        include, exclude = raw.include, raw.exclude
        presets, plugins = list(raw.presets), list(raw.plugins)
        overrides = list(raw.overrides)
        extra = dict(raw.options)
    elif isinstance(raw, Mapping):
        include = raw.get(ConfigKey.INCLUDE)
        exclude = raw.get(ConfigKey.EXCLUDE)
        presets = list(raw.get(ConfigKey.PRESETS) or [])
        plugins = list(raw.get(ConfigKey.PLUGINS) or [])
        overrides = [_coerce_override(o) for o in raw.get(ConfigKey.OVERRIDES) or []]
        extra = _split_extra(raw)
    else:
        raise ValidationError(f"Options must be a mapping, got {type(raw).__name__}")

    validate_pattern_input(include, ConfigKey.INCLUDE)
    validate_pattern_input(exclude, ConfigKey.EXCLUDE)
    validate_presets(presets)
    for i, override in enumerate(overrides):
        validate_presets(override.presets, f"overrides[{i}].presets")

    return PluginOptions(
        include=arrayify(include) if include is not None else list(DEFAULT_INCLUDE),
        exclude=arrayify(exclude) if exclude is not None else list(DEFAULT_EXCLUDE),
        presets=presets,
        plugins=plugins,
        overrides=overrides,
        options=extra,
    )


class OptionsConverter:
    """Per-file conversion of resolved options into compiler options.

    Preset filters are compiled once at construction and reused for every
    file. Instances are read-only afterwards.
    """

    def __init__(self, options: PluginOptions):
        self._options = options
        self._compiled = compile_presets(options.presets)
        self._override_compiled = [compile_presets(o.presets) for o in options.overrides]

    @property
    def options(self) -> PluginOptions:
        return self._options

    def select(self, context: FileContext) -> List[Any]:
        """Top-level presets that apply to the file, in order."""
        return select_presets(context, self._options.presets, self._compiled)

    def select_overrides(self, context: FileContext) -> List[List[Any]]:
        """Per-override presets that apply to the file."""
        return [
            select_presets(context, override.presets, compiled)
            for override, compiled in zip(self._options.overrides, self._override_compiled)
        ]

    def __call__(
        self,
        context: FileContext,
        selected: Optional[List[Any]] = None,
        selected_overrides: Optional[List[List[Any]]] = None,
    ) -> Dict[str, Any]:
        """Build the compiler options for one file.

        Args:
            context: File being compiled
            selected: Result of ``select(context)`` if already computed
            selected_overrides: Result of ``select_overrides(context)`` if already computed

        Returns:
            Compiler options with ``plugins``, selected ``presets`` and, if
            configured, ``overrides`` carrying their own selected presets
        """
        result = dict(self._options.options)
        result[ConfigKey.PLUGINS] = list(self._options.plugins)
        if selected is None:
            selected = self.select(context)
        result[ConfigKey.PRESETS] = [unwrap_preset(p) for p in selected]

        if self._options.overrides:
            if selected_overrides is None:
                selected_overrides = self.select_overrides(context)
            overrides = []
            for override, override_selected in zip(self._options.overrides, selected_overrides):
                entry = dict(override.options)
                entry[ConfigKey.PLUGINS] = list(override.plugins)
                entry[ConfigKey.PRESETS] = [unwrap_preset(p) for p in override_selected]
                overrides.append(entry)
            result[ConfigKey.OVERRIDES] = overrides

        return result


def create_options_converter(options: PluginOptions) -> OptionsConverter:
    return OptionsConverter(options)


def _config_value(config: Any, key: str) -> Any:
    if isinstance(config, Mapping):
        return config.get(key)
    return getattr(config, key, None)


def _phase_hook(commands: List[str], modes: List[str]) -> Callable[[Any], bool]:
    def hook(config: Any) -> bool:
        if commands and _config_value(config, "command") not in commands:
            return False
        if modes and _config_value(config, "mode") not in modes:
            return False
        return True

    return hook


def _environment_hook(names: List[str]) -> Callable[[Environment], bool]:
    allowed = frozenset(names)
    return lambda environment: environment.name in allowed


def _patterns_from_config(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [pattern_from_config(v) for v in value]
    if isinstance(value, Mapping) and ConfigKey.REGEX not in value:
        return {k: _patterns_from_config(v) for k, v in value.items()}
    return pattern_from_config(value)


def _filter_from_config(data: Mapping[str, Any]) -> FilterSpec:
    try:
        spec = FilterSpec.from_dict(data)
    except ValueError as e:
        raise ValidationError(str(e))
    return FilterSpec(
        path=_patterns_from_config(spec.path),
        category=spec.category,
        content=_patterns_from_config(spec.content),
    )


def preset_from_config(entry: Any) -> Any:
    """Build a preset from its configuration file form.

    A string is a plain preset. A mapping is an annotated preset with
    ``name``, optional ``preset`` payload, ``filter``, and the gates
    ``commands``/``modes`` (phase) and ``environments``.

    Raises:
        ValidationError: If the entry is malformed
    """
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, Mapping):
        raise ValidationError(f"Preset must be a name or mapping, got {type(entry).__name__}")

    name = entry.get(ConfigKey.PRESET_NAME)
    if not name:
        raise ValidationError("Preset mapping must have a 'name' field")

    commands = arrayify(entry.get(ConfigKey.PRESET_COMMANDS)) or []
    modes = arrayify(entry.get(ConfigKey.PRESET_MODES)) or []
    environments = arrayify(entry.get(ConfigKey.PRESET_ENVIRONMENTS)) or []
    raw_filter = entry.get(ConfigKey.PRESET_FILTER)

    return Preset(
        preset=entry.get("preset", name),
        filter=_filter_from_config(raw_filter) if raw_filter is not None else None,
        config_resolved_hook=_phase_hook(commands, modes) if commands or modes else None,
        apply_to_environment_hook=_environment_hook(environments) if environments else None,
        name=name,
    )


def options_from_config(section: Mapping[str, Any]) -> PluginOptions:
    """Build resolved options from a ``presetgate`` configuration section.

    Raises:
        ValidationError: If any entry is malformed
    """
    def presets_of(entries: Optional[List[Any]], where: str) -> List[Any]:
        presets = []
        for i, entry in enumerate(entries or []):
            try:
                presets.append(preset_from_config(entry))
            except ValidationError as e:
                raise ValidationError(f"Invalid preset at {where}[{i}]: {e}")
        return presets

    overrides = []
    for i, override in enumerate(section.get(ConfigKey.OVERRIDES) or []):
        if not isinstance(override, Mapping):
            raise ValidationError(f"Override at index {i} must be a mapping")
        overrides.append(
            OverrideOptions(
                presets=presets_of(override.get(ConfigKey.PRESETS), f"overrides[{i}].presets"),
                plugins=list(override.get(ConfigKey.PLUGINS) or []),
                options=dict(override.get(ConfigKey.OPTIONS) or {}),
            )
        )

    return resolve_options(
        PluginOptions(
            include=_patterns_from_config(section.get(ConfigKey.INCLUDE)),
            exclude=_patterns_from_config(section.get(ConfigKey.EXCLUDE)),
            presets=presets_of(section.get(ConfigKey.PRESETS), ConfigKey.PRESETS),
            plugins=list(section.get(ConfigKey.PLUGINS) or []),
            overrides=overrides,
            options=dict(section.get(ConfigKey.OPTIONS) or {}),
        )
    )
