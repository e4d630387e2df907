#!/usr/bin/env python3
"""Lifecycle gates that remove whole presets before selection.

Two independent reductions run in a fixed order:
1. Phase gate: once per build, against the resolved build configuration
2. Environment gate: once per environment, against the phase-filtered options

Both reduce the top-level preset list and the preset list of every override
block. Inputs are never mutated; each gate returns new options. Hook
exceptions propagate to the caller.
"""

from dataclasses import replace
from typing import Any, Callable, List, Sequence, TypeVar

from presetgate.core.logging import get_logger
from presetgate.rules.presets import Environment, is_annotated, preset_label

OptionsT = TypeVar("OptionsT")


def filter_presets(presets: Sequence[Any], keep: Callable[[Any], bool]) -> List[Any]:
    """Return the presets for which ``keep`` is True, in order."""
    return [preset for preset in presets if keep(preset)]


def _reduce(options: OptionsT, keep: Callable[[Any], bool]) -> OptionsT:
    return replace(
        options,
        presets=filter_presets(options.presets, keep),
        overrides=[
            replace(override, presets=filter_presets(override.presets, keep))
            for override in options.overrides
        ],
    )


def filter_presets_with_config(options: OptionsT, config: Any) -> OptionsT:
    """Drop presets whose config_resolved_hook rejects the build configuration.

    Args:
        options: Resolved plugin options
        config: Opaque resolved build configuration

    Returns:
        New options with the rejected presets removed
    """
    logger = get_logger()

    def keep(preset: Any) -> bool:
        if not is_annotated(preset) or preset.config_resolved_hook is None:
            return True
        if preset.config_resolved_hook(config):
            return True
        logger.debug("Preset removed by phase gate", preset=preset_label(preset))
        return False

    return _reduce(options, keep)


def filter_presets_with_environment(options: OptionsT, environment: Environment) -> OptionsT:
    """Drop presets whose apply_to_environment_hook rejects the environment.

    Args:
        options: Phase-filtered plugin options
        environment: Environment descriptor

    Returns:
        New options with the rejected presets removed
    """
    logger = get_logger()

    def keep(preset: Any) -> bool:
        if not is_annotated(preset) or preset.apply_to_environment_hook is None:
            return True
        if preset.apply_to_environment_hook(environment):
            return True
        logger.debug(
            "Preset removed by environment gate",
            preset=preset_label(preset),
            environment=environment.name,
        )
        return False

    return _reduce(options, keep)
