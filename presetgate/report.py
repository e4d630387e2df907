#!/usr/bin/env python3
"""Human-readable reports rendered with Jinja2.

This module renders:
- The pre-filter of one environment (what the host dispatcher will see)
- The per-file selection (which presets apply to one file)
- A per-dimension explanation of why each preset was kept or dropped

Example:
    >>> renderer = ReportRenderer()
    >>> print(renderer.pre_filter_report(plugin.transform_filter(), environment="client"))
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import jinja2

from presetgate.core.constants import Dimension
from presetgate.rules.algebra import PreFilter
from presetgate.rules.filters import FileContext, compile_category_filter, compile_filter
from presetgate.rules.patterns import describe_pattern
from presetgate.rules.presets import is_annotated, preset_label

_TEMPLATES = {
    "pre_filter.txt": """\
Pre-filter{% if environment %} (environment: {{ environment }}){% endif %}

{% for name, dimension_filter in dimensions %}
{{ name }}:
{% if dimension_filter is none %}
  matches everything
{% else %}
  include: {{ dimension_filter.include | patterns }}
  exclude: {{ dimension_filter.exclude | patterns }}
{% endif %}
{% endfor %}
""",
    "selection.txt": """\
{{ context.path }} [{{ context.category }}]
{% if not pre_filter_matched %}
  rejected by file filters
{% endif %}
{% for group in groups %}
{{ group.title }}:
{% for row in group.rows %}
  {{ "+" if row.selected else "-" }} {{ row.label }} ({{ row.reason }})
{% if verbose %}
{% for dimension, verdict in row.dimensions %}
      {{ dimension }}: {{ verdict }}
{% endfor %}
{% endif %}
{% else %}
  (no presets)
{% endfor %}
{% endfor %}
""",
}


class ReportError(Exception):
    """Raised when a report template fails to render."""


@dataclass
class PresetRow:
    """Selection outcome of one preset for one file."""

    label: str
    selected: bool
    reason: str
    dimensions: List[tuple] = field(default_factory=list)


@dataclass
class PresetGroup:
    title: str
    rows: List[PresetRow]


def _render_patterns(patterns: Optional[List[Any]]) -> str:
    if patterns is None:
        return "(any)"
    return ", ".join(describe_pattern(p) for p in patterns)


def explain_preset(preset: Any, context: FileContext) -> PresetRow:
    """Evaluate one preset against a file dimension by dimension."""
    label = preset_label(preset)

    if not is_annotated(preset):
        return PresetRow(label, True, "plain preset")
    if preset.filter is None:
        return PresetRow(label, True, "no filter")

    spec = preset.filter
    checks = [
        (Dimension.PATH, compile_filter(spec.path), context.path),
        (Dimension.CATEGORY, compile_category_filter(spec.category), context.category),
        (Dimension.CONTENT, compile_filter(spec.content, paths=False), context.content),
    ]

    dimensions = []
    selected = True
    for dimension, predicate, value in checks:
        if predicate is None:
            dimensions.append((dimension.value, "unconstrained"))
        elif predicate(value):
            dimensions.append((dimension.value, "matched"))
        else:
            dimensions.append((dimension.value, "rejected"))
            selected = False

    reason = "filter matched" if selected else "filter rejected"
    return PresetRow(label, selected, reason, dimensions)


class ReportRenderer:
    """Renders presetgate reports from built-in templates."""

    def __init__(self, **jinja_options):
        """Initialize renderer.

        Args:
            **jinja_options: Additional Jinja2 environment options
        """
        options = {
            "trim_blocks": True,
            "lstrip_blocks": True,
            "keep_trailing_newline": True,
            "undefined": jinja2.StrictUndefined,
        }
        options.update(jinja_options)
        self._env = jinja2.Environment(loader=jinja2.DictLoader(_TEMPLATES), **options)
        self._env.filters["patterns"] = _render_patterns

    def render(self, template_name: str, **context) -> str:
        """Render a named template.

        Raises:
            ReportError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except jinja2.TemplateError as e:
            raise ReportError(f"Failed to render {template_name}: {e}")

    def pre_filter_report(self, pre_filter: PreFilter, environment: Optional[str] = None) -> str:
        dimensions = [(d.value, pre_filter.get(d)) for d in Dimension]
        return self.render("pre_filter.txt", environment=environment, dimensions=dimensions)

    def selection_report(
        self,
        context: FileContext,
        options: Any,
        pre_filter_matched: bool = True,
        verbose: bool = False,
    ) -> str:
        """Render which presets apply to one file.

        Args:
            context: The file
            options: Gated plugin options (top-level presets and overrides)
            pre_filter_matched: Whether the pre-filter and user include/exclude accepted the file
            verbose: Include the per-dimension verdicts

        Returns:
            Rendered report
        """
        groups = [PresetGroup("presets", [explain_preset(p, context) for p in options.presets])]
        for i, override in enumerate(options.overrides):
            groups.append(
                PresetGroup(f"overrides[{i}]", [explain_preset(p, context) for p in override.presets])
            )

        return self.render(
            "selection.txt",
            context=context,
            groups=groups,
            pre_filter_matched=pre_filter_matched,
            verbose=verbose,
        )


def pre_filter_data(pre_filter: PreFilter, environment: Optional[str] = None) -> Dict[str, Any]:
    """Pre-filter in serializable form, keyed by environment."""
    return {"environment": environment, "pre_filter": pre_filter.to_dict()}
