"""Tests for Jinja2-rendered reports."""
import re

import pytest

from presetgate.options import resolve_options
from presetgate.report import ReportError, ReportRenderer, explain_preset, pre_filter_data
from presetgate.rules.algebra import PreFilter, calculate_pre_filter
from presetgate.rules.filters import DimensionFilter
from presetgate.rules.presets import Preset


@pytest.fixture
def renderer():
    return ReportRenderer()


class TestExplainPreset:
    """Tests for explain_preset."""

    def test_plain(self, tsx_context):
        """Test plain presets are always selected."""
        row = explain_preset("env", tsx_context)
        assert row.selected
        assert row.reason == "plain preset"

    def test_no_filter(self, tsx_context):
        """Test annotated presets without filter."""
        row = explain_preset(Preset("env"), tsx_context)
        assert row.selected
        assert row.reason == "no filter"

    def test_dimensions(self, tsx_context):
        """Test per-dimension verdicts."""
        preset = Preset("x", filter={"path": "*.tsx", "content": re.compile("nothing")})
        row = explain_preset(preset, tsx_context)
        assert not row.selected
        assert row.reason == "filter rejected"
        assert row.dimensions == [
            ("path", "matched"),
            ("category", "unconstrained"),
            ("content", "rejected"),
        ]


class TestPreFilterReport:
    """Tests for the pre-filter report."""

    def test_default(self, renderer):
        """Test default path settings are shown."""
        report = renderer.pre_filter_report(calculate_pre_filter(resolve_options()), environment="client")
        assert report.startswith("Pre-filter (environment: client)")
        assert "include: /\\.(?:[jt]sx?|[cm][jt]s)(?:$|\\?)/" in report
        assert "category:\n  matches everything" in report

    def test_unconstrained_parts(self, renderer):
        """Test unconstrained lists are shown as (any)."""
        report = renderer.pre_filter_report(PreFilter(category=DimensionFilter(include=["tsx", "jsx"])))
        assert report.startswith("Pre-filter\n")
        assert "include: tsx, jsx" in report
        assert "exclude: (any)" in report
        assert "path:\n  matches everything" in report

    def test_pre_filter_data(self):
        """Test serializable form."""
        data = pre_filter_data(PreFilter(category=DimensionFilter(include=["tsx"])), "ssr")
        assert data == {"environment": "ssr", "pre_filter": {"category": {"include": ["tsx"]}}}


class TestSelectionReport:
    """Tests for the selection report."""

    def test_rows(self, renderer, tsx_context, react_preset, vue_preset):
        """Test selected and rejected presets are marked."""
        options = resolve_options({"presets": [react_preset, vue_preset, "env"]})
        report = renderer.selection_report(tsx_context, options)
        assert report.startswith("src/components/App.tsx [tsx]")
        assert "  + react (filter matched)" in report
        assert "  - vue (filter rejected)" in report
        assert "  + env (plain preset)" in report
        assert "rejected by file filters" not in report

    def test_overrides_and_verbose(self, renderer, tsx_context, react_preset):
        """Test override groups and per-dimension lines."""
        options = resolve_options({"overrides": [{"presets": [react_preset]}]})
        report = renderer.selection_report(tsx_context, options, pre_filter_matched=False, verbose=True)
        assert "rejected by file filters" in report
        assert "presets:\n  (no presets)" in report
        assert "overrides[0]:" in report
        assert "path: matched" in report
        assert "category: matched" in report

    def test_missing_template(self, renderer):
        """Test unknown templates raise ReportError."""
        with pytest.raises(ReportError):
            renderer.render("missing.txt")

    def test_undefined_variable(self, renderer):
        """Test missing context raises ReportError."""
        with pytest.raises(ReportError):
            renderer.render("pre_filter.txt")
