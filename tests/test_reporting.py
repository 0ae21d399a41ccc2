"""Tests for text and JSON rendering."""

import json

import pytest

from guidelint.analysis.models import AnalysisResult, Finding, ParseError, Severity, Span
from guidelint.reporting import format_finding, render, render_json, render_text


@pytest.fixture
def result() -> AnalysisResult:
    return AnalysisResult(
        ruleset_version="1",
        files_analyzed=2,
        findings=[
            Finding(
                rule_id="prefer-early-return",
                path="src/order.ts",
                span=Span(start_line=5, start_column=8, end_line=7, end_column=9),
                severity=Severity.WARNING,
                message="'if' nested 4 levels deep in function 'process' (max 3)",
                suggestion="Invert the enclosing conditions into guard clauses that return early.",
            ),
            Finding(
                rule_id="impure-core-function",
                path="src/rate.ts",
                span=Span(start_line=2, start_column=2, end_line=2, end_column=20),
                severity=Severity.ERROR,
                message="core function 'calculateRate' performs I/O: 'fetch'",
            ),
        ],
        parse_errors=[
            ParseError(
                path="src/bad.ts",
                span=Span(start_line=3, start_column=0, end_line=3, end_column=4),
                message="syntax error near 'oops'",
            )
        ],
        config_warnings=["unknown rule 'bogus'"],
    )


class TestTextReport:
    """render_text()"""

    def test_format_finding_uses_one_based_columns(self, result):
        assert format_finding(result.findings[0]) == (
            "src/order.ts:5:9 [warning] prefer-early-return: "
            "'if' nested 4 levels deep in function 'process' (max 3)"
        )

    def test_full_text_report(self, result):
        assert render_text(result) == (
            "config: [warning] unknown rule 'bogus'\n"
            "src/bad.ts:3:1 [error] parse-error: syntax error near 'oops'\n"
            "src/order.ts:5:9 [warning] prefer-early-return: "
            "'if' nested 4 levels deep in function 'process' (max 3)\n"
            "src/rate.ts:2:3 [error] impure-core-function: "
            "core function 'calculateRate' performs I/O: 'fetch'\n"
            "2 files analyzed: 1 error(s), 1 warning(s), 0 info, 1 parse error(s)\n"
        )

    def test_empty_result(self):
        text = render_text(AnalysisResult(ruleset_version="1", files_analyzed=1))
        assert text == "1 file analyzed: 0 error(s), 0 warning(s), 0 info, 0 parse error(s)\n"

    def test_rendering_is_deterministic(self, result):
        assert render(result, "text") == render(result, "text")


class TestJsonReport:
    """render_json()"""

    def test_json_structure(self, result):
        data = json.loads(render_json(result))
        assert data["ruleset_version"] == "1"
        assert data["files_analyzed"] == 2
        assert data["config_warnings"] == ["unknown rule 'bogus'"]
        first = data["findings"][0]
        assert first["rule_id"] == "prefer-early-return"
        assert first["severity"] == "warning"
        assert first["span"] == {
            "start_line": 5, "start_column": 8, "end_line": 7, "end_column": 9,
        }
        assert data["findings"][1]["suggestion"] is None
        assert data["parse_errors"][0]["path"] == "src/bad.ts"

    def test_json_round_trips_into_model(self, result):
        data = json.loads(render(result, "json"))
        assert AnalysisResult.model_validate(data) == result

    def test_unknown_format(self, result):
        with pytest.raises(ValueError, match="Unsupported format"):
            render(result, "xml")
