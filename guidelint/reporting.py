"""Render an ``AnalysisResult`` as text or JSON.

Rendering is pure: the same result always renders to the same string.
"""

from __future__ import annotations

import json
from typing import Any

from .analysis.models import AnalysisResult, Finding, ParseError

FORMATS = ("text", "json")


def render(result: AnalysisResult, fmt: str = "text") -> str:
    """Render *result* in the requested format.

    Args:
        result: The aggregated analysis result.
        fmt: ``"text"`` or ``"json"``.

    Raises:
        ValueError: If *fmt* is not a supported format.
    """
    if fmt == "text":
        return render_text(result)
    if fmt == "json":
        return render_json(result)
    raise ValueError(f"Unsupported format: {fmt!r}. Supported: {', '.join(FORMATS)}")


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def _location(path: str, line: int, column: int) -> str:
    # Columns are stored 0-based and shown 1-based like compilers do
    return f"{path}:{line}:{column + 1}"


def format_finding(finding: Finding) -> str:
    span = finding.span
    return (
        f"{_location(finding.path, span.start_line, span.start_column)} "
        f"[{finding.severity.value}] {finding.rule_id}: {finding.message}"
    )


def format_parse_error(error: ParseError) -> str:
    span = error.span
    return (
        f"{_location(error.path, span.start_line, span.start_column)} "
        f"[error] parse-error: {error.message}"
    )


def _summary(result: AnalysisResult) -> str:
    counts = result.count_by_severity()
    files = "file" if result.files_analyzed == 1 else "files"
    return (
        f"{result.files_analyzed} {files} analyzed: "
        f"{counts['error']} error(s), {counts['warning']} warning(s), "
        f"{counts['info']} info, {len(result.parse_errors)} parse error(s)"
    )


def render_text(result: AnalysisResult) -> str:
    lines = [f"config: [warning] {warning}" for warning in result.config_warnings]
    lines.extend(format_parse_error(error) for error in result.parse_errors)
    lines.extend(format_finding(finding) for finding in result.findings)
    lines.append(_summary(result))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def result_to_dict(result: AnalysisResult) -> dict[str, Any]:
    """Convert *result* into plain JSON-compatible data."""
    return {
        "ruleset_version": result.ruleset_version,
        "files_analyzed": result.files_analyzed,
        "findings": [f.model_dump(mode="json") for f in result.findings],
        "parse_errors": [e.model_dump(mode="json") for e in result.parse_errors],
        "config_warnings": list(result.config_warnings),
    }


def render_json(result: AnalysisResult) -> str:
    return json.dumps(result_to_dict(result), indent=2) + "\n"
