"""Aggregator: the single merge point for per-file findings.

Applies rule configuration (disable, severity override), removes duplicate
findings and produces a deterministic ordering. Inputs are never mutated;
overrides produce copies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .models import AnalysisResult, Finding, ParseError, RuleOverride


def finding_sort_key(finding: Finding) -> tuple:
    span = finding.span
    return (
        finding.path,
        span.start_line,
        span.start_column,
        finding.rule_id,
        span.end_line,
        span.end_column,
        finding.message,
    )


def _tiebreak(finding: Finding) -> tuple:
    return (*finding_sort_key(finding), finding.severity.rank, finding.suggestion or "")


def aggregate(
    per_file_findings: Iterable[Iterable[Finding]],
    rules: Mapping[str, RuleOverride],
    ruleset_version: str,
    parse_errors: Iterable[ParseError] = (),
    files_analyzed: int = 0,
    config_warnings: Iterable[str] = (),
) -> AnalysisResult:
    """Merge findings from every file into one ``AnalysisResult``.

    Args:
        per_file_findings: One iterable of findings per analyzed file.
        rules: Per-rule overrides; rules without an entry keep defaults.
        ruleset_version: Version of the rule set that produced the findings.
        parse_errors: Parse and read failures to carry through.
        files_analyzed: Number of files handed to the parser.
        config_warnings: Configuration problems to carry through.

    Returns:
        The result with disabled rules removed, overrides applied,
        duplicates (same rule, path and span) removed and findings sorted.
    """
    unique: dict[tuple, Finding] = {}
    for findings in per_file_findings:
        for finding in findings:
            override = rules.get(finding.rule_id)
            if override is not None and not override.enabled:
                continue
            if override is not None and override.severity is not None:
                finding = finding.model_copy(update={"severity": override.severity})
            key = finding.identity
            kept = unique.get(key)
            # First by sort order wins so the result is independent of input order
            if kept is None or _tiebreak(finding) < _tiebreak(kept):
                unique[key] = finding

    errors = {(e.path, e.span.sort_key(), e.message): e for e in parse_errors}
    return AnalysisResult(
        ruleset_version=ruleset_version,
        files_analyzed=files_analyzed,
        findings=sorted(unique.values(), key=finding_sort_key),
        parse_errors=[errors[k] for k in sorted(errors)],
        config_warnings=list(config_warnings),
    )
