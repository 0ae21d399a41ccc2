"""Shared fixtures for guidelint tests."""

from __future__ import annotations

import logging
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from guidelint.analysis.aggregator import finding_sort_key
from guidelint.analysis.ast_engine import ASTEngine, language_for_path
from guidelint.analysis.context import AnalysisContext, build_context, build_file_index
from guidelint.analysis.loader import SourceFile, is_test_path
from guidelint.analysis.models import DetectorSettings, Finding, ParseError
from guidelint.analysis.registry import RuleRegistry, build_default_registry
from guidelint.analysis.runner import run_rules_on_file


@pytest.fixture
def engine() -> ASTEngine:
    """Create a shared ASTEngine instance."""
    return ASTEngine()


@pytest.fixture
def registry() -> RuleRegistry:
    return build_default_registry()


def make_source_files(
    engine: ASTEngine,
    sources: dict[str, str],
    settings: DetectorSettings,
) -> list[SourceFile]:
    """Parse in-memory sources into ``SourceFile`` records."""
    files: list[SourceFile] = []
    for path, text in sources.items():
        text = textwrap.dedent(text)
        language = language_for_path(path) or "typescript"
        parsed = engine.parse_source(path, text, language)
        if isinstance(parsed, ParseError):
            raise AssertionError(f"{path} did not parse: {parsed.message}")
        files.append(
            SourceFile(
                path=path,
                text=text,
                language=language,
                ast=parsed,
                is_test=is_test_path(path, settings.test_file_patterns),
            )
        )
    return files


def make_context(
    engine: ASTEngine, files: list[SourceFile], settings: DetectorSettings
) -> AnalysisContext:
    indexes = [build_file_index(f, engine, settings) for f in files]
    return build_context(indexes, settings)


@pytest.fixture
def run_rule(
    engine: ASTEngine, registry: RuleRegistry
) -> Callable[..., list[Finding]]:
    """Run one registered rule over a set of in-memory files.

    Usage::

        findings = run_rule("prefer-early-return", {"src/a.ts": code})
    """

    def _run(
        rule_id: str,
        sources: dict[str, str],
        settings: DetectorSettings | None = None,
    ) -> list[Finding]:
        settings = settings or DetectorSettings()
        files = make_source_files(engine, sources, settings)
        context = make_context(engine, files, settings)
        rule = registry.resolve(rule_id)
        findings: list[Finding] = []
        for source_file in files:
            findings.extend(run_rules_on_file(source_file, [rule], context))
        return sorted(findings, key=finding_sort_key)

    return _run


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative_path: source}`` under a temporary project root."""

    def _write(files: dict[str, str]) -> Path:
        for relative, text in files.items():
            target = tmp_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(text), encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture(autouse=True)
def _reset_guidelint_logger():
    """Undo handlers installed by ``configure_logging`` during a test."""
    yield
    logger = logging.getLogger("guidelint")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def context_for(engine: ASTEngine) -> Callable[..., AnalysisContext]:
    """Build an ``AnalysisContext`` from in-memory sources."""

    def _build(
        sources: dict[str, str], settings: DetectorSettings | None = None
    ) -> AnalysisContext:
        settings = settings or DetectorSettings()
        return make_context(engine, make_source_files(engine, sources, settings), settings)

    return _build
