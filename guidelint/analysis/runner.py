"""Analysis orchestration.

``Analyzer.run`` drives one run through its phases:

1. load: list and read files concurrently (bounded by ``max_workers``)
2. parse and index each file in a worker thread
3. merge the per-file indexes into the read-only ``AnalysisContext``
4. run every selected detector on each file in a worker thread
5. aggregate the fanned-in findings into an ``AnalysisResult``

Results never depend on completion order: the aggregator sorts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence

from ..providers import FileProvider
from .aggregator import aggregate
from .ast_engine import ASTEngine
from .context import AnalysisContext, FileIndex, build_context, build_file_index
from .loader import CancellationToken, SourceFile, SourceLoader
from .models import AnalysisResult, Finding, ParseError, RuleConfig, Severity, Span
from .registry import RuleDefinition, RuleRegistry, build_default_registry

logger = logging.getLogger(__name__)

__all__ = ["Analyzer", "CancellationToken", "run_rules_on_file"]


def _whole_file_span(source_file: SourceFile) -> Span:
    lines = source_file.text.splitlines() or [""]
    return Span(
        start_line=1,
        start_column=0,
        end_line=len(lines),
        end_column=len(lines[-1]),
    )


def run_rules_on_file(
    source_file: SourceFile,
    rules: Iterable[RuleDefinition],
    context: AnalysisContext,
) -> list[Finding]:
    """Run each rule's detector against one parsed file.

    A detector that raises produces a single ``detector error:`` finding
    for its rule and file at warning severity; other rules still run.
    """
    findings: list[Finding] = []
    for rule in rules:
        try:
            hits = list(rule.detector(source_file, context))
        except Exception as e:
            logger.warning(
                "Detector %s failed on %s: %s", rule.id, source_file.path, e,
                exc_info=True,
                extra={"event": "detector_error", "path": source_file.path, "rule_id": rule.id},
            )
            findings.append(
                Finding(
                    rule_id=rule.id,
                    path=source_file.path,
                    span=_whole_file_span(source_file),
                    severity=Severity.WARNING,
                    message=f"detector error: {type(e).__name__}: {e}",
                )
            )
            continue

        for hit in hits:
            findings.append(
                Finding(
                    rule_id=rule.id,
                    path=source_file.path,
                    span=hit.span,
                    severity=hit.severity or rule.default_severity,
                    message=hit.message,
                    suggestion=hit.suggestion,
                )
            )
    return findings


class Analyzer:
    """Runs the registered rules over a tree of source files.

    Args:
        registry: Rule registry; defaults to the built-in rule set.
        config: Rule overrides and detector settings.
        only: Restrict the run to these rule ids.
        max_workers: Maximum number of files processed concurrently.
        engine: Parser adapter to share; one is created if omitted.
        provider: File provider for the loader.

    Raises:
        UnknownRuleError: If *only* names a rule the registry lacks.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        config: RuleConfig | None = None,
        only: Sequence[str] | None = None,
        max_workers: int = 4,
        engine: ASTEngine | None = None,
        provider: FileProvider | None = None,
    ) -> None:
        self.registry = registry or build_default_registry()
        self.config = config or RuleConfig()
        self.rules = self.registry.select(only)
        self.max_workers = max(1, max_workers)
        self.engine = engine or ASTEngine()
        self.loader = SourceLoader(
            settings=self.config.settings,
            provider=provider,
            max_workers=self.max_workers,
        )

    async def run(
        self,
        roots: Sequence[str],
        token: CancellationToken | None = None,
    ) -> AnalysisResult:
        """Analyze every supported file beneath *roots*.

        Raises:
            LoaderError: If no files are found or a root is unreadable.
            AnalysisCancelledError: If *token* is cancelled during the run.
        """
        token = token or CancellationToken()
        started = time.monotonic()
        source_files, read_errors = await self.loader.load(roots, token)
        result = await self.analyze(source_files, read_errors, token)
        logger.info(
            "Analyzed %d files: %d findings, %d parse errors",
            result.files_analyzed, len(result.findings), len(result.parse_errors),
            extra={
                "event": "run_complete",
                "files": result.files_analyzed,
                "findings": len(result.findings),
                "duration_ms": round((time.monotonic() - started) * 1000),
            },
        )
        return result

    async def analyze(
        self,
        source_files: Sequence[SourceFile],
        read_errors: Iterable[ParseError] = (),
        token: CancellationToken | None = None,
    ) -> AnalysisResult:
        """Analyze already-loaded source files."""
        token = token or CancellationToken()
        semaphore = asyncio.Semaphore(self.max_workers)
        settings = self.config.settings

        async def _prepare(
            source_file: SourceFile,
        ) -> tuple[SourceFile, FileIndex] | ParseError:
            async with semaphore:
                token.raise_if_cancelled()
                return await asyncio.to_thread(self._parse_and_index, source_file)

        prepared = await asyncio.gather(*(_prepare(sf) for sf in source_files))
        token.raise_if_cancelled()

        parsed: list[SourceFile] = []
        indexes: list[FileIndex] = []
        parse_errors: list[ParseError] = list(read_errors)
        for item in prepared:
            if isinstance(item, ParseError):
                parse_errors.append(item)
                continue
            source_file, index = item
            parsed.append(source_file)
            indexes.append(index)

        context = build_context(indexes, settings)
        rules = self.rules

        async def _detect(source_file: SourceFile) -> list[Finding]:
            async with semaphore:
                token.raise_if_cancelled()
                return await asyncio.to_thread(
                    run_rules_on_file, source_file, rules, context
                )

        per_file = await asyncio.gather(*(_detect(sf) for sf in parsed))
        token.raise_if_cancelled()

        return aggregate(
            per_file,
            self.config.rules,
            ruleset_version=self.registry.version,
            parse_errors=parse_errors,
            files_analyzed=len(source_files),
            config_warnings=self.config.warnings,
        )

    def _parse_and_index(
        self, source_file: SourceFile
    ) -> tuple[SourceFile, FileIndex] | ParseError:
        parsed = self.engine.parse_source(
            source_file.path, source_file.text, source_file.language
        )
        if isinstance(parsed, ParseError):
            logger.info(
                "Parse error in %s: %s", source_file.path, parsed.message,
                extra={"event": "parse_error", "path": source_file.path},
            )
            return parsed
        with_ast = source_file.with_ast(parsed)
        return with_ast, build_file_index(with_ast, self.engine, self.config.settings)
