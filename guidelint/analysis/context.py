"""Cross-file analysis context.

Each parsed file is summarised into a ``FileIndex`` (function definitions,
exports, imports, call-site names and duplication candidates). The indexes
are merged once, in a single step, into an ``AnalysisContext`` that every
detector reads but none writes.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .ast_engine import (
    ASTEngine,
    ExportBinding,
    FunctionDefinition,
    ImportStatement,
    ObjectProperty,
    span_of,
)
from .ast_utils import (
    COMPOUND_STATEMENT_TYPES,
    FUNCTION_NODE_TYPES,
    call_arguments,
    call_name,
    iter_descendants,
    structural_fingerprints,
)
from .loader import SourceFile
from .models import DetectorSettings, Span

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCandidate:
    """A subtree eligible for structural duplicate detection."""

    fingerprint: str
    span: Span
    start_byte: int
    end_byte: int
    node_count: int


@dataclass(frozen=True)
class DuplicateOccurrence:
    """A flagged occurrence of a repeated code shape.

    Attributes:
        candidate: The flagged subtree.
        occurrences: Total number of occurrences across the file set.
        other_locations: ``path:line`` of the other occurrences, sorted.
    """

    candidate: DuplicateCandidate
    occurrences: int
    other_locations: tuple[str, ...] = ()


@dataclass(frozen=True)
class FileIndex:
    """Per-file facts extracted once, after parsing."""

    path: str
    functions: tuple[FunctionDefinition, ...] = ()
    exports: tuple[ExportBinding, ...] = ()
    imports: tuple[ImportStatement, ...] = ()
    properties: tuple[ObjectProperty, ...] = ()
    call_names: tuple[str, ...] = ()
    duplicate_candidates: tuple[DuplicateCandidate, ...] = ()

    @property
    def exported_names(self) -> frozenset[str]:
        return frozenset(e.name for e in self.exports if e.name)


@dataclass(frozen=True)
class AnalysisContext:
    """Read-only view of the whole file set, shared by all detectors.

    Attributes:
        settings: Detector thresholds and pattern lists.
        indexes: ``FileIndex`` per file path.
        call_sites: Number of call sites per callee name across all files.
        duplicates: Flagged duplicate occurrences per file path.
    """

    settings: DetectorSettings
    indexes: Mapping[str, FileIndex] = field(default_factory=dict)
    call_sites: Mapping[str, int] = field(default_factory=dict)
    duplicates: Mapping[str, tuple[DuplicateOccurrence, ...]] = field(default_factory=dict)

    def index_for(self, path: str) -> FileIndex:
        return self.indexes.get(path) or FileIndex(path=path)

    def call_site_count(self, name: str) -> int:
        return self.call_sites.get(name, 0)

    def duplicates_in(self, path: str) -> tuple[DuplicateOccurrence, ...]:
        return self.duplicates.get(path, ())


# ---------------------------------------------------------------------------
# Per-file indexing
# ---------------------------------------------------------------------------


def _is_duplicate_candidate(node) -> bool:
    if node.type in COMPOUND_STATEMENT_TYPES:
        return True
    # Function bodies only; other blocks are covered by their statement
    return (
        node.type == "statement_block"
        and node.parent is not None
        and node.parent.type in FUNCTION_NODE_TYPES
    )


def build_file_index(
    source_file: SourceFile, engine: ASTEngine, settings: DetectorSettings
) -> FileIndex:
    """Extract the facts detectors and the context need from one file."""
    ast = source_file.ast
    if ast is None:
        return FileIndex(path=source_file.path)

    call_names: list[str] = []
    for node in iter_descendants(ast.root_node, cross_functions=True):
        if node.type in ("jsx_opening_element", "jsx_self_closing_element"):
            # <Widget /> renders the Widget component
            element = node.child_by_field_name("name")
            if element is not None:
                call_names.append(ast.get_text(element))
            continue
        if node.type not in ("call_expression", "new_expression"):
            continue
        name = call_name(ast, node)
        if name:
            call_names.append(name)
        # A function passed by reference is a use, like a call
        for arg in call_arguments(node):
            if arg.type == "identifier":
                call_names.append(ast.get_text(arg))

    candidates = tuple(
        DuplicateCandidate(
            fingerprint=fingerprint,
            span=span_of(node),
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            node_count=size,
        )
        for node, fingerprint, size in structural_fingerprints(
            ast.root_node,
            COMPOUND_STATEMENT_TYPES | {"statement_block"},
        )
        if size >= settings.min_duplicate_nodes and _is_duplicate_candidate(node)
    )

    return FileIndex(
        path=source_file.path,
        functions=tuple(engine.find_function_definitions(ast)),
        exports=tuple(engine.find_exports(ast)),
        imports=tuple(engine.find_imports(ast)),
        properties=tuple(engine.find_object_properties(ast)),
        call_names=tuple(call_names),
        duplicate_candidates=candidates,
    )


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _flag_duplicates(
    indexes: Iterable[FileIndex], settings: DetectorSettings
) -> dict[str, tuple[DuplicateOccurrence, ...]]:
    by_fingerprint: dict[str, list[tuple[str, DuplicateCandidate]]] = defaultdict(list)
    for index in indexes:
        for candidate in index.duplicate_candidates:
            by_fingerprint[candidate.fingerprint].append((index.path, candidate))

    flagged: dict[str, list[DuplicateOccurrence]] = defaultdict(list)
    for group in by_fingerprint.values():
        if len(group) < settings.duplicate_threshold:
            continue
        for path, candidate in group:
            others = sorted(
                f"{other_path}:{other.span.start_line}"
                for other_path, other in group
                if other is not candidate
            )
            flagged[path].append(
                DuplicateOccurrence(
                    candidate=candidate,
                    occurrences=len(group),
                    other_locations=tuple(others),
                )
            )

    result: dict[str, tuple[DuplicateOccurrence, ...]] = {}
    for path, occurrences in flagged.items():
        kept = [
            occ for occ in occurrences
            if not any(
                _strictly_contains(outer.candidate, occ.candidate)
                for outer in occurrences
            )
        ]
        kept.sort(key=lambda occ: occ.candidate.start_byte)
        result[path] = tuple(kept)
    return result


def _strictly_contains(outer: DuplicateCandidate, inner: DuplicateCandidate) -> bool:
    return (
        outer.start_byte <= inner.start_byte
        and inner.end_byte <= outer.end_byte
        and (outer.start_byte, outer.end_byte) != (inner.start_byte, inner.end_byte)
    )


def build_context(
    indexes: Iterable[FileIndex],
    settings: DetectorSettings,
) -> AnalysisContext:
    """Merge per-file indexes into the run's read-only context."""
    index_list = sorted(indexes, key=lambda index: index.path)
    call_sites: Counter[str] = Counter()
    for index in index_list:
        call_sites.update(index.call_names)

    duplicates = _flag_duplicates(index_list, settings)
    logger.debug(
        "Built analysis context: %d files, %d callee names, %d files with duplicates",
        len(index_list), len(call_sites), len(duplicates),
        extra={"event": "context_built", "files": len(index_list)},
    )
    return AnalysisContext(
        settings=settings,
        indexes=MappingProxyType({index.path: index for index in index_list}),
        call_sites=MappingProxyType(dict(call_sites)),
        duplicates=MappingProxyType(duplicates),
    )
