"""Functional core / imperative shell.

Functions whose names mark them as core logic (``calculate*``, ``parse*``,
...) must not perform I/O. A call counts as I/O when its callee text matches
one of the configured glob patterns, or when it goes through a name
imported from an I/O module. Calls to helpers defined in the same file are
followed one level deep.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

import tree_sitter as ts

from ..ast_engine import FunctionDefinition, ParsedAST, span_of
from ..ast_utils import callee_text, iter_descendants, matches_any, name_has_prefix
from ..models import DetectorSettings
from .base import DetectorHit

if TYPE_CHECKING:
    from ..context import AnalysisContext, FileIndex
    from ..loader import SourceFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IOCall:
    node: ts.Node
    callee: str
    via_helper: str | None = None


def _io_imported_names(index: FileIndex, settings: DetectorSettings) -> frozenset[str]:
    names: set[str] = set()
    for imp in index.imports:
        if matches_any(imp.module, settings.io_modules):
            names.update(imp.imported_names)
    return frozenset(names)


def _callee_root(callee: str) -> str:
    if callee.startswith("new "):
        callee = callee[4:]
    return callee.split("(", 1)[0].split(".", 1)[0]


def _calls_in(body: ts.Node) -> Iterator[ts.Node]:
    for node in iter_descendants(body, cross_functions=True):
        if node.type in ("call_expression", "new_expression"):
            yield node


def _direct_io_call(
    ast: ParsedAST,
    body: ts.Node,
    settings: DetectorSettings,
    io_names: frozenset[str],
) -> IOCall | None:
    for call in _calls_in(body):
        callee = callee_text(ast, call)
        if not callee:
            continue
        if matches_any(callee, settings.io_call_patterns) or _callee_root(callee) in io_names:
            return IOCall(node=call, callee=callee)
    return None


def classify_function(
    ast: ParsedAST,
    fn: FunctionDefinition,
    helpers: dict[str, FunctionDefinition],
    settings: DetectorSettings,
    io_names: frozenset[str] = frozenset(),
) -> IOCall | None:
    """Return the first I/O call made by *fn*, or ``None`` if it is pure.

    Same-file helpers called by plain name are checked for direct I/O.
    """
    if fn.body is None:
        return None
    direct = _direct_io_call(ast, fn.body, settings, io_names)
    if direct is not None:
        return direct

    for call in _calls_in(fn.body):
        callee = callee_text(ast, call)
        helper = helpers.get(callee)
        if helper is None or helper is fn or helper.body is None:
            continue
        nested = _direct_io_call(ast, helper.body, settings, io_names)
        if nested is not None:
            return IOCall(node=call, callee=nested.callee, via_helper=helper.name)
    return None


def detect_impure_core(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag core-named functions that reach I/O."""
    ast = source_file.ast
    if ast is None:
        return
    settings = context.settings
    index = context.index_for(source_file.path)
    helpers = {fn.name: fn for fn in index.functions if fn.kind != "method"}
    io_names = _io_imported_names(index, settings)

    for fn in index.functions:
        if not name_has_prefix(fn.name, settings.core_prefixes):
            continue
        io_call = classify_function(ast, fn, helpers, settings, io_names)
        if io_call is None:
            continue
        if io_call.via_helper:
            detail = f"via '{io_call.via_helper}', which calls '{io_call.callee}'"
        else:
            detail = f"'{io_call.callee}'"
        logger.debug(
            "Impure core function %s in %s", fn.name, source_file.path,
            extra={"path": source_file.path, "rule_id": "impure-core-function"},
        )
        yield DetectorHit(
            span=span_of(io_call.node),
            message=f"core function '{fn.name}' performs I/O: {detail}",
            suggestion=(
                "Move the I/O into the calling shell and pass its result in "
                "as data."
            ),
        )
