"""Extraction detectors.

Two sides of the same guideline: helpers extracted without earning it
(single call site plus a flag parameter or no standalone concept), and
code shapes repeated often enough that they should have been extracted.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING

import tree_sitter as ts

from ..ast_engine import FunctionDefinition, Parameter, ParsedAST
from ..ast_utils import body_statements, iter_descendants
from .base import DetectorHit

if TYPE_CHECKING:
    from ..context import AnalysisContext
    from ..loader import SourceFile

_FLAG_NAME_RE = re.compile(
    r"^(?:is|has|should|can|enable|disable|use|with|without|include|exclude|"
    r"allow|force|skip|show|hide|verbose|dry)(?:[A-Z_]|$)"
    r"|(?:Flag|_flag|flag)$"
)
_STATE_NODE_TYPES = frozenset({
    "assignment_expression",
    "augmented_assignment_expression",
    "update_expression",
    "variable_declaration",
})
_ACCESSOR_TOKENS = frozenset({"get", "set", "static"})


# ---------------------------------------------------------------------------
# over-extracted-function
# ---------------------------------------------------------------------------


def _is_flag_like(param: Parameter) -> bool:
    if param.type_text is not None and param.type_text.strip() == "boolean":
        return True
    if param.default_text in ("true", "false"):
        return True
    return bool(_FLAG_NAME_RE.search(param.name))


def _condition_identifiers(ast: ParsedAST, body: ts.Node) -> set[str]:
    """Names of identifiers used in ``if`` / ternary conditions of *body*."""
    names: set[str] = set()
    for node in iter_descendants(body):
        if node.type not in ("if_statement", "ternary_expression"):
            continue
        condition = node.child_by_field_name("condition")
        if condition is None:
            continue
        if condition.type == "identifier":
            names.add(ast.get_text(condition))
        for sub in iter_descendants(condition):
            if sub.type == "identifier":
                names.add(ast.get_text(sub))
    return names


def _conditional_parameter(ast: ParsedAST, fn: FunctionDefinition) -> str | None:
    if fn.body is None:
        return None
    flags = [p.name for p in fn.parameters if _is_flag_like(p)]
    if not flags:
        return None
    used = _condition_identifiers(ast, fn.body)
    return next((name for name in flags if name in used), None)


def _has_internal_state(body: ts.Node) -> bool:
    for node in iter_descendants(body):
        if node.type in _STATE_NODE_TYPES:
            return True
        if node.type == "lexical_declaration" and node.children and node.children[0].type == "let":
            return True
    return False


def _is_accessor_or_constructor(fn: FunctionDefinition) -> bool:
    if fn.name == "constructor":
        return True
    if fn.kind != "method" or fn.node is None:
        return False
    return any(
        not child.is_named and child.type in _ACCESSOR_TOKENS
        for child in fn.node.children
    )


def detect_over_extraction(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag single-use helpers that do not stand on their own."""
    ast = source_file.ast
    if ast is None:
        return
    index = context.index_for(source_file.path)
    exported = index.exported_names
    limit = context.settings.short_function_statements

    for fn in index.functions:
        if fn.is_exported or fn.name in exported or _is_accessor_or_constructor(fn):
            continue
        calls = context.call_site_count(fn.name)
        if calls > 1:
            continue

        flag = _conditional_parameter(ast, fn)
        if flag is not None:
            yield DetectorHit(
                span=fn.span,
                message=(
                    f"function '{fn.name}' has {calls} call site(s) and branches "
                    f"on flag parameter '{flag}'"
                ),
                suggestion=(
                    "Inline it at the call site, or split it into one function "
                    "per branch."
                ),
            )
            continue

        statements = body_statements(fn.body)
        if len(statements) >= limit or fn.body is None or _has_internal_state(fn.body):
            continue
        yield DetectorHit(
            span=fn.span,
            message=(
                f"function '{fn.name}' has {calls} call site(s) and only "
                f"{len(statements)} statement(s) with no state of its own"
            ),
            suggestion="Inline it where it is used.",
        )


# ---------------------------------------------------------------------------
# duplicated-structure
# ---------------------------------------------------------------------------


def detect_duplicated_structure(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Report repeated code shapes recorded in the analysis context."""
    for occurrence in context.duplicates_in(source_file.path):
        others = list(occurrence.other_locations)
        shown = ", ".join(others[:3])
        if len(others) > 3:
            shown += f" and {len(others) - 3} more"
        yield DetectorHit(
            span=occurrence.candidate.span,
            message=(
                f"this code shape appears {occurrence.occurrences} times "
                f"(also at {shown})"
            ),
            suggestion="Extract the shared structure into one function.",
        )
