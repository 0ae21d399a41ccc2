"""Early-return detectors: deep ``if`` nesting and guard-clause overload."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

import tree_sitter as ts

from ..ast_engine import ParsedAST, span_of
from ..ast_utils import (
    FUNCTION_NODE_TYPES,
    body_statements,
    function_name,
    iter_descendants,
)
from .base import DetectorHit

if TYPE_CHECKING:
    from ..context import AnalysisContext
    from ..loader import SourceFile

_EXIT_STATEMENTS = frozenset({"return_statement", "throw_statement"})


def _function_nodes(ast: ParsedAST) -> Iterator[ts.Node]:
    for node in iter_descendants(ast.root_node, cross_functions=True):
        if node.type in FUNCTION_NODE_TYPES:
            yield node


# ---------------------------------------------------------------------------
# prefer-early-return
# ---------------------------------------------------------------------------


def _nested_ifs(
    node: ts.Node, level: int, invertible: bool
) -> Iterator[tuple[ts.Node, int, bool]]:
    """Yield ``(if_node, level, eligible)`` for every ``if`` below *node*.

    *invertible* is set once an enclosing ``if`` without ``else`` is on the
    path; such an ``if`` can become an early exit. Nested functions are not
    entered; they are measured on their own.
    """
    for child in node.children:
        if child.type in FUNCTION_NODE_TYPES:
            continue
        if child.type == "if_statement":
            yield from _if_chain(child, level + 1, invertible, in_else=False)
        else:
            yield from _nested_ifs(child, level, invertible)


def _if_chain(
    if_node: ts.Node, level: int, invertible: bool, in_else: bool
) -> Iterator[tuple[ts.Node, int, bool]]:
    alternative = if_node.child_by_field_name("alternative")
    # an else-if branch cannot be turned into a guard clause by itself
    own = alternative is None and not in_else
    yield if_node, level, invertible or own

    inner = invertible or own
    consequence = if_node.child_by_field_name("consequence")
    if consequence is not None:
        if consequence.type == "if_statement":
            yield from _if_chain(consequence, level + 1, inner, in_else=False)
        else:
            yield from _nested_ifs(consequence, level, inner)

    if alternative is None:
        return
    branch = next(
        (c for c in alternative.named_children if c.type != "comment"), None
    )
    if branch is not None and branch.type == "if_statement":
        # else-if stays on the chain's level
        yield from _if_chain(branch, level, invertible, in_else=True)
    else:
        yield from _nested_ifs(alternative, level, inner)


def detect_deep_nesting(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag ``if`` statements nested deeper than allowed.

    An ``if`` qualifies when it, or some ``if`` enclosing it, has no ``else``.
    """
    ast = source_file.ast
    if ast is None:
        return
    limit = context.settings.max_nesting_depth

    for fn_node in _function_nodes(ast):
        body = fn_node.child_by_field_name("body")
        if body is None:
            continue
        name = function_name(ast, fn_node) or "<anonymous>"
        for if_node, level, eligible in _nested_ifs(body, 0, False):
            if level <= limit or not eligible:
                continue
            yield DetectorHit(
                span=span_of(if_node),
                message=(
                    f"'if' nested {level} levels deep in function '{name}' "
                    f"(max {limit})"
                ),
                suggestion=(
                    "Invert the enclosing conditions into guard clauses that "
                    "return early."
                ),
            )


# ---------------------------------------------------------------------------
# excessive-guard-clauses
# ---------------------------------------------------------------------------


def _is_guard_clause(statement: ts.Node) -> bool:
    if statement.type != "if_statement":
        return False
    if statement.child_by_field_name("alternative") is not None:
        return False
    consequence = statement.child_by_field_name("consequence")
    if consequence is None:
        return False
    if consequence.type in _EXIT_STATEMENTS:
        return True
    statements = body_statements(consequence)
    return bool(statements) and statements[-1].type in _EXIT_STATEMENTS


def detect_excessive_guards(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag functions opening with a long run of guard clauses."""
    ast = source_file.ast
    if ast is None:
        return
    limit = context.settings.max_guard_clauses

    for fn_node in _function_nodes(ast):
        body = fn_node.child_by_field_name("body")
        if body is None or body.type != "statement_block":
            continue
        guards = sum(1 for stmt in body_statements(body) if _is_guard_clause(stmt))
        if guards < limit:
            continue
        name = function_name(ast, fn_node) or "<anonymous>"
        yield DetectorHit(
            span=span_of(fn_node),
            message=f"function '{name}' has {guards} guard clauses (max {limit - 1})",
            suggestion="Split validation from the main logic or parse the input once up front.",
        )
