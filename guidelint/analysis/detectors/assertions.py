"""Test-file detectors: literal expected values and straight-line tests."""

from __future__ import annotations

from collections.abc import Collection, Iterator
from typing import TYPE_CHECKING

import tree_sitter as ts

from ..ast_engine import ParsedAST, span_of
from ..ast_utils import (
    FUNCTION_NODE_TYPES,
    LOOP_NODE_TYPES,
    call_arguments,
    call_name,
    callee_text,
    iter_descendants,
)
from ..models import DetectorSettings
from .base import DetectorHit

if TYPE_CHECKING:
    from ..context import AnalysisContext
    from ..loader import SourceFile

ITERATION_METHODS = frozenset({
    "map", "filter", "reduce", "reduceRight", "flatMap", "forEach", "from",
    "fill", "repeat", "some", "every", "find",
})

_LOGIC_KINDS = {
    "if_statement": "an 'if' statement",
    "switch_statement": "a 'switch' statement",
    "ternary_expression": "a conditional expression",
    "for_statement": "a loop",
    "for_in_statement": "a loop",
    "while_statement": "a loop",
    "do_statement": "a loop",
}


# ---------------------------------------------------------------------------
# literal-test-assertion
# ---------------------------------------------------------------------------


def _is_expect_chain(ast: ParsedAST, node: ts.Node, modifiers: Collection[str]) -> bool:
    """True if *node* is ``expect(...)`` optionally followed by modifiers.

    Modifiers cover Jest's ``not``/``resolves`` and chai's language chains
    (``expect(x).to.deep``).
    """
    while node.type == "member_expression":
        prop = node.child_by_field_name("property")
        if prop is None or ast.get_text(prop) not in modifiers:
            return False
        node = node.child_by_field_name("object")
        if node is None:
            return False
    if node.type != "call_expression":
        return False
    fn = node.child_by_field_name("function")
    return fn is not None and fn.type == "identifier" and ast.get_text(fn) == "expect"


def expected_argument(
    ast: ParsedAST, call: ts.Node, settings: DetectorSettings
) -> tuple[str, ts.Node] | None:
    """Return ``(assertion_name, expected_node)`` for an assertion call."""
    fn = call.child_by_field_name("function")
    if fn is None:
        return None
    args = call_arguments(call)

    if fn.type == "member_expression":
        obj = fn.child_by_field_name("object")
        if obj is not None and _is_expect_chain(ast, obj, settings.expect_modifiers):
            if not args:
                return None
            return call_name(ast, call) or "expect", args[0]

    name = callee_text(ast, call)
    position = settings.assertion_functions.get(name)
    if position is None or position >= len(args):
        return None
    return name, args[position]


def computed_reason(ast: ParsedAST, node: ts.Node) -> str | None:
    """Describe why *node* is computed rather than literal, if it is."""
    candidates = [node, *iter_descendants(node)]
    for current in candidates:
        if current.type == "binary_expression":
            return "binary operator"
        if current.type == "ternary_expression":
            return "conditional expression"
        if current.type == "template_string" and any(
            child.type == "template_substitution" for child in current.children
        ):
            return "interpolated template string"
        if current.type in LOOP_NODE_TYPES:
            return "loop"
        if current.type in FUNCTION_NODE_TYPES:
            return "inline function"
        if current.type == "call_expression" and call_name(ast, current) in ITERATION_METHODS:
            return f"iteration method '{call_name(ast, current)}'"
    return None


def detect_computed_expectations(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag assertions whose expected value is computed."""
    ast = source_file.ast
    if ast is None or not source_file.is_test:
        return

    for node in iter_descendants(ast.root_node, cross_functions=True):
        if node.type != "call_expression":
            continue
        found = expected_argument(ast, node, context.settings)
        if found is None:
            continue
        assertion, expected = found
        reason = computed_reason(ast, expected)
        if reason is None:
            continue
        yield DetectorHit(
            span=span_of(expected),
            message=f"expected value in '{assertion}' is computed ({reason})",
            suggestion="Write the expected value out as a literal.",
        )


# ---------------------------------------------------------------------------
# no-logic-in-tests
# ---------------------------------------------------------------------------


def _test_title(ast: ParsedAST, call: ts.Node) -> str:
    args = call_arguments(call)
    if args and args[0].type in ("string", "template_string"):
        return ast.get_text(args[0]).strip("'\"`")
    return "<unnamed>"


def _test_callback(call: ts.Node) -> ts.Node | None:
    for arg in reversed(call_arguments(call)):
        if arg.type in FUNCTION_NODE_TYPES:
            return arg
    return None


def _is_test_call(ast: ParsedAST, call: ts.Node, settings: DetectorSettings) -> bool:
    fn = call.child_by_field_name("function")
    if fn is None:
        return False
    if fn.type == "call_expression":
        # it.each(table)(title, fn)
        target = callee_text(ast, fn)
    else:
        target = callee_text(ast, call)
    return target in settings.test_functions


def detect_test_logic(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag branches and loops inside test bodies."""
    ast = source_file.ast
    if ast is None or not source_file.is_test:
        return

    for node in iter_descendants(ast.root_node, cross_functions=True):
        if node.type != "call_expression" or not _is_test_call(ast, node, context.settings):
            continue
        callback = _test_callback(node)
        if callback is None:
            continue
        body = callback.child_by_field_name("body")
        if body is None:
            continue
        title = _test_title(ast, node)
        for inner in iter_descendants(body, cross_functions=True):
            kind = _LOGIC_KINDS.get(inner.type)
            if kind is None:
                continue
            yield DetectorHit(
                span=span_of(inner),
                message=f"test '{title}' contains {kind}",
                suggestion="Split it into separate straight-line tests.",
            )
