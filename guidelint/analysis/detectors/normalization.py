"""Boundary-input detectors.

``normalize-boundary-input`` looks for validators of human-typed values
(phone numbers, ids, card numbers, ...) that apply a strict pattern without
first stripping separators, trimming or folding case.
``parse-dont-validate`` looks for validators that only answer true/false.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING

import tree_sitter as ts

from ..ast_engine import FunctionDefinition, ObjectProperty, ParsedAST, span_of
from ..ast_utils import (
    call_arguments,
    call_name,
    callee_text,
    iter_descendants,
    matches_any,
    member_chain_root,
    name_has_prefix,
    name_has_word,
    unwrap_parens,
)
from ..models import DetectorSettings
from .base import DetectorHit

if TYPE_CHECKING:
    from ..context import AnalysisContext
    from ..loader import SourceFile

_CLASS_TOKEN = r"(?:\\d|\\w|\[(?:\\d|\\w|[A-Za-z0-9](?:-[A-Za-z0-9])?)+\])"
_QUANTIFIER = r"(?:\{\d+(?:,\d*)?\}|[+*?])?"
_STRICT_BODY_RE = re.compile(rf"(?:{_CLASS_TOKEN}{_QUANTIFIER})+")
_GROUP_RE = re.compile(r"\(\?:|\(|\)[+*?]?")

_SCHEMA_PATTERN_METHODS = frozenset({"regex", "matches", "pattern"})
_BOOLEAN_VALIDATOR_PREFIXES = ("validate", "isValid")
_STATEMENT_TYPES = frozenset({
    "expression_statement",
    "return_statement",
    "lexical_declaration",
    "variable_declaration",
})


def is_strict_pattern(pattern: str) -> bool:
    """True for an anchored pattern made only of digit/letter classes.

    ``^\\d{10}$`` and ``^[A-Z0-9]+$`` are strict; ``^\\+?[\\d\\s-]+$``
    tolerates separators and is not.
    """
    if not (pattern.startswith("^") and pattern.endswith("$")):
        return False
    body = _GROUP_RE.sub("", pattern[1:-1])
    return bool(body) and _STRICT_BODY_RE.fullmatch(body) is not None


def _pattern_text(ast: ParsedAST, node: ts.Node) -> str | None:
    """Regex source of a regex literal or ``new RegExp('...')``."""
    node = unwrap_parens(node)
    if node.type == "regex":
        pattern = node.child_by_field_name("pattern")
        return ast.get_text(pattern) if pattern is not None else None
    if node.type == "new_expression" and callee_text(ast, node).startswith("new RegExp"):
        args = call_arguments(node)
        if args and args[0].type == "string":
            return ast.get_text(args[0])[1:-1].replace("\\\\", "\\")
    return None


def _strict_patterns(ast: ParsedAST, body: ts.Node) -> Iterator[tuple[ts.Node, str]]:
    for node in iter_descendants(body, cross_functions=True):
        if node.type not in ("regex", "new_expression"):
            continue
        text = _pattern_text(ast, node)
        if text is not None and is_strict_pattern(text):
            yield node, text


def _usage_end(node: ts.Node, stop: ts.Node) -> int:
    """End byte of the expression that consumes the pattern at *node*."""
    current = node
    while current.parent is not None and current.parent != stop:
        parent = current.parent
        if parent.type == "call_expression" or parent.type in _STATEMENT_TYPES:
            return parent.end_byte
        current = parent
    return node.end_byte


def _normalizes_before(
    ast: ParsedAST, body: ts.Node, end_byte: int, settings: DetectorSettings
) -> bool:
    for node in iter_descendants(body, cross_functions=True):
        if node.start_byte >= end_byte:
            break
        if node.type == "call_expression" and call_name(ast, node) in settings.normalizing_calls:
            return True
    return False


def _is_boundary_validator(
    ast: ParsedAST, fn: FunctionDefinition, settings: DetectorSettings
) -> bool:
    if name_has_prefix(fn.name, settings.validator_prefixes):
        return True
    if fn.body is None:
        return False
    for node in iter_descendants(fn.body, cross_functions=True):
        if node.type == "call_expression" and matches_any(
            callee_text(ast, node), settings.boundary_markers
        ):
            return True
    return False


def _function_hits(
    ast: ParsedAST, fn: FunctionDefinition, settings: DetectorSettings
) -> Iterator[DetectorHit]:
    if fn.body is None or name_has_word(fn.name, settings.password_markers):
        return
    domain = name_has_word(fn.name, settings.normalize_domains)
    if domain is None or not _is_boundary_validator(ast, fn, settings):
        return
    for node, pattern in _strict_patterns(ast, fn.body):
        if _normalizes_before(ast, fn.body, _usage_end(node, fn.body), settings):
            continue
        yield DetectorHit(
            span=span_of(node),
            message=(
                f"'{fn.name}' matches {domain} input against strict pattern "
                f"/{pattern}/ without normalizing it first"
            ),
            suggestion=(
                "Strip separators and whitespace (and fold case) before "
                "matching, e.g. value.replace(/[\\s-]/g, '')."
            ),
        )
        return


def _schema_regex_calls(
    ast: ParsedAST, value: ts.Node
) -> Iterator[tuple[ts.Node, str]]:
    for node in [value, *iter_descendants(value)]:
        if node.type != "call_expression" or call_name(ast, node) not in _SCHEMA_PATTERN_METHODS:
            continue
        args = call_arguments(node)
        if not args:
            continue
        text = _pattern_text(ast, args[0])
        if text is not None and is_strict_pattern(text):
            yield node, text


def _chain_normalizes(
    ast: ParsedAST, regex_call: ts.Node, value: ts.Node, settings: DetectorSettings
) -> bool:
    # Steps earlier in the chain sit under the call's function field
    fn = regex_call.child_by_field_name("function")
    if fn is not None:
        for node in [fn, *iter_descendants(fn)]:
            if node.type == "call_expression" and call_name(ast, node) in settings.normalizing_calls:
                return True
    # Wrappers such as z.preprocess(clean, z.string().regex(...))
    current = regex_call
    while current != value and current.parent is not None:
        parent = current.parent
        if parent.type == "arguments" and parent.parent is not None:
            wrapper = parent.parent
            if call_name(ast, wrapper) in settings.normalizing_calls:
                return True
        current = parent
    return False


def _schema_hits(
    ast: ParsedAST, prop: ObjectProperty, settings: DetectorSettings
) -> Iterator[DetectorHit]:
    value = prop.value_node
    if value is None or name_has_word(prop.key, settings.password_markers):
        return
    domain = name_has_word(prop.key, settings.normalize_domains)
    if domain is None:
        return
    root = member_chain_root(value)
    if root.type != "identifier" or ast.get_text(root) not in settings.schema_roots:
        return
    for regex_call, pattern in _schema_regex_calls(ast, value):
        if _chain_normalizes(ast, regex_call, value, settings):
            continue
        yield DetectorHit(
            span=span_of(prop.node) if prop.node is not None else span_of(value),
            message=(
                f"schema field '{prop.key}' matches {domain} input against "
                f"strict pattern /{pattern}/ without normalizing it first"
            ),
            suggestion="Add .trim() / a preprocess step that strips separators before .regex().",
        )
        return


def detect_unnormalized_input(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag strict matching of human-typed input that skips normalization."""
    ast = source_file.ast
    if ast is None:
        return
    settings = context.settings
    index = context.index_for(source_file.path)

    for fn in index.functions:
        yield from _function_hits(ast, fn, settings)
    for prop in index.properties:
        yield from _schema_hits(ast, prop, settings)


# ---------------------------------------------------------------------------
# parse-dont-validate
# ---------------------------------------------------------------------------


def _returns(body: ts.Node) -> list[ts.Node]:
    returns: list[ts.Node] = []
    for node in iter_descendants(body):
        if node.type == "return_statement":
            returns.append(node)
    return returns


def _returns_boolean_literal(statement: ts.Node) -> bool:
    values = [c for c in statement.named_children if c.type != "comment"]
    if len(values) != 1:
        return False
    return unwrap_parens(values[0]).type in ("true", "false")


def detect_boolean_validators(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Flag validators whose every return is a bare ``true`` / ``false``."""
    if source_file.ast is None:
        return
    index = context.index_for(source_file.path)

    for fn in index.functions:
        if not name_has_prefix(fn.name, _BOOLEAN_VALIDATOR_PREFIXES):
            continue
        if fn.body is None or fn.body.type != "statement_block":
            continue
        returns = _returns(fn.body)
        if len(returns) < 2 or not all(_returns_boolean_literal(r) for r in returns):
            continue
        yield DetectorHit(
            span=fn.span,
            message=(
                f"validator '{fn.name}' only returns true/false; callers must "
                "re-check the raw value"
            ),
            suggestion="Return the parsed value (or a typed result) instead of a boolean.",
        )
