"""Shared helpers for walking and describing tree-sitter nodes.

These helpers work on raw ``tree_sitter.Node`` objects plus the owning
``ParsedAST`` (for source text). They keep detectors free of repeated
traversal code.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable, Iterator
from fnmatch import fnmatchcase

import tree_sitter as ts

from .ast_engine import ParsedAST

FUNCTION_NODE_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})

LOOP_NODE_TYPES = frozenset({
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
})

# Statements that own a nested block; used as duplication candidates.
COMPOUND_STATEMENT_TYPES = frozenset({
    "if_statement",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "switch_statement",
    "try_statement",
})

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z]|$)\d*|[A-Z]?[a-z]+\d*|[A-Z]+\d*|\d+")
_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def iter_descendants(
    node: ts.Node, *, cross_functions: bool = False
) -> Iterator[ts.Node]:
    """Yield every descendant of *node* in source order.

    Nested function nodes are yielded, but unless *cross_functions* is set
    their bodies are not entered.
    """
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        yield current
        if current.type in FUNCTION_NODE_TYPES and not cross_functions:
            continue
        stack.extend(reversed(current.children))


def function_name(ast: ParsedAST, fn_node: ts.Node) -> str | None:
    """Best-effort name of a function node.

    Uses the declared name, else the variable, property or assignment
    target the function is bound to.
    """
    name_node = fn_node.child_by_field_name("name")
    if name_node is not None:
        return ast.get_text(name_node)
    parent = fn_node.parent
    if parent is None:
        return None
    if parent.type == "variable_declarator":
        target = parent.child_by_field_name("name")
    elif parent.type == "pair":
        target = parent.child_by_field_name("key")
    elif parent.type == "assignment_expression":
        target = parent.child_by_field_name("left")
    else:
        return None
    return ast.get_text(target) if target is not None else None


def unwrap_parens(node: ts.Node) -> ts.Node:
    """Strip any ``parenthesized_expression`` wrappers around *node*."""
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def body_statements(body: ts.Node | None) -> list[ts.Node]:
    """Return the statements of a function body.

    A concise arrow body (an expression) counts as a single statement.
    """
    if body is None:
        return []
    if body.type != "statement_block":
        return [body]
    return [child for child in body.named_children if child.type != "comment"]


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------


def callee_text(ast: ParsedAST, call_node: ts.Node) -> str:
    """Return a normalised textual form of a call's callee.

    ``this.db?.query(x)`` becomes ``this.db.query`` and a zero-argument
    ``new Date()`` becomes ``new Date()``; ``new Date(ts)`` becomes
    ``new Date(...)``.
    """
    if call_node.type == "new_expression":
        ctor = call_node.child_by_field_name("constructor")
        args = call_node.child_by_field_name("arguments")
        name = _compact(ast.get_text(ctor)) if ctor is not None else ""
        has_args = args is not None and any(
            c.type != "comment" for c in args.named_children
        )
        return f"new {name}(...)" if has_args else f"new {name}()"

    fn_node = call_node.child_by_field_name("function")
    if fn_node is None:
        return ""
    return _compact(ast.get_text(fn_node))


def call_name(ast: ParsedAST, call_node: ts.Node) -> str | None:
    """Return the simple name a call resolves through, if it has one.

    ``foo()`` -> ``"foo"``, ``obj.method()`` -> ``"method"``,
    ``new Thing()`` -> ``"Thing"``. IIFEs and computed callees give ``None``.
    """
    field_name = "constructor" if call_node.type == "new_expression" else "function"
    target = call_node.child_by_field_name(field_name)
    if target is None:
        return None
    target = unwrap_parens(target)
    if target.type in ("identifier", "type_identifier"):
        return ast.get_text(target)
    if target.type == "member_expression":
        prop = target.child_by_field_name("property")
        if prop is not None:
            return ast.get_text(prop)
    return None


def call_arguments(call_node: ts.Node) -> list[ts.Node]:
    """Return the argument expression nodes of a call, comments excluded."""
    args = call_node.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return [c for c in args.named_children if c.type != "comment"]


def member_chain_root(node: ts.Node) -> ts.Node:
    """Follow ``a.b().c()`` chains down to the innermost object/callee."""
    current = node
    while True:
        if current.type == "call_expression":
            nxt = current.child_by_field_name("function")
        elif current.type == "member_expression":
            nxt = current.child_by_field_name("object")
        else:
            return current
        if nxt is None:
            return current
        current = nxt


def _compact(text: str) -> str:
    return _WHITESPACE_RE.sub("", text).replace("?.", ".")


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


def split_identifier_words(name: str) -> list[str]:
    """Split an identifier into lower-case words.

    Handles camelCase, PascalCase, snake_case, kebab-case and acronyms:
    ``parseHTTPResponse`` -> ``["parse", "http", "response"]``.
    """
    words: list[str] = []
    for chunk in _SEPARATOR_RE.split(name):
        words.extend(_WORD_RE.findall(chunk))
    return [word.lower() for word in words]


def to_kebab_case(name: str) -> str:
    return "-".join(split_identifier_words(name))


def to_snake_case(name: str) -> str:
    return "_".join(split_identifier_words(name))


def name_has_prefix(name: str, prefixes: Iterable[str]) -> bool:
    """Return ``True`` if *name* starts with one of *prefixes* as a word.

    ``parseUser`` matches ``parse``; ``parser`` and ``parsed`` do not.
    """
    for prefix in prefixes:
        if not name.startswith(prefix):
            continue
        rest = name[len(prefix):]
        if not rest or not rest[0].islower():
            return True
    return False


def name_has_word(name: str, words: Iterable[str]) -> str | None:
    """Return the first of *words* that appears as a word of *name*."""
    name_words = split_identifier_words(name)
    for word in words:
        target = split_identifier_words(word)
        width = len(target)
        if width == 0:
            continue
        for i in range(len(name_words) - width + 1):
            if name_words[i:i + width] == target:
                return word
    return None


def matches_any(text: str, patterns: Iterable[str]) -> str | None:
    """Return the first glob in *patterns* matching *text*, if any."""
    for pattern in patterns:
        if fnmatchcase(text, pattern):
            return pattern
    return None


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


def structural_fingerprints(
    root: ts.Node, candidate_types: Iterable[str]
) -> list[tuple[ts.Node, str, int]]:
    """Fingerprint candidate subtrees of *root* by shape alone.

    A subtree's fingerprint is a digest of its node-type S-expression:
    identifier names and literal values are ignored, operators and
    keywords are kept. Comments are skipped.

    Returns:
        ``(node, fingerprint, named_node_count)`` for every node whose type
        is in *candidate_types*, in source order.
    """
    wanted = frozenset(candidate_types)
    digests: dict[int, tuple[str, int]] = {}
    results: list[tuple[ts.Node, str, int]] = []

    # Iterative post-order so deep files do not hit the recursion limit.
    stack: list[tuple[ts.Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if not expanded:
            stack.append((node, True))
            for child in reversed(node.children):
                if child.type != "comment":
                    stack.append((child, False))
            continue

        parts: list[str] = []
        size = 1 if node.is_named else 0
        for child in node.children:
            if child.type == "comment":
                continue
            child_digest, child_size = digests.pop(child.id)
            parts.append(child_digest)
            size += child_size
        shape = f"({node.type} {' '.join(parts)})" if parts else node.type
        digest = hashlib.sha1(shape.encode("utf-8")).hexdigest()[:20]
        digests[node.id] = (digest, size)
        if node.type in wanted:
            results.append((node, digest, size))

    results.sort(key=lambda item: item[0].start_byte)
    return results
