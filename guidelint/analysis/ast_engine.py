"""Parser adapter: tree-sitter front end for JavaScript and TypeScript.

Turns source text into a ``ParsedAST`` and extracts the structures the
guideline detectors inspect (function definitions, calls, imports,
exports and object properties). Malformed input never raises: syntax
errors come back from :meth:`ASTEngine.parse_source` as ``ParseError``.

Usage::

    engine = ASTEngine()
    ast = engine.parse("export const x = compute(1);", language="typescript")
    exports = engine.find_exports(ast)
    calls = engine.find_function_calls(ast, function_name="compute")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

import tree_sitter as ts
import tree_sitter_javascript as ts_js
import tree_sitter_typescript as ts_ts

from .models import ParseError, Span

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Node classification
# ---------------------------------------------------------------------------


class NodeKind(str, Enum):
    """Closed set of node kinds the detectors reason about."""

    FUNCTION = "function"
    CALL = "call"
    CONDITIONAL = "conditional"
    LOOP = "loop"
    LITERAL = "literal"
    IMPORT = "import"
    EXPORT = "export"
    ASSIGNMENT = "assignment"
    RETURN = "return"
    BLOCK = "block"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    OTHER = "other"


_KIND_BY_TYPE: dict[str, NodeKind] = {
    "function_declaration": NodeKind.FUNCTION,
    "generator_function_declaration": NodeKind.FUNCTION,
    "function_expression": NodeKind.FUNCTION,
    "function": NodeKind.FUNCTION,
    "generator_function": NodeKind.FUNCTION,
    "arrow_function": NodeKind.FUNCTION,
    "method_definition": NodeKind.FUNCTION,
    "call_expression": NodeKind.CALL,
    "new_expression": NodeKind.CALL,
    "if_statement": NodeKind.CONDITIONAL,
    "ternary_expression": NodeKind.CONDITIONAL,
    "switch_statement": NodeKind.CONDITIONAL,
    "for_statement": NodeKind.LOOP,
    "for_in_statement": NodeKind.LOOP,
    "while_statement": NodeKind.LOOP,
    "do_statement": NodeKind.LOOP,
    "string": NodeKind.LITERAL,
    "template_string": NodeKind.LITERAL,
    "number": NodeKind.LITERAL,
    "true": NodeKind.LITERAL,
    "false": NodeKind.LITERAL,
    "null": NodeKind.LITERAL,
    "undefined": NodeKind.LITERAL,
    "regex": NodeKind.LITERAL,
    "import_statement": NodeKind.IMPORT,
    "export_statement": NodeKind.EXPORT,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "augmented_assignment_expression": NodeKind.ASSIGNMENT,
    "update_expression": NodeKind.ASSIGNMENT,
    "variable_declarator": NodeKind.ASSIGNMENT,
    "return_statement": NodeKind.RETURN,
    "statement_block": NodeKind.BLOCK,
    "program": NodeKind.BLOCK,
    "class_body": NodeKind.BLOCK,
    "identifier": NodeKind.IDENTIFIER,
    "property_identifier": NodeKind.IDENTIFIER,
    "shorthand_property_identifier": NodeKind.IDENTIFIER,
    "type_identifier": NodeKind.IDENTIFIER,
    "private_property_identifier": NodeKind.IDENTIFIER,
    "binary_expression": NodeKind.OPERATOR,
    "unary_expression": NodeKind.OPERATOR,
}


def node_kind(node: ts.Node) -> NodeKind:
    """Return the :class:`NodeKind` tag for a tree-sitter node."""
    return _KIND_BY_TYPE.get(node.type, NodeKind.OTHER)


def span_of(node: ts.Node) -> Span:
    """Convert a node's start/end points into a :class:`Span`."""
    return Span(
        start_line=node.start_point.row + 1,
        start_column=node.start_point.column,
        end_line=node.end_point.row + 1,
        end_column=node.end_point.column,
    )


def _preorder(root: ts.Node) -> Iterator[ts.Node]:
    """Yield *root* and its descendants in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _line(node: ts.Node) -> int:
    return node.start_point.row + 1


# ---------------------------------------------------------------------------
# Extracted structures
# ---------------------------------------------------------------------------


@dataclass
class FunctionCall:
    """A call expression.

    For ``db.query(sql)`` the name is ``"query"``, the receiver ``"db"``
    and the arguments ``["sql"]``. Calls through anything other than an
    identifier or member access (IIFEs, ``fn()()``) use the callee text
    as their name.
    """

    name: str
    arguments: list[str] = field(default_factory=list)
    line: int = 0
    column: int = 0
    full_text: str = ""
    receiver: str | None = None
    node: ts.Node | None = field(default=None, repr=False)


@dataclass
class ImportStatement:
    """A static ``import`` or a CommonJS ``require()``.

    ``imported_names`` holds the local bindings. ``is_default`` is set for
    ``import fs from 'fs'`` and ``const fs = require('fs')``;
    ``is_dynamic`` marks ``require()``.
    """

    module: str
    imported_names: list[str] = field(default_factory=list)
    is_default: bool = False
    is_dynamic: bool = False
    line: int = 0


@dataclass
class ObjectProperty:
    """One ``key: value`` pair of an object literal (quotes stripped from the key)."""

    key: str
    value: str
    line: int = 0
    node: ts.Node | None = field(default=None, repr=False)
    value_node: ts.Node | None = field(default=None, repr=False)


@dataclass
class Parameter:
    """A formal parameter.

    Destructuring patterns keep their source text as the name and rest
    parameters are spelled ``...name``.
    """

    name: str
    type_text: str | None = None
    default_text: str | None = None


@dataclass
class FunctionDefinition:
    """A function, method, or arrow-function definition.

    Attributes:
        name: Declared name (the variable name for arrow functions and
            function expressions).
        parameters: Formal parameters in declaration order.
        line: 1-based line number.
        kind: One of ``"function"``, ``"generator"``, ``"arrow"``,
            ``"expression"`` or ``"method"``.
        is_async: ``True`` when the function uses the ``async`` keyword.
        is_exported: ``True`` when the definition sits directly inside an
            ``export`` statement.
        body_text: Full source text of the function body.
        node: The function node itself.
        body: The body node (``statement_block`` or an expression).
    """

    name: str
    parameters: list[Parameter] = field(default_factory=list)
    line: int = 0
    kind: str = "function"
    is_async: bool = False
    is_exported: bool = False
    body_text: str = ""
    node: ts.Node | None = field(default=None, repr=False)
    body: ts.Node | None = field(default=None, repr=False)

    @property
    def span(self) -> Span:
        return span_of(self.node) if self.node is not None else Span(
            start_line=self.line, end_line=self.line
        )

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]


@dataclass
class ExportBinding:
    """A binding made visible to other modules.

    Attributes:
        name: Exported local name, or ``None`` for anonymous defaults and
            ``export *`` re-exports.
        kind: ``"function"``, ``"class"``, ``"variable"``, ``"default"``,
            ``"specifier"``, ``"reexport"`` or ``"commonjs"``.
        is_type_only: ``True`` for interfaces, type aliases and
            ``export type { ... }`` clauses.
        is_default: ``True`` for ``export default`` bindings.
        line: 1-based line number.
        node: The export statement (or CommonJS assignment) node.
    """

    name: str | None
    kind: str
    is_type_only: bool = False
    is_default: bool = False
    line: int = 0
    node: ts.Node | None = field(default=None, repr=False)


@dataclass
class QueryMatch:
    """One match of an S-expression query: pattern index and captured nodes by name."""

    pattern_index: int
    captures: dict[str, list[ts.Node]]


# ---------------------------------------------------------------------------
# ParsedAST
# ---------------------------------------------------------------------------


class ParsedAST:
    """A tree-sitter tree together with the text it was parsed from.

    Node offsets are byte offsets into the UTF-8 encoding, so text is
    always sliced from the encoded source.
    """

    __slots__ = ("tree", "source_code", "language", "_source_bytes")

    def __init__(self, tree: ts.Tree, source_code: str, language: str) -> None:
        self.tree = tree
        self.source_code = source_code
        self.language = language
        self._source_bytes: bytes = source_code.encode("utf-8")

    @property
    def root_node(self) -> ts.Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error

    def get_text(self, node: ts.Node) -> str:
        """Source text covered by *node*."""
        return self._source_bytes[node.start_byte:node.end_byte].decode(
            "utf-8", errors="replace"
        )

    def iter_nodes(self) -> Iterator[ts.Node]:
        """Every node of the tree in source order."""
        return _preorder(self.tree.root_node)

    def first_error_node(self) -> ts.Node | None:
        """Return the first ``ERROR`` or missing node in source order."""
        stack = [self.tree.root_node]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node
            # Subtrees without errors cannot contain one
            if node.has_error:
                stack.extend(reversed(node.children))
        return None


# ---------------------------------------------------------------------------
# Supported languages
# ---------------------------------------------------------------------------

_SUPPORTED_LANGUAGES = frozenset({"javascript", "typescript", "tsx"})

_LANGUAGE_BY_SUFFIX: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

SUPPORTED_SUFFIXES = frozenset(_LANGUAGE_BY_SUFFIX)


def language_for_path(path: str) -> str | None:
    """Return the language identifier for *path*, or ``None``."""
    return _LANGUAGE_BY_SUFFIX.get(PurePosixPath(path).suffix.lower())


def _load_grammar(language: str) -> ts.Language:
    if language == "javascript":
        return ts.Language(ts_js.language())
    if language == "typescript":
        return ts.Language(ts_ts.language_typescript())
    return ts.Language(ts_ts.language_tsx())


# Declaration node type -> FunctionDefinition.kind
_DECLARATION_KINDS = {
    "function_declaration": "function",
    "generator_function_declaration": "generator",
}

_BOUND_FUNCTION_KINDS = {
    "arrow_function": "arrow",
    "function_expression": "expression",
}


# ---------------------------------------------------------------------------
# ASTEngine
# ---------------------------------------------------------------------------


class ASTEngine:
    """Parses JS/TS sources and extracts structures from the trees.

    Grammars and compiled queries are cached for the lifetime of the engine
    and shared between threads. ``Parser`` objects are not thread safe, so
    each worker thread gets its own.

    Example::

        engine = ASTEngine()
        ast = engine.parse(source, language="typescript")
        for fn in engine.find_function_definitions(ast):
            print(fn.name, fn.parameter_names)
    """

    def __init__(self) -> None:
        self._grammars: dict[str, ts.Language] = {}
        self._queries: dict[tuple[str, str], ts.Query] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    def _grammar(self, language: str) -> ts.Language:
        if language not in _SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Unsupported language: {language!r}. "
                f"Supported: {', '.join(sorted(_SUPPORTED_LANGUAGES))}"
            )
        with self._lock:
            if language not in self._grammars:
                self._grammars[language] = _load_grammar(language)
            return self._grammars[language]

    def _parser(self, language: str) -> ts.Parser:
        parsers: dict[str, ts.Parser] | None = getattr(self._local, "parsers", None)
        if parsers is None:
            parsers = self._local.parsers = {}
        if language not in parsers:
            parsers[language] = ts.Parser(language=self._grammar(language))
        return parsers[language]

    def _compiled_query(self, language: str, pattern: str) -> ts.Query:
        key = (language, pattern)
        query = self._queries.get(key)
        if query is None:
            query = ts.Query(self._grammar(language), pattern)
            with self._lock:
                self._queries[key] = query
        return query

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, source_code: str, language: str = "typescript") -> ParsedAST:
        """Parse *source_code* with the grammar for *language*.

        Syntax errors show up as ``ERROR`` or missing nodes in the tree;
        use :meth:`parse_source` to have them reported.

        Raises:
            ValueError: If *language* is not ``"javascript"``,
                ``"typescript"`` or ``"tsx"``.
        """
        tree = self._parser(language).parse(source_code.encode("utf-8"))
        return ParsedAST(tree=tree, source_code=source_code, language=language)

    def parse_source(
        self, path: str, source_code: str, language: str
    ) -> ParsedAST | ParseError:
        """Parse one file, returning a ``ParseError`` instead of raising.

        A tree containing ``ERROR`` or missing nodes is reported as a
        ``ParseError`` carrying the span of the first offending node.
        """
        try:
            ast = self.parse(source_code, language=language)
        except ValueError as exc:
            return ParseError(path=path, message=str(exc))

        if not ast.has_errors:
            return ast

        bad = ast.first_error_node()
        if bad is None:
            return ParseError(path=path, message="syntax error")
        if bad.is_missing:
            message = f"syntax error: missing {bad.type!r}"
        else:
            snippet = ast.get_text(bad).strip().splitlines()
            near = snippet[0][:40] if snippet else ""
            message = f"syntax error near {near!r}" if near else "syntax error"
        return ParseError(path=path, span=span_of(bad), message=message)

    def query(self, ast: ParsedAST, pattern: str) -> list[QueryMatch]:
        """Run a tree-sitter S-expression *pattern* over *ast*.

        Raises:
            ts.QueryError: If *pattern* is syntactically invalid.
        """
        cursor = ts.QueryCursor(self._compiled_query(ast.language, pattern))
        return [
            QueryMatch(pattern_index=index, captures=dict(captures))
            for index, captures in cursor.matches(ast.root_node)
        ]

    # ------------------------------------------------------------------
    # Finders
    # ------------------------------------------------------------------

    def find_nodes_by_type(self, ast: ParsedAST, node_type: str) -> list[ts.Node]:
        """All nodes of tree-sitter type *node_type*, in source order."""
        return [node for node in ast.iter_nodes() if node.type == node_type]

    def find_function_calls(
        self,
        ast: ParsedAST,
        function_name: str | None = None,
        root: ts.Node | None = None,
    ) -> list[FunctionCall]:
        """Find call expressions, optionally only those named *function_name*.

        Args:
            ast: The parsed file.
            function_name: Keep only calls whose name equals this value.
            root: Restrict the search to this subtree.
        """
        calls: list[FunctionCall] = []
        for node in _preorder(root or ast.root_node):
            if node.type != "call_expression":
                continue
            call = self._describe_call(ast, node)
            if call is not None and function_name in (None, call.name):
                calls.append(call)
        return calls

    def find_imports(self, ast: ParsedAST) -> list[ImportStatement]:
        """Find ES module ``import`` statements and ``require('...')`` calls."""
        imports: list[ImportStatement] = []
        for node in ast.iter_nodes():
            if node.type == "import_statement":
                statement = self._static_import(ast, node)
            elif node.type == "call_expression":
                statement = self._require_import(ast, node)
            else:
                continue
            if statement is not None:
                imports.append(statement)
        return imports

    def find_object_properties(self, ast: ParsedAST) -> list[ObjectProperty]:
        """Find every ``key: value`` pair in object literals."""
        properties: list[ObjectProperty] = []
        for node in ast.iter_nodes():
            if node.type != "pair":
                continue
            key_node = node.child_by_field_name("key")
            value_node = node.child_by_field_name("value")
            if key_node is None or value_node is None:
                continue
            key = ast.get_text(key_node)
            if key_node.type == "string":
                key = key.strip("'\"")
            properties.append(
                ObjectProperty(
                    key=key,
                    value=ast.get_text(value_node),
                    line=_line(node),
                    node=node,
                    value_node=value_node,
                )
            )
        return properties

    def find_function_definitions(self, ast: ParsedAST) -> list[FunctionDefinition]:
        """Find named functions, in source order.

        Covers function and generator declarations, arrow functions and
        function expressions bound with ``const``/``let``/``var``, and
        class or object-literal methods. Anonymous callbacks are not
        definitions.
        """
        definitions: list[FunctionDefinition] = []
        for node in ast.iter_nodes():
            if node.type in _DECLARATION_KINDS:
                definition = self._declared_function(ast, node)
            elif node.type == "variable_declarator":
                definition = self._bound_function(ast, node)
            elif node.type == "method_definition":
                definition = self._method(ast, node)
            else:
                continue
            if definition is not None:
                definitions.append(definition)
        definitions.sort(key=lambda d: d.node.start_byte if d.node else 0)
        return definitions

    def find_exports(self, ast: ParsedAST) -> list[ExportBinding]:
        """Find every binding the module exports.

        Handles ES module ``export`` statements (declarations, defaults,
        export clauses and re-exports) and CommonJS ``module.exports`` /
        ``exports.name`` assignments at the top level.
        """
        bindings: list[ExportBinding] = []
        for statement in ast.root_node.named_children:
            if statement.type == "export_statement":
                self._collect_es_export(ast, statement, bindings)
            elif statement.type == "expression_statement":
                self._collect_commonjs_export(ast, statement, bindings)
        return bindings

    # ------------------------------------------------------------------
    # Calls and imports
    # ------------------------------------------------------------------

    @staticmethod
    def _describe_call(ast: ParsedAST, node: ts.Node) -> FunctionCall | None:
        callee = node.child_by_field_name("function")
        if callee is None:
            return None

        receiver = None
        name = ast.get_text(callee)
        if callee.type == "member_expression":
            target = callee.child_by_field_name("object")
            member = callee.child_by_field_name("property")
            if member is not None:
                name = ast.get_text(member)
            if target is not None:
                receiver = ast.get_text(target)

        args_node = node.child_by_field_name("arguments")
        arguments = [
            ast.get_text(arg)
            for arg in (args_node.named_children if args_node is not None else [])
            if arg.type != "comment"
        ]
        return FunctionCall(
            name=name,
            arguments=arguments,
            line=_line(node),
            column=node.start_point.column,
            full_text=ast.get_text(node),
            receiver=receiver,
            node=node,
        )

    @staticmethod
    def _string_value(ast: ParsedAST, node: ts.Node | None) -> str | None:
        if node is None or node.type != "string":
            return None
        return ast.get_text(node)[1:-1]

    def _static_import(self, ast: ParsedAST, node: ts.Node) -> ImportStatement | None:
        module = self._string_value(ast, node.child_by_field_name("source"))
        if module is None:
            return None

        names: list[str] = []
        is_default = False
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        for part in clause.named_children if clause is not None else []:
            if part.type == "identifier":
                is_default = True
                names.append(ast.get_text(part))
            elif part.type == "namespace_import":
                names.extend(
                    ast.get_text(c) for c in part.named_children if c.type == "identifier"
                )
            elif part.type == "named_imports":
                for specifier in part.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    local = specifier.child_by_field_name("alias")
                    if local is None:
                        local = specifier.child_by_field_name("name")
                    if local is not None:
                        names.append(ast.get_text(local))

        return ImportStatement(
            module=module, imported_names=names, is_default=is_default, line=_line(node)
        )

    def _require_import(self, ast: ParsedAST, node: ts.Node) -> ImportStatement | None:
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "identifier" or ast.get_text(callee) != "require":
            return None
        args_node = node.child_by_field_name("arguments")
        first = args_node.named_children[0] if args_node is not None and args_node.named_children else None
        module = self._string_value(ast, first)
        if module is None:
            return None

        names: list[str] = []
        is_default = True
        declarator = node.parent
        target = (
            declarator.child_by_field_name("name")
            if declarator is not None and declarator.type == "variable_declarator"
            else None
        )
        if target is not None and target.type == "identifier":
            names.append(ast.get_text(target))
        elif target is not None and target.type == "object_pattern":
            # const { a, b: local } = require('x')
            is_default = False
            for entry in target.named_children:
                if entry.type == "shorthand_property_identifier_pattern":
                    names.append(ast.get_text(entry))
                elif entry.type == "pair_pattern":
                    bound = entry.child_by_field_name("value")
                    if bound is not None:
                        names.append(ast.get_text(bound))

        return ImportStatement(
            module=module,
            imported_names=names,
            is_default=is_default,
            is_dynamic=True,
            line=_line(node),
        )

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _collect_es_export(
        self, ast: ParsedAST, statement: ts.Node, out: list[ExportBinding]
    ) -> None:
        line = _line(statement)
        tokens = {child.type for child in statement.children if not child.is_named}
        is_default = "default" in tokens
        type_only_clause = "type" in tokens
        source = statement.child_by_field_name("source")
        declaration = statement.child_by_field_name("declaration")
        value = statement.child_by_field_name("value")

        if declaration is not None:
            for name, kind, type_only in self._declared_names(ast, declaration):
                out.append(
                    ExportBinding(
                        name=name,
                        kind=kind,
                        is_type_only=type_only,
                        is_default=is_default,
                        line=line,
                        node=statement,
                    )
                )
            return

        if value is not None:
            name: str | None = None
            if value.type == "identifier":
                name = ast.get_text(value)
            else:
                name_node = value.child_by_field_name("name")
                if name_node is not None:
                    name = ast.get_text(name_node)
            out.append(
                ExportBinding(
                    name=name, kind="default", is_default=True, line=line, node=statement
                )
            )
            return

        clause = next(
            (c for c in statement.named_children if c.type == "export_clause"), None
        )
        kind = "reexport" if source is not None else "specifier"
        if clause is None:
            # export * from './x'
            out.append(ExportBinding(name=None, kind=kind, line=line, node=statement))
            return

        for specifier in clause.named_children:
            if specifier.type != "export_specifier":
                continue
            local_node = specifier.child_by_field_name("name")
            alias_node = specifier.child_by_field_name("alias")
            local = ast.get_text(local_node) if local_node is not None else None
            alias = ast.get_text(alias_node) if alias_node is not None else None
            specifier_type_only = type_only_clause or any(
                not c.is_named and c.type == "type" for c in specifier.children
            )
            out.append(
                ExportBinding(
                    name=local if alias in (None, "default") else alias,
                    kind=kind,
                    is_type_only=specifier_type_only,
                    is_default=alias == "default",
                    line=line,
                    node=statement,
                )
            )

    def _declared_names(
        self, ast: ParsedAST, declaration: ts.Node
    ) -> list[tuple[str | None, str, bool]]:
        """Return ``(name, kind, is_type_only)`` for an exported declaration."""
        decl_type = declaration.type
        if decl_type in ("interface_declaration", "type_alias_declaration"):
            name_node = declaration.child_by_field_name("name")
            name = ast.get_text(name_node) if name_node is not None else None
            return [(name, "type", True)]

        if decl_type in ("lexical_declaration", "variable_declaration"):
            names: list[tuple[str | None, str, bool]] = []
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    names.append((ast.get_text(name_node), "variable", False))
            return names

        kind = "class" if "class" in decl_type else "function"
        name_node = declaration.child_by_field_name("name")
        name = ast.get_text(name_node) if name_node is not None else None
        return [(name, kind, False)]

    def _collect_commonjs_export(
        self, ast: ParsedAST, statement: ts.Node, out: list[ExportBinding]
    ) -> None:
        expr = statement.named_children[0] if statement.named_children else None
        if expr is None or expr.type != "assignment_expression":
            return
        left = expr.child_by_field_name("left")
        right = expr.child_by_field_name("right")
        if left is None or right is None or left.type != "member_expression":
            return

        target = ast.get_text(left)
        line = _line(statement)
        if target == "module.exports":
            if right.type == "identifier":
                out.append(
                    ExportBinding(
                        name=ast.get_text(right), kind="commonjs",
                        is_default=True, line=line, node=statement,
                    )
                )
            elif right.type == "object":
                for prop in right.named_children:
                    if prop.type == "shorthand_property_identifier":
                        prop_name: str | None = ast.get_text(prop)
                    elif prop.type == "pair":
                        key = prop.child_by_field_name("key")
                        prop_name = ast.get_text(key) if key is not None else None
                    else:
                        continue
                    out.append(
                        ExportBinding(
                            name=prop_name, kind="commonjs", line=line, node=statement
                        )
                    )
            else:
                name_node = right.child_by_field_name("name")
                out.append(
                    ExportBinding(
                        name=ast.get_text(name_node) if name_node is not None else None,
                        kind="commonjs",
                        is_default=True,
                        line=line,
                        node=statement,
                    )
                )
        elif target.startswith(("exports.", "module.exports.")):
            out.append(
                ExportBinding(
                    name=target.rsplit(".", 1)[-1], kind="commonjs",
                    line=line, node=statement,
                )
            )

    # ------------------------------------------------------------------
    # Function definitions
    # ------------------------------------------------------------------

    def _declared_function(self, ast: ParsedAST, node: ts.Node) -> FunctionDefinition | None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return None
        return self._definition(
            ast, node, ast.get_text(name_node), _DECLARATION_KINDS[node.type], body,
            is_exported=_is_exported(node),
        )

    def _bound_function(self, ast: ParsedAST, declarator: ts.Node) -> FunctionDefinition | None:
        name_node = declarator.child_by_field_name("name")
        fn_node = declarator.child_by_field_name("value")
        if (
            name_node is None
            or name_node.type != "identifier"
            or fn_node is None
            or fn_node.type not in _BOUND_FUNCTION_KINDS
        ):
            return None
        return self._definition(
            ast, fn_node, ast.get_text(name_node), _BOUND_FUNCTION_KINDS[fn_node.type],
            fn_node.child_by_field_name("body"),
            is_exported=_is_exported(fn_node),
        )

    def _method(self, ast: ParsedAST, node: ts.Node) -> FunctionDefinition | None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or name_node.type != "property_identifier" or body is None:
            return None
        return self._definition(ast, node, ast.get_text(name_node), "method", body)

    def _definition(
        self,
        ast: ParsedAST,
        fn_node: ts.Node,
        name: str,
        kind: str,
        body: ts.Node | None,
        is_exported: bool = False,
    ) -> FunctionDefinition:
        return FunctionDefinition(
            name=name,
            parameters=_parameters(ast, fn_node),
            line=_line(fn_node),
            kind=kind,
            is_async=any(not c.is_named and c.type == "async" for c in fn_node.children),
            is_exported=is_exported,
            body_text=ast.get_text(body) if body is not None else "",
            node=fn_node,
            body=body,
        )


def _parameters(ast: ParsedAST, fn_node: ts.Node) -> list[Parameter]:
    formal = fn_node.child_by_field_name("parameters")
    if formal is None:
        # Unparenthesized arrow parameter: x => ...
        single = fn_node.child_by_field_name("parameter")
        return [Parameter(name=ast.get_text(single))] if single is not None else []

    params: list[Parameter] = []
    for child in formal.named_children:
        param = _parameter(ast, child)
        if param is not None:
            params.append(param)
    return params


def _parameter(ast: ParsedAST, node: ts.Node) -> Parameter | None:
    """Describe one child of ``formal_parameters``; ``None`` for comments."""
    if node.type == "identifier" or node.type in ("object_pattern", "array_pattern"):
        return Parameter(name=ast.get_text(node))

    if node.type in ("required_parameter", "optional_parameter"):
        pattern = node.child_by_field_name("pattern")
        if pattern is None:
            return None
        annotation = node.child_by_field_name("type")
        default = node.child_by_field_name("value")
        return Parameter(
            name=ast.get_text(pattern),
            type_text=ast.get_text(annotation).lstrip(":").strip() if annotation is not None else None,
            default_text=ast.get_text(default) if default is not None else None,
        )

    if node.type == "assignment_pattern":
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None:
            return None
        return Parameter(
            name=ast.get_text(left),
            default_text=ast.get_text(right) if right is not None else None,
        )

    if node.type in ("rest_pattern", "rest_parameter"):
        bound = next((c for c in node.named_children if c.type == "identifier"), None)
        return Parameter(name=f"...{ast.get_text(bound)}") if bound is not None else None

    return None


def _is_exported(fn_node: ts.Node) -> bool:
    """Return ``True`` if *fn_node* is declared inside an ``export``."""
    current = fn_node.parent
    for _ in range(3):
        if current is None:
            return False
        if current.type == "export_statement":
            return True
        if current.type not in ("variable_declarator", "lexical_declaration",
                                "variable_declaration"):
            return False
        current = current.parent
    return False
