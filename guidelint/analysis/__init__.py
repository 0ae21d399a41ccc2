"""TypeScript / JavaScript guideline analysis.

The ``ASTEngine`` parses sources with tree-sitter; detectors registered in
the ``RuleRegistry`` inspect the trees; the ``Analyzer`` runs them across a
file set and aggregates the findings.

Quick start::

    from guidelint.analysis import ASTEngine

    engine = ASTEngine()
    ast = engine.parse("export function parseUser(raw) { return raw; }")
    for fn in engine.find_function_definitions(ast):
        print(fn.name, fn.is_exported)
"""

from .ast_engine import (
    ASTEngine,
    ExportBinding,
    FunctionCall,
    FunctionDefinition,
    ImportStatement,
    NodeKind,
    ObjectProperty,
    Parameter,
    ParsedAST,
    QueryMatch,
)
from .models import (
    AnalysisResult,
    DetectorSettings,
    Finding,
    ParseError,
    RuleConfig,
    RuleOverride,
    Severity,
    Span,
)

__all__ = [
    "ASTEngine",
    "AnalysisResult",
    "DetectorSettings",
    "ExportBinding",
    "Finding",
    "FunctionCall",
    "FunctionDefinition",
    "ImportStatement",
    "NodeKind",
    "ObjectProperty",
    "Parameter",
    "ParseError",
    "ParsedAST",
    "QueryMatch",
    "RuleConfig",
    "RuleOverride",
    "Severity",
    "Span",
]
