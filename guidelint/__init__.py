"""guidelint: static conformance checks for coding guidelines.

Quick start::

    import asyncio
    from guidelint import Analyzer, render

    result = asyncio.run(Analyzer().run(["src"]))
    print(render(result, "text"))
"""

from .analysis.models import AnalysisResult, Finding, ParseError, Severity, Span
from .analysis.registry import RULESET_VERSION, build_default_registry
from .analysis.runner import Analyzer, CancellationToken
from .reporting import render

__version__ = "0.1.0"

__all__ = [
    "Analyzer",
    "AnalysisResult",
    "CancellationToken",
    "Finding",
    "ParseError",
    "RULESET_VERSION",
    "Severity",
    "Span",
    "build_default_registry",
    "render",
]
