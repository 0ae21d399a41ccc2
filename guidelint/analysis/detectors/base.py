"""Detector result type and call signature."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models import Severity, Span

if TYPE_CHECKING:
    from ..context import AnalysisContext
    from ..loader import SourceFile


@dataclass(frozen=True)
class DetectorHit:
    """A raw match produced by a detector.

    The runner turns hits into ``Finding`` records by attaching the rule id,
    the file path and the rule's default severity (unless *severity* is set).
    """

    span: Span
    message: str
    suggestion: str | None = None
    severity: Severity | None = None


Detector = Callable[["SourceFile", "AnalysisContext"], Iterable[DetectorHit]]
