"""File naming: a module is named after its primary export."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from ..ast_engine import span_of
from ..ast_utils import to_kebab_case, to_snake_case
from ..models import Severity, Span
from .base import DetectorHit

if TYPE_CHECKING:
    from ..context import AnalysisContext
    from ..loader import SourceFile

_BARREL_STEMS = frozenset({"index"})


def expected_file_stem(export_name: str, current_stem: str) -> str:
    """Convert *export_name* to the naming convention of *current_stem*.

    Stems containing an underscore use snake_case; everything else uses
    kebab-case.
    """
    if "_" in current_stem:
        return to_snake_case(export_name)
    return to_kebab_case(export_name)


def _without_role(expected: str, suffix: str) -> str:
    """Drop a trailing role word already carried by the file suffix.

    ``UserService`` in ``user.service.ts`` expects ``user``, not
    ``user-service``.
    """
    roles = [part.lower() for part in suffix.split(".")[1:-1]]
    if not roles:
        return expected
    for sep in ("-", "_"):
        tail = sep + sep.join(roles)
        if expected.endswith(tail) and len(expected) > len(tail):
            return expected[: -len(tail)]
    return expected


def detect_file_name_mismatch(
    source_file: SourceFile, context: AnalysisContext
) -> Iterator[DetectorHit]:
    """Compare the file stem with the file's single primary export."""
    if source_file.ast is None or source_file.is_test:
        return
    file_name = PurePosixPath(source_file.path).name
    stem = source_file.stem
    if stem in _BARREL_STEMS or ".d." in file_name:
        return

    index = context.index_for(source_file.path)
    value_exports = [e for e in index.exports if not e.is_type_only]
    names = list(dict.fromkeys(e.name for e in value_exports if e.name))
    has_anonymous = any(e.name is None for e in value_exports)

    if len(names) != 1 or has_anonymous:
        if not value_exports:
            detail = "no exported value"
        elif has_anonymous:
            detail = "an anonymous export"
        else:
            detail = f"{len(names)} exported values"
        yield DetectorHit(
            span=Span(),
            message=f"no single primary export ({detail}); file name not checked",
            severity=Severity.INFO,
        )
        return

    export_name = names[0]
    suffix = file_name[len(stem):]
    expected = _without_role(expected_file_stem(export_name, stem), suffix)
    if stem == expected:
        return

    binding = next(e for e in value_exports if e.name == export_name)
    yield DetectorHit(
        span=span_of(binding.node) if binding.node is not None else Span(),
        message=(
            f"file '{file_name}' does not match its primary export "
            f"'{export_name}'; expected '{expected}{suffix}'"
        ),
        suggestion=f"Rename the file to '{expected}{suffix}'.",
    )
