"""Source loader: turns root paths into ``SourceFile`` records.

The loader enumerates supported source files beneath each root through a
``FileProvider`` and reads them concurrently. Files that are found but
cannot be read become ``ParseError`` records instead of being dropped.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath

from ..core.exceptions import AnalysisCancelledError, LoaderError
from ..providers import FileProvider, FileProviderError, LocalFileProvider
from .ast_engine import SUPPORTED_SUFFIXES, ParsedAST, language_for_path
from .ast_utils import matches_any
from .models import DetectorSettings, ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """One source file handed to the parser and detectors.

    Attributes:
        path: Reported path: the root as given joined with the posix path
            relative to it. Unique within a run.
        text: Decoded file contents.
        language: ``"javascript"``, ``"typescript"`` or ``"tsx"``.
        ast: Parse tree, or ``None`` until parsed (and when parsing failed).
        is_test: ``True`` when the path matches a test-file pattern.
    """

    path: str
    text: str
    language: str
    ast: ParsedAST | None = None
    is_test: bool = False

    @property
    def stem(self) -> str:
        """File name without any suffixes (``user.test.ts`` -> ``user``)."""
        name = PurePosixPath(self.path).name
        return name.split(".", 1)[0]

    def with_ast(self, ast: ParsedAST) -> SourceFile:
        return replace(self, ast=ast)


class CancellationToken:
    """Cooperative cancellation flag checked between files."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise AnalysisCancelledError("Analysis cancelled")


def is_test_path(path: str, patterns: Sequence[str]) -> bool:
    """Return ``True`` if *path* (posix) matches a test-file glob."""
    return matches_any(path, patterns) is not None


def _display_path(root: str, relative: str | None) -> str:
    base = PurePosixPath(root.replace(os.sep, "/"))
    if relative is None:
        return base.as_posix()
    return (base / relative).as_posix()


class SourceLoader:
    """Enumerates and reads source files beneath one or more roots.

    Args:
        settings: Detector settings (file size limit, test patterns).
        provider: File provider to use. Defaults to an unrestricted
            ``LocalFileProvider``.
        max_workers: Maximum number of concurrent reads.
    """

    def __init__(
        self,
        settings: DetectorSettings | None = None,
        provider: FileProvider | None = None,
        max_workers: int = 8,
    ) -> None:
        self.settings = settings or DetectorSettings()
        self.provider = provider or LocalFileProvider()
        self.max_workers = max(1, max_workers)

    async def discover(self, roots: Sequence[str]) -> list[tuple[str, str]]:
        """List ``(display_path, absolute_path)`` pairs for all roots.

        Pairs are sorted by display path and deduplicated by absolute path.

        Raises:
            LoaderError: If a root is missing or unreadable, or if no
                supported source files are found.
        """
        if not roots:
            raise LoaderError("No input paths given")

        seen: dict[str, str] = {}
        for root in roots:
            absolute_root = str(Path(root).resolve())
            try:
                if await self.provider.is_directory(absolute_root):
                    files = await self.provider.walk(
                        absolute_root, SUPPORTED_SUFFIXES
                    )
                    for file_path in files:
                        relative = Path(file_path).relative_to(absolute_root).as_posix()
                        seen.setdefault(file_path, _display_path(root, relative))
                elif await self.provider.is_file(absolute_root):
                    if language_for_path(absolute_root) is None:
                        logger.warning("Skipping unsupported file: %s", root)
                        continue
                    seen.setdefault(absolute_root, _display_path(root, None))
                else:
                    raise LoaderError(f"Path not found or unreadable: {root}")
            except FileProviderError as e:
                raise LoaderError(f"Cannot read {root}: {e}") from e

        if not seen:
            raise LoaderError(
                "No source files found (looked for "
                f"{', '.join(sorted(SUPPORTED_SUFFIXES))})"
            )

        return sorted(
            ((display, absolute) for absolute, display in seen.items()),
            key=lambda pair: pair[0],
        )

    async def load(
        self,
        roots: Sequence[str],
        token: CancellationToken | None = None,
    ) -> tuple[list[SourceFile], list[ParseError]]:
        """Discover and read every source file beneath *roots*.

        Returns:
            ``(source_files, read_errors)``, both ordered by path.

        Raises:
            LoaderError: See :meth:`discover`.
            AnalysisCancelledError: If *token* is cancelled mid-load.
        """
        token = token or CancellationToken()
        entries = await self.discover(roots)
        semaphore = asyncio.Semaphore(self.max_workers)

        async def _read(display: str, absolute: str) -> SourceFile | ParseError:
            async with semaphore:
                token.raise_if_cancelled()
                try:
                    text = await self.provider.read_text(
                        absolute, max_size=self.settings.max_file_size
                    )
                except FileProviderError as e:
                    logger.warning("Cannot read %s: %s", display, e)
                    return ParseError(path=display, message=f"cannot read file: {e}")
            return SourceFile(
                path=display,
                text=text,
                language=language_for_path(absolute) or "javascript",
                is_test=is_test_path(display, self.settings.test_file_patterns),
            )

        loaded = await asyncio.gather(*(_read(d, a) for d, a in entries))
        token.raise_if_cancelled()

        files = [item for item in loaded if isinstance(item, SourceFile)]
        errors = [item for item in loaded if isinstance(item, ParseError)]
        logger.debug(
            "Loaded %d source files (%d unreadable)", len(files), len(errors),
            extra={"event": "files_loaded", "files": len(files)},
        )
        return files, errors
