"""
Source tree access for the loader.

A ``FileProvider`` answers three questions about a tree of JavaScript and
TypeScript sources: what is at this path, which source files live beneath
this directory, and what text does this file hold. The loader talks only to
this interface, so analysis can run against the local disk or an in-memory
tree in tests.
"""

import os
import stat
from abc import ABC, abstractmethod
from collections.abc import Collection
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourceStats:
    """What the provider knows about a path before reading it."""
    path: str
    size: int
    is_directory: bool
    is_readable: bool = True

    @classmethod
    def from_stat(cls, path: str, stat_result: os.stat_result, is_readable: bool = True) -> "SourceStats":
        return cls(
            path=path,
            size=stat_result.st_size,
            is_directory=stat.S_ISDIR(stat_result.st_mode),
            is_readable=is_readable,
        )


class FileProviderError(Exception):
    """Base exception for source access failures."""
    pass


class MissingPathError(FileProviderError):
    """The path does not exist."""
    pass


class AccessDeniedError(FileProviderError):
    """The path exists but cannot be listed or read."""
    pass


class FileTooLargeError(FileProviderError):
    """The file is larger than the configured limit."""
    pass


class UndecodableFileError(FileProviderError):
    """The file bytes are not valid text in the requested encoding."""
    pass


class FileProvider(ABC):
    """
    Read-only access to a tree of source files.

    All paths are plain strings. Walks skip dependency, VCS and build output
    directories and return files sorted by path, so the same tree always
    yields the same file order.
    """

    MAX_FILE_SIZE = 1_000_000
    MAX_WALK_FILES = 50_000
    MAX_PATH_DEPTH = 64

    IGNORED_DIRECTORIES = frozenset({
        "node_modules", ".git", ".hg", ".svn", "dist", "build", "coverage",
        ".next", ".turbo", ".cache",
    })

    @abstractmethod
    async def read_text(self, file_path: str, max_size: int | None = None) -> str:
        """
        Return the UTF-8 text of a source file.

        Raises:
            MissingPathError: If the file doesn't exist
            AccessDeniedError: If the file can't be read
            FileTooLargeError: If the file exceeds *max_size* bytes
            UndecodableFileError: If the file is not valid UTF-8
        """

    @abstractmethod
    async def walk(self, root: str, suffixes: Collection[str]) -> list[str]:
        """
        List files beneath *root* whose lower-cased suffix is in *suffixes*.

        Returns:
            Sorted absolute paths, at most MAX_WALK_FILES of them

        Raises:
            MissingPathError: If *root* is not a directory
            AccessDeniedError: If *root* can't be listed
        """

    @abstractmethod
    async def stat(self, path: str) -> SourceStats:
        """
        Raises:
            MissingPathError: If the path doesn't exist
            AccessDeniedError: If the path can't be inspected
        """

    async def is_directory(self, path: str) -> bool:
        try:
            return (await self.stat(path)).is_directory
        except FileProviderError:
            return False

    async def is_file(self, path: str) -> bool:
        try:
            return not (await self.stat(path)).is_directory
        except FileProviderError:
            return False

    def _normalize(self, path: str) -> Path:
        """Resolve *path*, rejecting empty, traversing or overly deep paths."""
        if not path:
            raise FileProviderError("Path cannot be empty")
        if ".." in Path(path).parts:
            raise FileProviderError(f"Path traversal is not allowed: {path}")

        resolved = Path(path).resolve()
        if len(resolved.parts) > self.MAX_PATH_DEPTH:
            raise FileProviderError(f"Path too deep (max {self.MAX_PATH_DEPTH} levels): {path}")
        return resolved

    def _check_size(self, path: Path, size: int, max_size: int | None) -> None:
        limit = max_size or self.MAX_FILE_SIZE
        if size > limit:
            raise FileTooLargeError(f"{path} is {size} bytes (limit {limit})")
