"""
Local disk implementation of FileProvider.

Blocking filesystem calls run in a worker thread so the loader can keep
several reads in flight.
"""

import asyncio
import errno
import os
from collections.abc import Collection
from pathlib import Path

from .base import (
    AccessDeniedError,
    FileProvider,
    FileProviderError,
    MissingPathError,
    SourceStats,
    UndecodableFileError,
)


class LocalFileProvider(FileProvider):
    """
    Reads source trees from the local file system.

    When *base_path* is given, every path must resolve inside it; relative
    paths are taken relative to it.
    """

    def __init__(self, base_path: str | None = None):
        self.base_path = Path(base_path).resolve() if base_path else None

    def _resolve(self, path: str) -> Path:
        if self.base_path is not None and not Path(path).is_absolute():
            path = str(self.base_path / path)
        resolved = self._normalize(path)

        if self.base_path is not None and not resolved.is_relative_to(self.base_path):
            raise FileProviderError(
                f"Path {resolved} is outside allowed base path {self.base_path}"
            )
        return resolved

    async def read_text(self, file_path: str, max_size: int | None = None) -> str:
        path = self._resolve(file_path)
        stats = await self.stat(str(path))
        if stats.is_directory:
            raise MissingPathError(f"Not a file: {path}")
        self._check_size(path, stats.size, max_size)

        def _read() -> str:
            return path.read_bytes().decode("utf-8")

        try:
            return await asyncio.to_thread(_read)
        except OSError as e:
            raise AccessDeniedError(f"Cannot read {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise UndecodableFileError(f"{path} is not valid UTF-8: {e.reason}") from e

    async def walk(self, root: str, suffixes: Collection[str]) -> list[str]:
        path = self._resolve(root)
        if not path.is_dir():
            raise MissingPathError(f"Directory not found: {path}")
        if not os.access(path, os.R_OK):
            raise AccessDeniedError(f"Cannot list directory {path}")

        ignored = self.IGNORED_DIRECTORIES
        limit = self.MAX_WALK_FILES

        def _walk() -> list[str]:
            found: list[str] = []
            for dirpath, dirnames, filenames in os.walk(path):
                # Prune in place so os.walk never enters them
                dirnames[:] = sorted(d for d in dirnames if d not in ignored)
                for name in sorted(filenames):
                    if os.path.splitext(name)[1].lower() not in suffixes:
                        continue
                    full = os.path.join(dirpath, name)
                    if os.path.isfile(full):
                        found.append(full)
                    if len(found) >= limit:
                        return found
            return found

        try:
            files = await asyncio.to_thread(_walk)
        except OSError as e:
            raise AccessDeniedError(f"Cannot list directory {path}: {e}") from e
        return sorted(files)

    async def stat(self, path: str) -> SourceStats:
        resolved = self._resolve(path)
        try:
            stat_result = resolved.stat()
        except OSError as e:
            if e.errno == errno.ENOENT:
                raise MissingPathError(f"Path not found: {resolved}") from e
            raise AccessDeniedError(f"Cannot access {resolved}: {e}") from e
        return SourceStats.from_stat(
            str(resolved), stat_result, is_readable=os.access(resolved, os.R_OK)
        )

    def __repr__(self) -> str:
        base_info = f"base_path={self.base_path}" if self.base_path else "unrestricted"
        return f"LocalFileProvider({base_info})"
