"""Source tree access used by the loader."""

from .base import (
    AccessDeniedError,
    FileProvider,
    FileProviderError,
    FileTooLargeError,
    MissingPathError,
    SourceStats,
    UndecodableFileError,
)
from .local import LocalFileProvider

__all__ = [
    "FileProvider",
    "SourceStats",
    "FileProviderError",
    "MissingPathError",
    "AccessDeniedError",
    "FileTooLargeError",
    "UndecodableFileError",
    "LocalFileProvider",
]
