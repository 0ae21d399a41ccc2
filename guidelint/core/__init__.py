"""Core utilities: the exception hierarchy shared by every component."""

from .exceptions import (
    AnalysisCancelledError,
    ConfigurationError,
    DuplicateRuleError,
    GuidelintError,
    InvalidConfigError,
    LoaderError,
    RegistryError,
    UnknownRuleError,
)

__all__ = [
    "GuidelintError",
    "RegistryError",
    "DuplicateRuleError",
    "UnknownRuleError",
    "ConfigurationError",
    "InvalidConfigError",
    "LoaderError",
    "AnalysisCancelledError",
]
