"""Custom exception hierarchy for guidelint.

Only run-level failures are exceptions. Problems tied to a single file or a
single detector (syntax errors, detector crashes, unreadable files) are
recorded as values in the analysis result so that the run can continue.
"""


class GuidelintError(Exception):
    """Base exception for all guidelint errors.

    All custom exceptions inherit from this class so that the command line
    shell can catch every guidelint-specific failure with a single except
    clause and map it to exit code 2.
    """
    pass


# =============================================================================
# Registry Errors
# =============================================================================

class RegistryError(GuidelintError):
    """Base exception for rule registry errors."""
    pass


class DuplicateRuleError(RegistryError):
    """A rule id was registered twice."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule already registered: {rule_id!r}")
        self.rule_id = rule_id


class UnknownRuleError(RegistryError):
    """A rule id was requested that the registry does not contain."""

    def __init__(self, rule_id: str, known: list[str] | None = None):
        message = f"Unknown rule: {rule_id!r}"
        if known:
            message += f". Known rules: {', '.join(sorted(known))}"
        super().__init__(message)
        self.rule_id = rule_id


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(GuidelintError):
    """Base exception for configuration errors."""
    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is unreadable or malformed."""
    pass


# =============================================================================
# Loader / Run Errors
# =============================================================================

class LoaderError(GuidelintError):
    """The file tree could not be read at all (missing root, no files)."""
    pass


class AnalysisCancelledError(GuidelintError):
    """The run was cancelled between files; partial results are discarded."""
    pass
