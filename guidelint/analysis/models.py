"""Pydantic models for guideline conformance analysis results.

This module defines the data models used to represent findings, parse
errors, rule configuration and the aggregated result of one analysis run.
All result models are frozen: severity overrides and other adjustments
produce new values through ``model_copy`` instead of mutating findings.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity levels for findings, ordered ``info < warning < error``."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.ERROR: 2}


class Span(BaseModel):
    """A source region.

    Attributes:
        start_line: 1-based line where the region starts.
        start_column: 0-based column offset where the region starts.
        end_line: 1-based line where the region ends.
        end_column: 0-based column offset where the region ends.
    """

    model_config = ConfigDict(frozen=True)

    start_line: int = 1
    start_column: int = 0
    end_line: int = 1
    end_column: int = 0

    def sort_key(self) -> tuple[int, int, int, int]:
        return (self.start_line, self.start_column, self.end_line, self.end_column)


class Finding(BaseModel):
    """A single reported guideline violation.

    Identity is the ``(rule_id, path, span)`` tuple; two findings with the
    same identity are the same finding even if their messages differ.

    Attributes:
        rule_id: Identifier of the rule that produced the finding
            (e.g. ``"prefer-early-return"``).
        path: Path of the analyzed file, as reported to the user.
        span: Source region the finding refers to.
        severity: Severity after configuration overrides were applied.
        message: Human-readable description of the violation.
        suggestion: Optional informational fix text. Never applied.
    """

    model_config = ConfigDict(frozen=True)

    rule_id: str
    path: str
    span: Span
    severity: Severity
    message: str
    suggestion: str | None = None

    @property
    def identity(self) -> tuple[str, str, Span]:
        return (self.rule_id, self.path, self.span)


class ParseError(BaseModel):
    """A file that could not be turned into a syntax tree.

    The file is excluded from rule evaluation; the run continues.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    span: Span = Field(default_factory=Span)
    message: str


class AnalysisResult(BaseModel):
    """Aggregated results of one analysis run.

    Attributes:
        ruleset_version: Version of the built-in rule set that produced
            the findings.
        files_analyzed: Number of files the loader handed to the parser.
        findings: Deduplicated findings in deterministic order.
        parse_errors: Per-file parse and read failures, ordered by path.
        config_warnings: Problems found in the supplied configuration.
    """

    model_config = ConfigDict(frozen=True)

    ruleset_version: str
    files_analyzed: int = 0
    findings: list[Finding] = Field(default_factory=list)
    parse_errors: list[ParseError] = Field(default_factory=list)
    config_warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return ``True`` if any finding has ``error`` severity."""
        return any(f.severity is Severity.ERROR for f in self.findings)

    def count_by_severity(self) -> dict[str, int]:
        counts = {severity.value: 0 for severity in Severity}
        for finding in self.findings:
            counts[finding.severity.value] += 1
        return counts


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class RuleOverride(BaseModel):
    """Per-rule configuration supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    severity: Severity | None = None


class DetectorSettings(BaseModel):
    """Thresholds and pattern lists used by the built-in detectors.

    Every value is a configurable default; the guideline prose only gives
    illustrative numbers.
    """

    model_config = ConfigDict(frozen=True)

    max_nesting_depth: int = Field(default=3, ge=1)
    max_guard_clauses: int = Field(default=5, ge=1)
    short_function_statements: int = Field(default=3, ge=1)
    duplicate_threshold: int = Field(default=3, ge=2)
    min_duplicate_nodes: int = Field(default=12, ge=1)
    max_file_size: int = Field(default=1_000_000, ge=1)
    core_prefixes: list[str] = Field(
        default_factory=lambda: ["calculate", "validate", "parse", "format", "aggregate"]
    )
    io_call_patterns: list[str] = Field(
        default_factory=lambda: [
            # network
            "fetch", "axios", "axios.*", "http.*", "https.*", "*.request",
            "got", "got.*", "superagent.*", "new XMLHttpRequest*", "new WebSocket*",
            # filesystem
            "fs.*", "fsp.*", "*.readFile", "*.readFileSync", "*.writeFile",
            "*.writeFileSync", "readFile", "readFileSync", "writeFile",
            "writeFileSync", "*.appendFile", "*.unlink", "*.mkdir", "*.readdir",
            # database
            "db.*", "*.db.*", "prisma.*", "*.prisma.*", "knex", "knex.*",
            "*.query", "*.execute", "*.findOne", "*.findMany", "*.insertOne",
            "*.updateOne", "*.deleteOne", "mongoose.*", "sequelize.*",
            # clock and randomness
            "Date.now", "new Date()", "performance.now", "Math.random",
            "crypto.random*", "*.getRandomValues", "uuid", "uuidv4",
            "setTimeout", "setInterval",
            # queues
            "*.publish", "*.enqueue", "*.sendMessage", "*.sendToQueue",
            "queue.*", "*.queue.*",
            # process / console
            "console.*", "process.exit",
        ]
    )
    io_modules: list[str] = Field(
        default_factory=lambda: [
            "fs", "fs/promises", "node:fs", "node:fs/promises", "http", "https",
            "node:http", "node:https", "net", "node:net", "child_process",
            "node:child_process", "axios", "node-fetch", "got", "pg", "mysql",
            "mysql2", "mongodb", "mongoose", "redis", "ioredis", "amqplib",
            "kafkajs", "@prisma/client", "@aws-sdk/*",
        ]
    )
    test_file_patterns: list[str] = Field(
        default_factory=lambda: [
            "*.test.*", "*.spec.*", "*__tests__/*", "test/*", "*/test/*",
            "tests/*", "*/tests/*",
        ]
    )
    test_functions: list[str] = Field(
        default_factory=lambda: ["it", "test", "it.only", "test.only", "it.each", "test.each"]
    )
    assertion_functions: dict[str, int] = Field(
        default_factory=lambda: {
            "assert.equal": 1,
            "assert.strictEqual": 1,
            "assert.deepEqual": 1,
            "assert.deepStrictEqual": 1,
            "assert.notEqual": 1,
            "assert.notStrictEqual": 1,
            "assert.notDeepEqual": 1,
            "assertEquals": 1,
            "assertStrictEquals": 1,
        }
    )
    # Properties allowed between expect(...) and the matcher call
    expect_modifiers: list[str] = Field(
        default_factory=lambda: [
            "not", "resolves", "rejects",
            "to", "be", "been", "is", "that", "which", "and", "has", "have",
            "with", "at", "of", "same", "but", "does", "still", "also",
            "deep", "own", "nested", "ordered", "any", "all", "include",
            "includes", "contain", "contains",
        ]
    )
    validator_prefixes: list[str] = Field(
        default_factory=lambda: ["validate", "isValid", "check", "parse", "verify"]
    )
    boundary_markers: list[str] = Field(
        default_factory=lambda: [
            "*.parse", "*.safeParse", "*.parseAsync", "*.validate",
            "*.validateSync", "z.*", "yup.*", "Joi.*",
        ]
    )
    schema_roots: list[str] = Field(default_factory=lambda: ["z", "yup", "Joi", "v"])
    normalize_domains: list[str] = Field(
        default_factory=lambda: [
            "phone", "tel", "mobile", "id", "card", "zip", "postal", "postcode",
            "ssn", "iban", "sku", "isbn", "account",
        ]
    )
    password_markers: list[str] = Field(
        default_factory=lambda: ["password", "passwd", "pwd", "passphrase", "passcode", "secret"]
    )
    normalizing_calls: list[str] = Field(
        default_factory=lambda: [
            "replace", "replaceAll", "trim", "trimStart", "trimEnd",
            "toLowerCase", "toUpperCase", "toLocaleLowerCase",
            "toLocaleUpperCase", "normalize", "transform", "preprocess",
        ]
    )


class RuleConfig(BaseModel):
    """Resolved configuration for one run.

    Attributes:
        rules: Overrides keyed by rule id. Rules without an entry are
            enabled at their default severity.
        settings: Detector thresholds and pattern lists.
        warnings: Problems found while reading the configuration.
    """

    model_config = ConfigDict(frozen=True)

    rules: dict[str, RuleOverride] = Field(default_factory=dict)
    settings: DetectorSettings = Field(default_factory=DetectorSettings)
    warnings: list[str] = Field(default_factory=list)

    def override_for(self, rule_id: str) -> RuleOverride:
        return self.rules.get(rule_id) or RuleOverride()

    def is_enabled(self, rule_id: str) -> bool:
        return self.override_for(rule_id).enabled
