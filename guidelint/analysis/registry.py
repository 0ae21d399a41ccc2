"""Rule registry: the closed, versioned set of guideline rules.

Rules are plain ``(id, detector)`` records. Extending the set means another
``register`` call in :func:`build_default_registry`, never subclassing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ..core.exceptions import DuplicateRuleError, UnknownRuleError
from .detectors import (
    assertions,
    extraction,
    naming,
    nesting,
    normalization,
    purity,
)
from .detectors.base import Detector
from .models import Severity

logger = logging.getLogger(__name__)

RULESET_VERSION = "1"


@dataclass(frozen=True)
class RuleDefinition:
    """A single guideline rule.

    Attributes:
        id: Stable kebab-case identifier, e.g. ``"prefer-early-return"``.
        description: One-line summary shown by ``--list-rules``.
        default_severity: Severity used when no override is configured.
        detector: Callable ``(source_file, context) -> Iterable[DetectorHit]``.
    """

    id: str
    description: str
    default_severity: Severity
    detector: Detector = field(repr=False, compare=False)


class RuleRegistry:
    """Holds rule definitions keyed by id, in registration order."""

    def __init__(self, version: str = RULESET_VERSION) -> None:
        self.version = version
        self._rules: dict[str, RuleDefinition] = {}

    def register(self, rule: RuleDefinition) -> RuleDefinition:
        """Add *rule* to the registry.

        Raises:
            DuplicateRuleError: If a rule with the same id already exists.
        """
        if rule.id in self._rules:
            raise DuplicateRuleError(rule.id)
        self._rules[rule.id] = rule
        logger.debug("Registered rule %s", rule.id, extra={"rule_id": rule.id})
        return rule

    def resolve(self, rule_id: str) -> RuleDefinition:
        """Return the rule registered under *rule_id*.

        Raises:
            UnknownRuleError: If no such rule exists.
        """
        try:
            return self._rules[rule_id]
        except KeyError:
            raise UnknownRuleError(rule_id, known=list(self._rules)) from None

    def select(self, rule_ids: Iterable[str] | None = None) -> list[RuleDefinition]:
        """Resolve a subset of rules, or all of them when *rule_ids* is None."""
        if rule_ids is None:
            return list(self._rules.values())
        selected: dict[str, RuleDefinition] = {}
        for rule_id in rule_ids:
            selected[rule_id] = self.resolve(rule_id)
        return list(selected.values())

    def ids(self) -> list[str]:
        return list(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[RuleDefinition]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)


def build_default_registry() -> RuleRegistry:
    """Create a registry holding the built-in guideline rules."""
    registry = RuleRegistry()

    registry.register(RuleDefinition(
        id="prefer-early-return",
        description="Guard clauses should replace deeply nested conditionals",
        default_severity=Severity.WARNING,
        detector=nesting.detect_deep_nesting,
    ))
    registry.register(RuleDefinition(
        id="excessive-guard-clauses",
        description="Too many guard clauses suggest the function does several things",
        default_severity=Severity.INFO,
        detector=nesting.detect_excessive_guards,
    ))
    registry.register(RuleDefinition(
        id="over-extracted-function",
        description="Single-use helpers with flag parameters or no standalone concept",
        default_severity=Severity.WARNING,
        detector=extraction.detect_over_extraction,
    ))
    registry.register(RuleDefinition(
        id="duplicated-structure",
        description="A code shape repeated at least duplicate_threshold times should be extracted",
        default_severity=Severity.WARNING,
        detector=extraction.detect_duplicated_structure,
    ))
    registry.register(RuleDefinition(
        id="file-name-matches-export",
        description="A file is named after its primary export",
        default_severity=Severity.WARNING,
        detector=naming.detect_file_name_mismatch,
    ))
    registry.register(RuleDefinition(
        id="impure-core-function",
        description="Functional-core functions must not perform I/O",
        default_severity=Severity.ERROR,
        detector=purity.detect_impure_core,
    ))
    registry.register(RuleDefinition(
        id="literal-test-assertion",
        description="Expected values in assertions are literals, not computed",
        default_severity=Severity.WARNING,
        detector=assertions.detect_computed_expectations,
    ))
    registry.register(RuleDefinition(
        id="no-logic-in-tests",
        description="Test bodies contain no branches or loops",
        default_severity=Severity.WARNING,
        detector=assertions.detect_test_logic,
    ))
    registry.register(RuleDefinition(
        id="normalize-boundary-input",
        description="Boundary validators normalize user input before strict matching",
        default_severity=Severity.WARNING,
        detector=normalization.detect_unnormalized_input,
    ))
    registry.register(RuleDefinition(
        id="parse-dont-validate",
        description="Validators return parsed values instead of booleans",
        default_severity=Severity.INFO,
        detector=normalization.detect_boolean_validators,
    ))

    return registry
