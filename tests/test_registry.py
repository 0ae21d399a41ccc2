"""Tests for the rule registry."""

import re

import pytest

from guidelint.analysis.detectors.base import DetectorHit
from guidelint.analysis.models import Severity, Span
from guidelint.analysis.registry import (
    RULESET_VERSION,
    RuleDefinition,
    RuleRegistry,
    build_default_registry,
)
from guidelint.core.exceptions import DuplicateRuleError, UnknownRuleError


def _noop_detector(source_file, context):
    return [DetectorHit(span=Span(), message="hit")]


class TestRuleRegistry:
    """Registration, lookup and selection."""

    def test_default_registry_contents(self, registry):
        assert registry.version == RULESET_VERSION
        assert len(registry) == 10
        assert registry.ids()[0] == "prefer-early-return"
        for rule in registry:
            assert re.fullmatch(r"[a-z]+(-[a-z]+)*", rule.id)
            assert rule.description
            assert isinstance(rule.default_severity, Severity)

    def test_impure_core_is_an_error_by_default(self, registry):
        assert registry.resolve("impure-core-function").default_severity is Severity.ERROR

    def test_duplicate_description_follows_configured_threshold(self, registry):
        description = registry.resolve("duplicated-structure").description
        assert "duplicate_threshold" in description
        assert not re.search(r"\b(three|\d+)\b", description)

    def test_register_duplicate_raises(self):
        registry = RuleRegistry()
        rule = RuleDefinition("my-rule", "desc", Severity.INFO, _noop_detector)
        registry.register(rule)
        with pytest.raises(DuplicateRuleError) as exc_info:
            registry.register(rule)
        assert exc_info.value.rule_id == "my-rule"

    def test_resolve_unknown_lists_known_rules(self, registry):
        with pytest.raises(UnknownRuleError, match="no-such-rule") as exc_info:
            registry.resolve("no-such-rule")
        assert "prefer-early-return" in str(exc_info.value)

    def test_select_all_keeps_registration_order(self, registry):
        assert [r.id for r in registry.select()] == registry.ids()

    def test_select_subset_dedupes(self, registry):
        selected = registry.select([
            "file-name-matches-export",
            "prefer-early-return",
            "file-name-matches-export",
        ])
        assert [r.id for r in selected] == ["file-name-matches-export", "prefer-early-return"]

    def test_select_unknown_raises(self, registry):
        with pytest.raises(UnknownRuleError):
            registry.select(["prefer-early-return", "bogus"])

    def test_contains(self, registry):
        assert "parse-dont-validate" in registry
        assert "bogus" not in registry

    def test_registries_are_independent(self):
        first = build_default_registry()
        second = RuleRegistry()
        assert len(first) == 10
        assert len(second) == 0
