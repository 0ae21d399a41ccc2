"""Configuration loading.

A configuration file is TOML (or JSON when it ends in ``.json``)::

    [rules.prefer-early-return]
    enabled = true
    severity = "error"

    [settings]
    max_nesting_depth = 4

Unknown rule ids, unknown keys and invalid values are collected as
warnings on the resulting ``RuleConfig``; only an unreadable or malformed
file is an error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import toml
from pydantic import ValidationError

from .analysis.models import DetectorSettings, RuleConfig, RuleOverride, Severity
from .core.exceptions import InvalidConfigError

logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = ("rules", "settings")
_OVERRIDE_KEYS = ("enabled", "severity")


def load_config(path: str | None, known_rules: Iterable[str]) -> RuleConfig:
    """Read and validate the configuration file at *path*.

    Args:
        path: Path to a ``.toml`` or ``.json`` file, or ``None`` for
            defaults.
        known_rules: Ids of the registered rules.

    Raises:
        InvalidConfigError: If the file cannot be read or parsed.
    """
    if path is None:
        return RuleConfig()

    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = toml.load(f)
    except OSError as e:
        raise InvalidConfigError(f"Cannot read config file {path}: {e}") from e
    except (toml.TomlDecodeError, json.JSONDecodeError) as e:
        raise InvalidConfigError(f"Failed to parse config file {path}: {e}") from e

    if not isinstance(data, Mapping):
        raise InvalidConfigError(f"Config file {path} must contain a table at the top level")

    config = parse_config(data, known_rules)
    logger.debug("Loaded config from %s (%d warnings)", path, len(config.warnings))
    return config


def parse_config(data: Mapping[str, Any], known_rules: Iterable[str]) -> RuleConfig:
    """Build a ``RuleConfig`` from already-decoded data.

    Raises:
        InvalidConfigError: If ``rules`` or ``settings`` is not a table.
    """
    known = set(known_rules)
    warnings: list[str] = []

    for key in data:
        if key not in _TOP_LEVEL_KEYS:
            warnings.append(f"unknown top-level key '{key}'")

    rules_data = data.get("rules", {})
    settings_data = data.get("settings", {})
    if not isinstance(rules_data, Mapping):
        raise InvalidConfigError("'rules' must be a table")
    if not isinstance(settings_data, Mapping):
        raise InvalidConfigError("'settings' must be a table")

    rules: dict[str, RuleOverride] = {}
    for rule_id, entry in rules_data.items():
        if rule_id not in known:
            warnings.append(f"unknown rule '{rule_id}'")
            continue
        if not isinstance(entry, Mapping):
            warnings.append(f"rule '{rule_id}': expected a table")
            continue
        rules[rule_id] = _parse_override(rule_id, entry, warnings)

    settings = _parse_settings(settings_data, warnings)
    return RuleConfig(rules=rules, settings=settings, warnings=warnings)


def _parse_override(
    rule_id: str, entry: Mapping[str, Any], warnings: list[str]
) -> RuleOverride:
    enabled = True
    severity: Severity | None = None

    for key, value in entry.items():
        if key not in _OVERRIDE_KEYS:
            warnings.append(f"rule '{rule_id}': unknown key '{key}'")
        elif key == "enabled":
            if isinstance(value, bool):
                enabled = value
            else:
                warnings.append(f"rule '{rule_id}': 'enabled' must be true or false")
        else:
            try:
                severity = Severity(value)
            except ValueError:
                allowed = ", ".join(s.value for s in Severity)
                warnings.append(
                    f"rule '{rule_id}': invalid severity {value!r} (expected one of {allowed})"
                )

    return RuleOverride(enabled=enabled, severity=severity)


def _parse_settings(data: Mapping[str, Any], warnings: list[str]) -> DetectorSettings:
    accepted: dict[str, Any] = {}
    for key, value in data.items():
        if key not in DetectorSettings.model_fields:
            warnings.append(f"unknown setting '{key}'")
            continue
        try:
            DetectorSettings.model_validate({key: value})
        except ValidationError as e:
            reason = e.errors()[0].get("msg", "invalid value")
            warnings.append(f"setting '{key}': {reason}")
            continue
        accepted[key] = value
    return DetectorSettings.model_validate(accepted)
