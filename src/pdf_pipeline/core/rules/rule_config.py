"""
Rule set configuration management.

Parses extraction rule sets from YAML/JSON payloads and files, and provides
a builder for assembling rule sets in code.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pdf_pipeline.core.models import ExtractionRule
from pdf_pipeline.exceptions import ConfigurationError

RuleSet = dict[str, ExtractionRule]

# Title / date / amount rules used when no rule set is configured
DEFAULT_RULES_TEXT = """{
  "title": {
    "pattern": "Title:\\\\s*(.+)",
    "type": "string"
  },
  "date": {
    "pattern": "Date:\\\\s*(\\\\d{2}/\\\\d{2}/\\\\d{4})",
    "type": "date"
  },
  "amount": {
    "pattern": "Amount:\\\\s*\\\\$(\\\\d+\\\\.\\\\d{2})",
    "type": "number"
  }
}"""


def parse_rule_set(payload: str | Mapping[str, Any]) -> RuleSet:
    """
    Parse and structurally validate a rule set.

    The payload is either serialized text (JSON or YAML, both accepted by the
    YAML parser) or an already-decoded mapping of field name to rule.

    Args:
        payload: Raw rule set

    Returns:
        Mapping of field name to ExtractionRule, in payload order

    Raises:
        ConfigurationError: If the payload does not parse, is not a mapping,
            or any entry is not a valid rule
    """
    if isinstance(payload, str):
        try:
            decoded = yaml.safe_load(payload)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid extraction rules: {e}") from e
    else:
        decoded = payload

    if not isinstance(decoded, Mapping):
        raise ConfigurationError(
            f"Extraction rules must be a mapping of field name to rule, got {type(decoded).__name__}"
        )

    rule_set: RuleSet = {}
    for field_name, rule_def in decoded.items():
        if not isinstance(field_name, str) or not field_name.strip():
            raise ConfigurationError(f"Invalid field name in extraction rules: {field_name!r}")
        if isinstance(rule_def, ExtractionRule):
            rule_set[field_name] = rule_def
            continue
        if not isinstance(rule_def, Mapping):
            raise ConfigurationError(f"Rule for field '{field_name}' must be a mapping")
        try:
            rule_set[field_name] = ExtractionRule.model_validate(dict(rule_def))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid rule for field '{field_name}': {e}") from e

    return rule_set


def default_rule_set() -> RuleSet:
    """Return the built-in title/date/amount rule set."""
    return parse_rule_set(DEFAULT_RULES_TEXT)


class RuleSetLoader:
    """
    Loads extraction rules from YAML (or JSON) configuration files.

    Expected YAML format:
    ```yaml
    rules:
      title:
        pattern: 'Title:\\s*(.+)'
        type: string
      amount:
        pattern: 'Amount:\\s*\\$(\\d+\\.\\d{2})'
        type: number
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule set loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def load(self) -> RuleSet:
        """
        Load and parse the rule set from the configuration file.

        Returns:
            Mapping of field name to ExtractionRule

        Raises:
            ConfigurationError: If the file is not valid YAML or lacks a 'rules' section
        """
        with open(self.config_path, encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid rule configuration file {self.config_path}: {e}") from e

        if not isinstance(config, Mapping) or "rules" not in config:
            raise ConfigurationError("Configuration file must contain 'rules' section")

        return parse_rule_set(config["rules"])


class RuleSetBuilder:
    """
    Programmatically build rule sets (for testing or dynamic rules).
    """

    def __init__(self):
        self.rules: RuleSet = {}

    def add_rule(
        self,
        field_name: str,
        pattern: str,
        rule_type: str = "string",
        flags: list[str] | None = None,
    ) -> "RuleSetBuilder":
        """Add a rule of any type."""
        try:
            self.rules[field_name] = ExtractionRule(pattern=pattern, type=rule_type, flags=flags or [])
        except ValidationError as e:
            raise ConfigurationError(f"Invalid rule for field '{field_name}': {e}") from e
        return self

    def add_string(self, field_name: str, pattern: str) -> "RuleSetBuilder":
        """Add a string rule."""
        return self.add_rule(field_name, pattern, "string")

    def add_number(self, field_name: str, pattern: str) -> "RuleSetBuilder":
        """Add a number rule."""
        return self.add_rule(field_name, pattern, "number")

    def add_boolean(self, field_name: str, pattern: str) -> "RuleSetBuilder":
        """Add a boolean rule."""
        return self.add_rule(field_name, pattern, "boolean")

    def add_date(self, field_name: str, pattern: str) -> "RuleSetBuilder":
        """Add a date rule (value kept as captured)."""
        return self.add_rule(field_name, pattern, "date")

    def build(self) -> RuleSet:
        """Build and return the rule set."""
        return dict(self.rules)
