"""
Extraction rule engine and rule set configuration.
"""

from .conversion import convert_value, json_safe, parse_boolean, parse_number
from .rule_config import (
    DEFAULT_RULES_TEXT,
    RuleSet,
    RuleSetBuilder,
    RuleSetLoader,
    default_rule_set,
    parse_rule_set,
)
from .rule_engine import ExtractionEngine, apply

__all__ = [
    "ExtractionEngine",
    "apply",
    "RuleSet",
    "RuleSetLoader",
    "RuleSetBuilder",
    "parse_rule_set",
    "default_rule_set",
    "DEFAULT_RULES_TEXT",
    "convert_value",
    "parse_number",
    "parse_boolean",
    "json_safe",
]
