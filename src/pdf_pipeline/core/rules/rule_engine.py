"""
Field extraction engine.

Compiles a rule set once and applies it to text blobs, producing typed
field values plus extraction statistics. Each rule is independent: a rule
with a broken pattern is skipped without affecting the others.
"""

import re
import time
from re import Pattern
from typing import Any

from pdf_pipeline.core.models import ExtractionMetadata, ExtractionResult, ExtractionRule
from pdf_pipeline.exceptions import RulePatternError
from pdf_pipeline.observability.logger import get_logger
from pdf_pipeline.observability.metrics import extraction_rules_total, increment_counter

from .conversion import convert_value, describe_number_issue
from .rule_config import RuleSet

logger = get_logger(__name__)


class ExtractionEngine:
    """
    Applies a rule set to text.

    Patterns are compiled when the engine is built; rules whose pattern
    does not compile are logged, reported in every result's warnings and
    treated as non-matching.
    """

    def __init__(self, rule_set: RuleSet):
        """
        Initialize the engine with a rule set.

        Args:
            rule_set: Mapping of field name to ExtractionRule
        """
        self.rule_set = rule_set
        self.patterns: list[tuple[str, ExtractionRule, Pattern | None]] = []
        self.compile_warnings: list[str] = []
        self._build_patterns()

    def _build_patterns(self) -> None:
        """Compile every rule's pattern, isolating failures per rule."""
        for field_name, rule in self.rule_set.items():
            try:
                pattern = self._compile(field_name, rule)
            except RulePatternError as e:
                logger.warning(
                    f"Skipping extraction rule: {e}",
                    extra={"field_name": field_name, "pattern": rule.pattern},
                )
                self.compile_warnings.append(str(e))
                self.patterns.append((field_name, rule, None))
                continue

            if pattern.groups < 1:
                self.compile_warnings.append(
                    f"[{field_name}] pattern '{rule.pattern}' has no capturing group and never yields a value"
                )
            self.patterns.append((field_name, rule, pattern))

    @staticmethod
    def _compile(field_name: str, rule: ExtractionRule) -> Pattern:
        try:
            return re.compile(rule.pattern, rule.regex_flags)
        except re.error as e:
            raise RulePatternError(field_name, rule.pattern, str(e)) from e

    def apply(self, text: str) -> ExtractionResult:
        """
        Extract field values from a text.

        Args:
            text: Non-empty text to search

        Returns:
            ExtractionResult with values for the rules that matched
        """
        start = time.perf_counter()
        values: dict[str, Any] = {}
        warnings = list(self.compile_warnings)
        invalid = 0

        for field_name, rule, pattern in self.patterns:
            if pattern is None:
                invalid += 1
                continue

            match = pattern.search(text)
            # Only a non-empty first group counts as a match
            if match is None or pattern.groups < 1 or not match.group(1):
                continue

            captured = match.group(1).strip()
            value = convert_value(captured, rule.type)
            if rule.type == "number":
                issue = describe_number_issue(captured, value)
                if issue:
                    warnings.append(f"[{field_name}] {issue}")

            values[field_name] = value

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        matched = len(values)

        increment_counter(extraction_rules_total, matched, outcome="matched")
        increment_counter(extraction_rules_total, len(self.patterns) - matched - invalid, outcome="unmatched")
        increment_counter(extraction_rules_total, invalid, outcome="invalid")

        return ExtractionResult(
            values=values,
            metadata=ExtractionMetadata(
                total_rules=len(self.rule_set),
                matched_rules=matched,
                processing_time_ms=max(elapsed_ms, 0.0),
                warnings=warnings,
            ),
        )

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts by type and the number of invalid patterns
        """
        counts: dict[str, int] = {}
        for _, rule, _ in self.patterns:
            counts[rule.type] = counts.get(rule.type, 0) + 1
        return {
            "total_rules": len(self.rule_set),
            "rules_by_type": counts,
            "invalid_rules": sum(1 for _, _, pattern in self.patterns if pattern is None),
        }


def apply(text: str, rule_set: RuleSet) -> ExtractionResult:
    """
    Apply a rule set to a text in one call.

    Compiles the rule set, then extracts; see ExtractionEngine.apply.
    """
    return ExtractionEngine(rule_set).apply(text)
