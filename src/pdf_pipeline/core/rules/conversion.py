"""
Conversion of captured text into typed field values.

Pure functions; the engine calls ``convert_value`` once per matched rule.
"""

import math
import re
from typing import Any

from pdf_pipeline.exceptions import ConfigurationError

# Leading numeric prefix, as accepted by JavaScript's parseFloat
_FLOAT_PREFIX = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

TRUE_VALUES = ("true", "1")


def parse_number(text: str) -> float:
    """
    Parse the longest leading numeric prefix of ``text`` as a float.

    Returns NaN when the text does not start with a number.

    Examples:
        >>> parse_number("42.50")
        42.5
        >>> parse_number("12 USD")
        12.0
    """
    match = _FLOAT_PREFIX.match(text.lstrip())
    if not match:
        return math.nan
    return float(match.group(0))


def parse_boolean(text: str) -> bool:
    """True iff the text is "true" (any case) or "1"."""
    return text.lower() in TRUE_VALUES


def convert_value(text: str, rule_type: str) -> Any:
    """
    Convert a trimmed captured string according to a rule type.

    Args:
        text: Captured text, already stripped of surrounding whitespace
        rule_type: One of "string", "number", "boolean", "date"

    Returns:
        float for "number", bool for "boolean", the text itself otherwise

    Raises:
        ConfigurationError: If the rule type is unknown
    """
    if rule_type == "number":
        return parse_number(text)
    if rule_type == "boolean":
        return parse_boolean(text)
    if rule_type in ("string", "date"):
        # Dates are kept as captured; parsing is left to consumers
        return text
    raise ConfigurationError(f"Unknown rule type: {rule_type}")


def describe_number_issue(text: str, value: float) -> str | None:
    """
    Explain why a "number" conversion is suspect, or None if it is clean.

    Flags NaN results and captures with trailing characters that were ignored.
    """
    if isinstance(value, float) and math.isnan(value):
        return f"could not parse '{text}' as a number"
    match = _FLOAT_PREFIX.match(text.lstrip())
    if match and match.group(0) != text.strip():
        return f"ignored trailing characters after number in '{text}'"
    return None


def json_safe(value: Any) -> Any:
    """
    Copy of ``value`` with NaN and infinities replaced by None.

    Field values keep NaN in memory; JSON has no token for it, so anything
    written out as JSON goes through here first.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value
