"""
Core data models for the PDF pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .extraction_result import ExtractionMetadata, ExtractionResult
from .extraction_rule import ExtractionRule, RuleType
from .record import Record
from .stage_outcome import StageOutcome

__all__ = [
    "Record",
    "ExtractionRule",
    "RuleType",
    "ExtractionMetadata",
    "ExtractionResult",
    "StageOutcome",
]
