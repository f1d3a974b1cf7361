"""
Extraction result and metadata produced by the field extraction engine.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ExtractionMetadata(BaseModel):
    """
    Statistics about one application of a rule set to a text.

    Attributes:
        total_rules: Number of rules in the rule set
        matched_rules: Number of rules that produced a value
        processing_time_ms: Wall-clock duration of the apply phase
        warnings: Non-blocking issues (invalid patterns, unparseable numbers)
    """

    total_rules: int = Field(..., ge=0)
    matched_rules: int = Field(..., ge=0)
    processing_time_ms: float = Field(..., ge=0.0)
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_matched_within_total(self) -> "ExtractionMetadata":
        """Validate that matched_rules never exceeds total_rules."""
        if self.matched_rules > self.total_rules:
            raise ValueError(
                f"matched_rules ({self.matched_rules}) exceeds total_rules ({self.total_rules})"
            )
        return self


class ExtractionResult(BaseModel):
    """
    Values extracted from a text, keyed by field name.

    Only rules that fired have a key; a missing key means the rule did not
    match, which is distinct from an explicit null.
    """

    values: dict[str, Any] = Field(default_factory=dict)
    metadata: ExtractionMetadata

    class Config:
        json_schema_extra = {
            "example": {
                "values": {"title": "Report", "date": "01/02/2023", "amount": 19.99},
                "metadata": {
                    "total_rules": 3,
                    "matched_rules": 3,
                    "processing_time_ms": 0.12,
                    "warnings": [],
                },
            }
        }
