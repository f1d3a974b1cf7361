"""
StageOutcome model: the tagged success/error result of one transform.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from .record import Record


class StageOutcome(BaseModel):
    """
    Result of applying a stage transform to one record.

    Either a success carrying fields (and optionally attachments), or an
    error carrying only a message. The two are never mixed.

    Attributes:
        success: Which variant this is
        fields: Output fields (always empty for the error variant)
        error: Error message (only for the error variant)
        binary: Attachments; None means "not set by the transform", in which
            case the runner carries the input record's attachments over
    """

    success: bool
    fields: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    binary: dict[str, bytes] | None = None

    @model_validator(mode="after")
    def check_variant(self) -> "StageOutcome":
        """Validate that an outcome is either a clean success or a clean error."""
        if self.success:
            if self.error is not None:
                raise ValueError("success=True but error is set")
        else:
            if not self.error:
                raise ValueError("success=False requires an error message")
            if self.fields or self.binary:
                raise ValueError("error outcome must not carry fields or attachments")
        return self

    @classmethod
    def ok(cls, fields: dict[str, Any], binary: dict[str, bytes] | None = None) -> "StageOutcome":
        """Build a success outcome."""
        return cls(success=True, fields=fields, binary=binary)

    @classmethod
    def failed(cls, error: str) -> "StageOutcome":
        """Build an error outcome."""
        return cls(success=False, error=error)

    def to_record(self) -> Record:
        """
        Turn a success outcome into the input record of the next stage.

        Raises:
            ValueError: If called on an error outcome
        """
        if not self.success:
            raise ValueError(f"Cannot build a record from a failed outcome: {self.error}")
        return Record(fields=self.fields, binary=self.binary or {})

    def to_dict(self) -> dict[str, Any]:
        """JSON view of the outcome: fields plus success flag, or error plus success flag."""
        if self.success:
            return {**self.fields, "success": True}
        return {"error": self.error, "success": False}
