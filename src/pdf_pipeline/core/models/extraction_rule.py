"""
ExtractionRule model describing how one field is pulled out of raw text.
"""

import re
from typing import Literal

from pydantic import BaseModel, Field

RuleType = Literal["string", "number", "boolean", "date"]
RegexFlag = Literal["IGNORECASE", "MULTILINE", "DOTALL"]


class ExtractionRule(BaseModel):
    """
    A regex-based rule for a single output field.

    Attributes:
        pattern: Regular expression; the first capturing group is the value
        type: How the captured text is converted ("string", "number", "boolean", "date")
        flags: Optional regex flags applied when compiling the pattern
    """

    pattern: str = Field(..., min_length=1)
    type: RuleType = "string"
    flags: list[RegexFlag] = Field(default_factory=list)

    @property
    def regex_flags(self) -> int:
        """Combined ``re`` flag value for this rule."""
        value = 0
        for flag in self.flags:
            value |= getattr(re, flag)
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "pattern": r"Amount:\s*\$(\d+\.\d{2})",
                "type": "number",
                "flags": [],
            }
        }
