"""
Record model representing one unit of pipeline data (ephemeral).
"""

from typing import Any

from pydantic import BaseModel, Field


class Record(BaseModel):
    """
    One element of a batch flowing through a pipeline stage.

    Note: Records live for a single stage invocation. A stage never mutates
    its input record; the runner replaces it with the stage outcome.

    Attributes:
        fields: Structured data (strings, numbers, booleans, null, nested mappings)
        binary: Opaque attachments keyed by name, carried verbatim between stages
    """

    fields: dict[str, Any] = Field(default_factory=dict)
    binary: dict[str, bytes] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "fields": {
                    "file_path": "/data/invoices/march.pdf",
                    "text": "Title: Report\nDate: 01/02/2023\nAmount: $19.99",
                },
                "binary": {},
            }
        }
