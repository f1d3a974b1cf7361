"""
FieldExtractionStage - pulls typed fields out of a record's text.
"""

from pdf_pipeline.core.models import Record, StageOutcome
from pdf_pipeline.core.rules import ExtractionEngine, RuleSet, default_rule_set
from pdf_pipeline.exceptions import MissingInputError

from .base import BaseStage


class FieldExtractionStage(BaseStage):
    """
    Applies an extraction rule set to ``fields["text"]``.

    Output fields are the extracted values, plus ``raw_text`` and
    ``extraction_metadata`` when enabled. Attachments are left untouched.
    """

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        include_raw_text: bool = False,
        include_extraction_metadata: bool = True,
        text_field: str = "text",
    ):
        """
        Args:
            rule_set: Rules to apply (defaults to the title/date/amount set)
            include_raw_text: Copy the input text to ``raw_text``
            include_extraction_metadata: Add ``extraction_metadata`` statistics
            text_field: Input field holding the text
        """
        self.engine = ExtractionEngine(rule_set if rule_set is not None else default_rule_set())
        self.include_raw_text = include_raw_text
        self.include_extraction_metadata = include_extraction_metadata
        self.text_field = text_field

    @property
    def stage_name(self) -> str:
        return "extract_fields"

    def process(self, record: Record) -> StageOutcome:
        text = record.fields.get(self.text_field)
        if not text or not isinstance(text, str):
            raise MissingInputError("No text content found in input")

        result = self.engine.apply(text)

        fields = dict(result.values)
        if self.include_raw_text:
            fields["raw_text"] = text
        if self.include_extraction_metadata:
            fields["extraction_metadata"] = result.metadata.model_dump()

        return StageOutcome.ok(fields)
