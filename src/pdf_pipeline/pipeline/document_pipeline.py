"""
Document pipeline orchestration.

Coordinates the flow: read PDF → extract fields → summarize → write file
"""

from collections.abc import Iterable, Sequence
from pathlib import Path

from pdf_pipeline.core.models import Record, StageOutcome
from pdf_pipeline.core.rules import RuleSetLoader, default_rule_set
from pdf_pipeline.observability.logger import get_logger
from pdf_pipeline.settings import PipelineSettings
from pdf_pipeline.stages import (
    BaseStage,
    FieldExtractionStage,
    FileOutputSink,
    OllamaSummarizer,
    PdfTextSource,
)

from .runner import RecordPipelineRunner

logger = get_logger(__name__)


class DocumentPipeline:
    """
    Runs a batch of PDF paths through up to four stages.

    Flow:
    1. Read text (and metadata) from each PDF
    2. Apply extraction rules to the text
    3. Summarize the extracted fields with Ollama
    4. Write the summary to a file

    Any stage may be None and is then skipped. Records that fail a stage
    (with continue_on_fail) keep their error outcome at their index and are
    not handed to later stages.
    """

    def __init__(
        self,
        text_source: PdfTextSource | None = None,
        extraction: FieldExtractionStage | None = None,
        summarizer: OllamaSummarizer | None = None,
        sink: FileOutputSink | None = None,
        continue_on_fail: bool = False,
    ):
        """
        Args:
            text_source: PDF reading stage
            extraction: Field extraction stage
            summarizer: Summarization stage
            sink: File output stage
            continue_on_fail: Isolate per-record failures instead of aborting the batch
        """
        self.text_source = text_source
        self.extraction = extraction
        self.summarizer = summarizer
        self.sink = sink
        self.continue_on_fail = continue_on_fail

    @classmethod
    def from_settings(
        cls,
        settings: PipelineSettings,
        rules_path: str | None = None,
        continue_on_fail: bool = False,
        **stage_options,
    ) -> "DocumentPipeline":
        """
        Build a full pipeline from settings.

        Args:
            settings: Process-wide settings
            rules_path: Rule set file (overrides settings.rules_path)
            continue_on_fail: Isolate per-record failures
            **stage_options: page_range, api_method, file_format, file_name,
                include_raw_text, include_timestamp, include_metadata, append

        Returns:
            DocumentPipeline with all four stages
        """
        path = rules_path or settings.rules_path
        if path:
            rule_set = RuleSetLoader(path).load()
        else:
            logger.info("No rule set configured, using the default title/date/amount rules")
            rule_set = default_rule_set()

        file_format = stage_options.get("file_format", "txt")
        return cls(
            text_source=PdfTextSource(page_range=stage_options.get("page_range", "all")),
            extraction=FieldExtractionStage(
                rule_set,
                include_raw_text=stage_options.get("include_raw_text", False),
            ),
            summarizer=OllamaSummarizer(
                endpoint=settings.ollama_endpoint,
                model=settings.ollama_model,
                api_method=stage_options.get("api_method", "generate"),
                timeout=settings.ollama_timeout,
            ),
            sink=FileOutputSink(
                output_dir=settings.output_dir,
                file_name=stage_options.get("file_name", f"summary_{{{{timestamp}}}}.{file_format}"),
                file_format=file_format,
                append=stage_options.get("append", False),
                include_timestamp=stage_options.get("include_timestamp", False),
                include_metadata=stage_options.get("include_metadata", False),
            ),
            continue_on_fail=continue_on_fail,
        )

    @staticmethod
    def build_batch(paths: Iterable[str | Path]) -> list[Record]:
        """Create the first batch: one record per file path."""
        return [Record(fields={"file_path": str(path)}) for path in paths]

    def process(self, paths: Iterable[str | Path]) -> list[StageOutcome]:
        """
        Process PDF files through every configured stage.

        Args:
            paths: PDF file paths

        Returns:
            One outcome per path, in input order

        Raises:
            Exception: The first record failure, when continue_on_fail is off
        """
        stages = [self.text_source, self.extraction, self.summarizer, self.sink]
        return self.run_stages(self.build_batch(paths), stages)

    def extract(self, paths: Iterable[str | Path]) -> list[StageOutcome]:
        """Run only the PDF reading and field extraction stages."""
        return self.run_stages(self.build_batch(paths), [self.text_source, self.extraction])

    def run_stages(self, batch: Sequence[Record], stages: Sequence[BaseStage | None]) -> list[StageOutcome]:
        """
        Run a batch through a sequence of stages.

        Returns:
            Outcomes of the last stage each record reached
        """
        outcomes = [StageOutcome.ok(record.fields, binary=record.binary) for record in batch]

        for stage in stages:
            if stage is None:
                continue
            outcomes = self._run_stage(stage, outcomes)

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(
            f"Pipeline complete: {succeeded} succeeded, {len(outcomes) - succeeded} failed",
            extra={"total_records": len(outcomes), "succeeded": succeeded},
        )
        return outcomes

    def _run_stage(self, stage: BaseStage, outcomes: list[StageOutcome]) -> list[StageOutcome]:
        """Run one stage over the records that are still healthy, keeping index alignment."""
        live = [index for index, outcome in enumerate(outcomes) if outcome.success]
        batch = [outcomes[index].to_record() for index in live]

        runner = RecordPipelineRunner(stage.stage_name, self.continue_on_fail)
        stage_outcomes = runner.run(batch, stage)

        merged = list(outcomes)
        for index, outcome in zip(live, stage_outcomes):
            merged[index] = outcome
        return merged
