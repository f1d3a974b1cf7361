"""
Record pipeline runner.

Applies one stage transform to every record of a batch, in order, with
per-record fault isolation selectable at call time:

- continue_on_fail=True: a failing record becomes an error outcome at its
  index and the run carries on;
- continue_on_fail=False: the first failure aborts the whole batch.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pdf_pipeline.core.models import Record, StageOutcome
from pdf_pipeline.observability.logger import get_logger, log_operation
from pdf_pipeline.observability.metrics import (
    batch_size,
    batches_processed_total,
    errors_total,
    increment_counter,
    observe_histogram,
    records_processed_total,
    stage_duration_seconds,
    track_duration,
)

logger = get_logger(__name__)

Transform = Callable[[Record], StageOutcome | Mapping[str, Any]]


class BatchRunResult(BaseModel):
    """
    Result of running one stage over a batch.

    Either complete (one outcome per input record, same order) or aborted
    (no outcomes, with the failing index and its cause).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcomes: list[StageOutcome] = Field(default_factory=list)
    aborted: bool = False
    failed_index: int | None = None
    cause: Exception | None = None

    def unwrap(self) -> list[StageOutcome]:
        """
        Return the outcomes of a complete run.

        Raises:
            Exception: The original failure of an aborted run
        """
        if self.aborted:
            raise self.cause
        return self.outcomes


def _to_outcome(result: StageOutcome | Mapping[str, Any], record: Record) -> StageOutcome:
    """Normalize a transform's return value and carry attachments over."""
    if isinstance(result, StageOutcome):
        outcome = result
    elif isinstance(result, Mapping):
        outcome = StageOutcome.ok(dict(result))
    else:
        raise TypeError(f"Transform must return a StageOutcome or a mapping, got {type(result).__name__}")

    if outcome.success and outcome.binary is None:
        outcome = outcome.model_copy(update={"binary": dict(record.binary)})
    return outcome


def run_batch(
    batch: Sequence[Record],
    transform: Transform,
    continue_on_fail: bool = False,
    stage_name: str = "stage",
) -> BatchRunResult:
    """
    Apply a transform to each record of a batch, sequentially and in order.

    Args:
        batch: Input records
        transform: Function mapping one record to a StageOutcome (or a mapping of fields)
        continue_on_fail: Isolate per-record failures instead of aborting
        stage_name: Label used in logs and metrics

    Returns:
        BatchRunResult; ``outcomes[i]`` corresponds to ``batch[i]`` when the run completes
    """
    outcomes: list[StageOutcome] = []

    for index, record in enumerate(batch):
        try:
            outcome = _to_outcome(transform(record), record)
        except Exception as e:
            increment_counter(errors_total, stage=stage_name, error_type=type(e).__name__)
            increment_counter(records_processed_total, stage=stage_name, status="error")

            if not continue_on_fail:
                logger.error(
                    f"Aborting {stage_name} batch at record {index}: {e}",
                    extra={"stage": stage_name, "record_index": index},
                )
                return BatchRunResult(aborted=True, failed_index=index, cause=e)

            logger.warning(
                f"Record {index} failed in {stage_name}: {e}",
                extra={"stage": stage_name, "record_index": index, "error_type": type(e).__name__},
            )
            outcomes.append(StageOutcome.failed(str(e) or type(e).__name__))
            continue

        increment_counter(
            records_processed_total,
            stage=stage_name,
            status="success" if outcome.success else "error",
        )
        outcomes.append(outcome)

    return BatchRunResult(outcomes=outcomes)


class RecordPipelineRunner:
    """
    Runs stage transforms over batches with a fixed failure policy.

    Usage:
        runner = RecordPipelineRunner("extract", continue_on_fail=True)
        outcomes = runner.run(records, stage)
    """

    def __init__(self, stage_name: str = "stage", continue_on_fail: bool = False):
        self.stage_name = stage_name
        self.continue_on_fail = continue_on_fail

    def run_result(self, batch: Sequence[Record], transform: Transform) -> BatchRunResult:
        """Run the transform over the batch and return the complete-or-aborted result."""
        observe_histogram(batch_size, len(batch), stage=self.stage_name)

        with log_operation(
            f"Running {self.stage_name}",
            logger=logger,
            stage=self.stage_name,
            records=len(batch),
        ), track_duration(stage_duration_seconds, stage=self.stage_name):
            result = run_batch(batch, transform, self.continue_on_fail, self.stage_name)

        increment_counter(
            batches_processed_total,
            stage=self.stage_name,
            status="aborted" if result.aborted else "success",
        )
        return result

    def run(self, batch: Sequence[Record], transform: Transform) -> list[StageOutcome]:
        """
        Run the transform over the batch.

        Returns:
            One outcome per input record, in input order

        Raises:
            Exception: The first record failure, when continue_on_fail is off
        """
        return self.run_result(batch, transform).unwrap()
