"""
Base stage interface for all pipeline stage adapters.

A stage is a transform the record runner applies to one record at a time.
"""

from abc import ABC, abstractmethod

from pdf_pipeline.core.models import Record, StageOutcome


class BaseStage(ABC):
    """
    Abstract base class for pipeline stages.

    Subclasses implement ``process``; instances are callables suitable as
    runner transforms. A stage never retries and never mutates its input.
    """

    @property
    @abstractmethod
    def stage_name(self) -> str:
        """Return the stage identifier used in logs and metrics."""
        pass

    @abstractmethod
    def process(self, record: Record) -> StageOutcome:
        """
        Transform one record.

        Args:
            record: Input record

        Returns:
            Success outcome with the stage's output fields

        Raises:
            PipelineError: If the record cannot be processed
        """
        pass

    def __call__(self, record: Record) -> StageOutcome:
        return self.process(record)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(stage={self.stage_name})"
