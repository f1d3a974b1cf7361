"""
Batch orchestration: the record runner and the four-stage document pipeline.
"""

from .document_pipeline import DocumentPipeline
from .runner import BatchRunResult, RecordPipelineRunner, run_batch

__all__ = [
    "DocumentPipeline",
    "RecordPipelineRunner",
    "BatchRunResult",
    "run_batch",
]
