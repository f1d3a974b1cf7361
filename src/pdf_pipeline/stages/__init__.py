"""
Stage adapters: PDF text source, field extraction, summarization and file output.
"""

from .base import BaseStage
from .field_extraction import FieldExtractionStage
from .file_output import FileOutputSink
from .summarizer import OllamaSummarizer
from .text_source import PdfTextSource

__all__ = [
    "BaseStage",
    "PdfTextSource",
    "FieldExtractionStage",
    "OllamaSummarizer",
    "FileOutputSink",
]
