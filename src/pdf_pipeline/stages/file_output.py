"""
FileOutputSink - writes one field of each record to a file.
"""

import json
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pdf_pipeline.core.models import Record, StageOutcome
from pdf_pipeline.core.rules.conversion import json_safe
from pdf_pipeline.exceptions import ConfigurationError, MissingInputError, PipelineIOError
from pdf_pipeline.observability.logger import get_logger

from .base import BaseStage
from .summarizer import render_template

logger = get_logger(__name__)

FILE_FORMATS = ("txt", "md", "json")
TIMESTAMP_PLACEHOLDER = "{{timestamp}}"


def _current_millis() -> int:
    return int(time.time() * 1000)


def _display_time(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


class FileOutputSink(BaseStage):
    """
    Formats ``fields[content_field]`` as txt, md or json and writes it.

    Output fields: file_path, file_name, file_format and timestamp (epoch
    milliseconds). Attachments are left untouched.
    """

    def __init__(
        self,
        output_dir: str | Path = "/tmp",
        file_name: str = "summary_{{timestamp}}.txt",
        file_format: str = "txt",
        content_field: str = "summary",
        append: bool = False,
        create_directory: bool = True,
        include_timestamp: bool = False,
        include_metadata: bool = False,
        clock: Callable[[], int] = _current_millis,
    ):
        """
        Args:
            output_dir: Directory the file is written to
            file_name: File name; ``{{timestamp}}`` is replaced with epoch milliseconds
            file_format: "txt", "md" or "json"
            content_field: Input field holding the content
            append: Append to an existing file instead of overwriting it
            create_directory: Create the output directory when missing
            include_timestamp: Add a timestamp to the txt/md header
            include_metadata: Add model details from ``fields["model_info"]``
            clock: Returns the current time in epoch milliseconds

        Raises:
            ConfigurationError: If the format or file name is not usable
        """
        if file_format not in FILE_FORMATS:
            raise ConfigurationError(f"Unsupported file format '{file_format}'. Use one of: {', '.join(FILE_FORMATS)}")
        if not file_name:
            raise ConfigurationError("File name is required")
        if not content_field:
            raise ConfigurationError("Content field is required")

        self.output_dir = Path(output_dir)
        self.file_name = file_name
        self.file_format = file_format
        self.content_field = content_field
        self.append = append
        self.create_directory = create_directory
        self.include_timestamp = include_timestamp
        self.include_metadata = include_metadata
        self.clock = clock

    @property
    def stage_name(self) -> str:
        return "write_file"

    def process(self, record: Record) -> StageOutcome:
        if self.content_field not in record.fields:
            raise MissingInputError(f'Content field "{self.content_field}" not found in input data')
        content = record.fields[self.content_field]

        timestamp = self.clock()
        file_name = self.resolve_file_name(timestamp)
        full_path = self.output_dir / file_name

        if self.create_directory:
            self._ensure_directory(full_path.parent)

        formatted = self.format_content(content, record.fields, timestamp)
        self._write(full_path, formatted)

        logger.info(
            f"Wrote {self.file_format} output to {full_path}",
            extra={"file_path": str(full_path), "append": self.append},
        )

        return StageOutcome.ok({
            "file_path": str(full_path),
            "file_name": file_name,
            "file_format": self.file_format,
            "timestamp": timestamp,
        })

    def resolve_file_name(self, timestamp: int) -> str:
        """Substitute the timestamp and make sure the name ends with the format extension."""
        name = render_template(self.file_name, TIMESTAMP_PLACEHOLDER, str(timestamp))
        if not name.endswith(f".{self.file_format}"):
            name = f"{name}.{self.file_format}"
        return name

    def format_content(self, content: Any, fields: dict[str, Any], timestamp: int) -> str:
        """Render content for the configured file format."""
        if self.file_format == "json":
            return self._format_json(content)

        body = content if isinstance(content, str) else json.dumps(json_safe(content), indent=2, default=str)
        model_info = fields.get("model_info") if self.include_metadata else None

        if self.file_format == "md":
            header = f"# Summary - {_display_time(timestamp)}" if self.include_timestamp else "# Summary"
            formatted = f"{header}\n\n{body}"
            if isinstance(model_info, dict):
                formatted += "\n\n## Metadata\n\n"
                formatted += f"- Model: {model_info.get('model') or 'Unknown'}\n"
                formatted += f"- Processing Time: {model_info.get('total_duration') or 'Unknown'}\n"
            return formatted

        formatted = body
        if self.include_timestamp:
            formatted = f"Summary - {_display_time(timestamp)}\n\n{body}"
        if isinstance(model_info, dict):
            formatted += "\n\nMetadata:\n"
            formatted += f"Model: {model_info.get('model') or 'Unknown'}\n"
            formatted += f"Processing Time: {model_info.get('total_duration') or 'Unknown'}\n"
        return formatted

    @staticmethod
    def _format_json(content: Any) -> str:
        if isinstance(content, (dict, list)):
            return json.dumps(json_safe(content), indent=2, default=str)
        if isinstance(content, str):
            try:
                json.loads(content)
            except ValueError:
                return json.dumps({"content": content}, indent=2)
            return content
        return json.dumps(json_safe(content))

    @staticmethod
    def _ensure_directory(directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PipelineIOError(f"Failed to create directory: {e}") from e

    def _write(self, path: Path, content: str) -> None:
        mode = "a" if self.append else "w"
        try:
            with open(path, mode, encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise PipelineIOError(f"Failed to write to file: {e}") from e
