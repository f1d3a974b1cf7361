"""
PdfTextSource - extracts raw text from PDF files with poppler-utils.

Runs ``pdftotext`` for the text and, optionally, ``pdfinfo`` for document
metadata. Both are external executables and must be on PATH.
"""

import re
import subprocess
from pathlib import Path

from pdf_pipeline.core.models import Record, StageOutcome
from pdf_pipeline.exceptions import ConfigurationError, ExternalCallError, MissingInputError
from pdf_pipeline.observability.logger import get_logger

from .base import BaseStage

logger = get_logger(__name__)

IMPLEMENTED_METHODS = ("poppler_utils",)
RESERVED_METHODS = ("text_only", "with_layout")

_PAGE_RANGE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)\s*)?$")


def parse_page_range(page_range: str | None) -> tuple[int, int] | None:
    """
    Parse a page range such as "all", "3" or "1-5".

    Returns:
        (first, last) pages, or None for the whole document

    Raises:
        ConfigurationError: If the range is malformed
    """
    if not page_range or page_range.strip().lower() == "all":
        return None

    match = _PAGE_RANGE.match(page_range)
    if not match:
        raise ConfigurationError(f"Invalid page range '{page_range}'. Use 'all', 'N' or 'N-M'")

    first = int(match.group(1))
    last = int(match.group(2)) if match.group(2) else first
    if first < 1 or last < first:
        raise ConfigurationError(f"Invalid page range '{page_range}'. Pages start at 1 and N must not exceed M")
    return first, last


def parse_pdfinfo_output(output: str) -> dict[str, str]:
    """Split each ``pdfinfo`` line on its first colon into a flat mapping."""
    metadata: dict[str, str] = {}
    for line in output.splitlines():
        key, separator, value = line.partition(":")
        if separator:
            metadata[key.strip()] = value.strip()
    return metadata


class PdfTextSource(BaseStage):
    """
    Reads the PDF at ``fields["file_path"]`` and emits its text.

    Output fields: file_path, extraction_method, text, metadata (when
    requested) and page_range. With ``attach_file`` the PDF bytes are
    attached under ``binary["data"]``.
    """

    def __init__(
        self,
        extraction_method: str = "poppler_utils",
        include_metadata: bool = True,
        page_range: str = "all",
        attach_file: bool = False,
        path_field: str = "file_path",
        timeout: float | None = 300.0,
    ):
        """
        Args:
            extraction_method: "poppler_utils" (others are reserved)
            include_metadata: Run pdfinfo and add its output as ``metadata``
            page_range: "all", "N" or "N-M"
            attach_file: Attach the PDF bytes to the outcome
            path_field: Input field holding the PDF path
            timeout: Seconds before a tool invocation is abandoned

        Raises:
            ConfigurationError: If the method or page range is not usable
        """
        if extraction_method in RESERVED_METHODS:
            raise ConfigurationError(
                f"Extraction method '{extraction_method}' is not implemented yet. Please use 'poppler_utils'."
            )
        if extraction_method not in IMPLEMENTED_METHODS:
            raise ConfigurationError(f"Unknown extraction method: {extraction_method}")

        self.extraction_method = extraction_method
        self.include_metadata = include_metadata
        self.page_range = page_range
        self.pages = parse_page_range(page_range)
        self.attach_file = attach_file
        self.path_field = path_field
        self.timeout = timeout

    @property
    def stage_name(self) -> str:
        return "read_pdf"

    def process(self, record: Record) -> StageOutcome:
        file_path = record.fields.get(self.path_field)
        if not file_path:
            raise MissingInputError("File path is required")

        path = Path(file_path)
        if not path.is_file():
            raise MissingInputError(f"File not found: {file_path}")

        text = self._extract_text(path)

        fields = {
            "file_path": str(file_path),
            "extraction_method": self.extraction_method,
            "text": text,
        }
        if self.include_metadata:
            fields["metadata"] = self._extract_metadata(path)
        fields["page_range"] = self.page_range

        binary = None
        if self.attach_file:
            binary = {"data": path.read_bytes()}

        return StageOutcome.ok(fields, binary=binary)

    def _build_command(self, path: Path) -> list[str]:
        command = ["pdftotext"]
        if self.pages:
            first, last = self.pages
            command += ["-f", str(first), "-l", str(last)]
        # "-" sends the text to stdout
        command += [str(path), "-"]
        return command

    def _run(self, command: list[str]) -> str:
        try:
            completed = subprocess.run(
                command,
                check=True,
                capture_output=True,
                # poppler prints document strings in whatever encoding the PDF used
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExternalCallError(f"'{command[0]}' is not installed or not on PATH") from e
        except OSError as e:
            raise ExternalCallError(f"Could not run {command[0]}: {e}") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise ExternalCallError(f"{command[0]} failed: {detail}") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalCallError(f"{command[0]} timed out after {e.timeout} seconds") from e
        return completed.stdout

    def _extract_text(self, path: Path) -> str:
        try:
            return self._run(self._build_command(path))
        except ExternalCallError as e:
            raise ExternalCallError(f"Error extracting text from PDF: {e}") from e

    def _extract_metadata(self, path: Path) -> dict[str, str]:
        # Metadata is best effort; the record still succeeds without it
        try:
            return parse_pdfinfo_output(self._run(["pdfinfo", str(path)]))
        except ExternalCallError as e:
            logger.warning(f"Failed to extract metadata from {path}: {e}", extra={"file_path": str(path)})
            return {"error": f"Failed to extract metadata: {e}"}
