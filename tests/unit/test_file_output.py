"""
Unit tests for the file output sink.
"""

import json

import pytest

from pdf_pipeline.core.models import Record
from pdf_pipeline.exceptions import ConfigurationError, MissingInputError, PipelineIOError
from pdf_pipeline.stages import FileOutputSink

FIXED_MILLIS = 1_700_000_000_000


def fixed_clock() -> int:
    return FIXED_MILLIS


def summary_record(**extra) -> Record:
    return Record(fields={"summary": "A short report.", **extra})


@pytest.mark.unit
class TestFileOutputSink:
    """Tests for FileOutputSink"""

    def test_default_file_name(self, tmp_path):
        """Test that the timestamp placeholder is substituted"""
        sink = FileOutputSink(output_dir=tmp_path, clock=fixed_clock)

        outcome = sink.process(summary_record())

        assert outcome.fields["file_name"] == f"summary_{FIXED_MILLIS}.txt"
        assert outcome.fields["file_path"] == str(tmp_path / f"summary_{FIXED_MILLIS}.txt")
        assert outcome.fields["file_format"] == "txt"
        assert outcome.fields["timestamp"] == FIXED_MILLIS
        assert (tmp_path / f"summary_{FIXED_MILLIS}.txt").read_text() == "A short report."

    def test_every_timestamp_placeholder_is_replaced(self, tmp_path):
        """Test names with more than one placeholder"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="{{timestamp}}/{{timestamp}}.txt", clock=fixed_clock)

        outcome = sink.process(summary_record())

        assert outcome.fields["file_name"] == f"{FIXED_MILLIS}/{FIXED_MILLIS}.txt"
        assert (tmp_path / str(FIXED_MILLIS) / f"{FIXED_MILLIS}.txt").exists()

    def test_extension_is_appended(self, tmp_path):
        """Test that the format extension is added when missing"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="report", file_format="md", clock=fixed_clock)

        assert sink.resolve_file_name(FIXED_MILLIS) == "report.md"

    def test_markdown_with_metadata(self, tmp_path):
        """Test markdown output with the model metadata section"""
        sink = FileOutputSink(
            output_dir=tmp_path,
            file_name="out.md",
            file_format="md",
            include_metadata=True,
            clock=fixed_clock,
        )

        sink.process(summary_record(model_info={"model": "llama3", "total_duration": 5000}))

        content = (tmp_path / "out.md").read_text()
        assert content.startswith("# Summary\n\nA short report.")
        assert "## Metadata" in content
        assert "- Model: llama3" in content
        assert "- Processing Time: 5000" in content

    def test_markdown_timestamp_header(self, tmp_path):
        """Test the dated markdown header"""
        sink = FileOutputSink(
            output_dir=tmp_path,
            file_name="out.md",
            file_format="md",
            include_timestamp=True,
            clock=fixed_clock,
        )

        sink.process(summary_record())

        assert (tmp_path / "out.md").read_text().startswith("# Summary - ")

    def test_txt_metadata_without_model_info(self, tmp_path):
        """Test that metadata is skipped when no model details are present"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="out.txt", include_metadata=True, clock=fixed_clock)

        sink.process(summary_record())

        assert (tmp_path / "out.txt").read_text() == "A short report."

    def test_json_wraps_plain_text(self, tmp_path):
        """Test that non-JSON text is wrapped in a content object"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="out.json", file_format="json", clock=fixed_clock)

        sink.process(summary_record())

        assert json.loads((tmp_path / "out.json").read_text()) == {"content": "A short report."}

    def test_json_keeps_json_text(self, tmp_path):
        """Test that text already holding JSON is written as-is"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="out.json", file_format="json", clock=fixed_clock)

        sink.process(Record(fields={"summary": '{"a": 1}'}))

        assert (tmp_path / "out.json").read_text() == '{"a": 1}'

    def test_json_serializes_structures(self, tmp_path):
        """Test structured content in JSON output"""
        sink = FileOutputSink(
            output_dir=tmp_path,
            file_name="out.json",
            file_format="json",
            content_field="values",
            clock=fixed_clock,
        )

        sink.process(Record(fields={"values": {"title": "Report", "amount": 19.99}}))

        assert json.loads((tmp_path / "out.json").read_text()) == {"title": "Report", "amount": 19.99}

    def test_json_writes_null_for_nan(self, tmp_path):
        """Test that non-finite numbers are written as null"""
        sink = FileOutputSink(
            output_dir=tmp_path,
            file_name="out.json",
            file_format="json",
            content_field="values",
            clock=fixed_clock,
        )

        sink.process(Record(fields={"values": {"total": float("nan")}}))

        content = (tmp_path / "out.json").read_text()
        assert "NaN" not in content
        assert json.loads(content) == {"total": None}

    def test_append(self, tmp_path):
        """Test that append mode keeps earlier content"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="log.txt", append=True, clock=fixed_clock)

        sink.process(Record(fields={"summary": "first\n"}))
        sink.process(Record(fields={"summary": "second\n"}))

        assert (tmp_path / "log.txt").read_text() == "first\nsecond\n"

    def test_overwrite(self, tmp_path):
        """Test that the default mode replaces the file"""
        sink = FileOutputSink(output_dir=tmp_path, file_name="log.txt", clock=fixed_clock)

        sink.process(Record(fields={"summary": "first"}))
        sink.process(Record(fields={"summary": "second"}))

        assert (tmp_path / "log.txt").read_text() == "second"

    def test_creates_output_directory(self, tmp_path):
        """Test that missing directories are created"""
        target = tmp_path / "nested" / "out"
        sink = FileOutputSink(output_dir=target, file_name="s.txt", clock=fixed_clock)

        sink.process(summary_record())

        assert (target / "s.txt").exists()

    def test_missing_directory_without_create(self, tmp_path):
        """Test that writing into a missing directory is an I/O error"""
        sink = FileOutputSink(
            output_dir=tmp_path / "missing",
            file_name="s.txt",
            create_directory=False,
            clock=fixed_clock,
        )

        with pytest.raises(PipelineIOError, match="Failed to write to file"):
            sink.process(summary_record())

    def test_directory_creation_failure(self, tmp_path):
        """Test that a file in the way of the directory is an I/O error"""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        sink = FileOutputSink(output_dir=blocker / "out", file_name="s.txt", clock=fixed_clock)

        with pytest.raises(PipelineIOError, match="Failed to create directory"):
            sink.process(summary_record())

    def test_missing_content_field(self, tmp_path):
        """Test that a record without the content field is rejected"""
        sink = FileOutputSink(output_dir=tmp_path, clock=fixed_clock)

        with pytest.raises(MissingInputError) as exc_info:
            sink.process(Record(fields={"title": "Report"}))

        assert str(exc_info.value) == 'Content field "summary" not found in input data'

    def test_unsupported_format(self, tmp_path):
        """Test constructor validation of the format"""
        with pytest.raises(ConfigurationError):
            FileOutputSink(output_dir=tmp_path, file_format="pdf")
