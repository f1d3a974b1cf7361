"""
Pytest configuration and fixtures for pdf-pipeline tests

This module provides shared fixtures for unit and integration tests:
sample documents, a fake poppler-utils toolchain and a mock Ollama server.
"""
import json
import os
import subprocess
from pathlib import Path

import httpx
import pytest


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't touch external tools or services"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that run several stages together"
    )


# =======================
# DOCUMENT FIXTURES
# =======================

SAMPLE_TEXT = "Title: Report\nDate: 01/02/2023\nAmount: $19.99"

PDFINFO_OUTPUT = """Title:          Quarterly Report
Author:         Finance Team
Pages:          2
CreationDate:   Mon Jan  2 10:00:00 2023 UTC
"""


@pytest.fixture
def sample_text() -> str:
    """Text matching the default title/date/amount rules"""
    return SAMPLE_TEXT


@pytest.fixture
def pdf_file(tmp_path) -> Path:
    """
    A file on disk standing in for a PDF

    The fake poppler tools never parse it, so only its existence matters.
    """
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4\n% fake document\n")
    return path


@pytest.fixture
def pdf_files(tmp_path) -> list[Path]:
    """Three fake PDFs"""
    paths = []
    for name in ("first.pdf", "second.pdf", "third.pdf"):
        path = tmp_path / name
        path.write_bytes(b"%PDF-1.4\n")
        paths.append(path)
    return paths


# =======================
# POPPLER FIXTURES
# =======================

class FakePoppler:
    """
    Stand-in for subprocess.run that answers pdftotext and pdfinfo calls

    Attributes:
        texts: Text returned per PDF path (falls back to default_text)
        info_output: Text (or raw bytes) printed by pdfinfo
        failing: Paths for which pdftotext exits non-zero
        info_fails: Whether pdfinfo exits non-zero
        missing_tools: Tools reported as not installed
        calls: Every command received
    """

    def __init__(self):
        self.default_text = SAMPLE_TEXT
        self.texts: dict[str, str | bytes] = {}
        self.failing: set[str] = set()
        self.info_output = PDFINFO_OUTPUT
        self.info_fails = False
        self.missing_tools: set[str] = set()
        self.calls: list[list[str]] = []

    @staticmethod
    def _decode(output, kwargs):
        # Mirror subprocess.run: bytes are decoded with the requested encoding
        if isinstance(output, bytes):
            return output.decode(kwargs.get("encoding") or "utf-8", kwargs.get("errors") or "strict")
        return output

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        tool = command[0]

        if tool in self.missing_tools:
            raise FileNotFoundError(2, "No such file or directory", tool)

        if tool == "pdftotext":
            path = command[-2]
            if path in self.failing:
                raise subprocess.CalledProcessError(
                    1, command, output="", stderr="Syntax Error: Couldn't read xref table"
                )
            return subprocess.CompletedProcess(command, 0, stdout=self._decode(self.texts.get(path, self.default_text), kwargs), stderr="")

        if tool == "pdfinfo":
            if self.info_fails:
                raise subprocess.CalledProcessError(1, command, output="", stderr="May not be a PDF file")
            return subprocess.CompletedProcess(command, 0, stdout=self._decode(self.info_output, kwargs), stderr="")

        raise AssertionError(f"Unexpected command: {command}")


@pytest.fixture
def fake_poppler(monkeypatch) -> FakePoppler:
    """Patch subprocess.run so pdftotext/pdfinfo calls hit FakePoppler"""
    fake = FakePoppler()
    monkeypatch.setattr("pdf_pipeline.stages.text_source.subprocess.run", fake)
    return fake


# =======================
# OLLAMA FIXTURES
# =======================

class FakeOllama:
    """
    Mock Ollama API served through httpx.MockTransport

    Attributes:
        requests: Decoded JSON bodies received, with their URL path
        status_code: Status returned for every request
        summary: Text returned as the summary
    """

    def __init__(self):
        self.requests: list[tuple[str, dict]] = []
        self.status_code = 200
        self.summary = "A short report about $19.99."
        self.raise_error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))

        if self.raise_error is not None:
            raise self.raise_error
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "model 'missing' not found"})

        usage = {
            "model": body["model"],
            "total_duration": 5_000_000,
            "load_duration": 1_000_000,
            "prompt_eval_count": 42,
            "prompt_eval_duration": 2_000_000,
            "eval_count": 12,
            "eval_duration": 2_000_000,
            "done": True,
        }
        if request.url.path.endswith("/api/chat"):
            return httpx.Response(200, json={"message": {"role": "assistant", "content": self.summary}, **usage})
        return httpx.Response(200, json={"response": self.summary, **usage})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_ollama() -> FakeOllama:
    """Mock Ollama server"""
    return FakeOllama()


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture
def test_env_file() -> str:
    """Path to config/test.env"""
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "config", "test.env")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove pipeline environment variables for the duration of a test"""
    for name in (
        "OLLAMA_ENDPOINT",
        "OLLAMA_MODEL",
        "OLLAMA_TIMEOUT",
        "PDF_OUTPUT_DIR",
        "EXTRACTION_RULES_PATH",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "METRICS_PORT",
    ):
        # setenv first so the original state is restored afterwards, even
        # for variables load_dotenv sets during the test
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    return monkeypatch
