"""
Process-wide settings, read once per run from the environment.

A ``.env`` file in the working directory is loaded first (existing
environment variables win).
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class PipelineSettings(BaseModel):
    """
    Runtime settings for the pipeline.

    Attributes:
        ollama_endpoint: Base URL of the Ollama API
        ollama_model: Model used for summarization
        ollama_timeout: HTTP timeout in seconds for one summarization call
        output_dir: Directory summaries are written to
        rules_path: Optional YAML/JSON rule set file
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_format: "json" or "text"
        metrics_port: Port for the Prometheus endpoint (disabled when None)
    """

    ollama_endpoint: str = "http://localhost:11434"
    ollama_model: str = "llama3"
    ollama_timeout: float = Field(120.0, gt=0)
    output_dir: str = "/tmp"
    rules_path: str | None = None
    log_level: str = "INFO"
    log_format: str = "json"
    metrics_port: int | None = None

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "PipelineSettings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional path to a dotenv file (defaults to ./.env)

        Returns:
            PipelineSettings instance
        """
        load_dotenv(env_file, override=False)

        values = {
            "ollama_endpoint": os.getenv("OLLAMA_ENDPOINT"),
            "ollama_model": os.getenv("OLLAMA_MODEL"),
            "ollama_timeout": os.getenv("OLLAMA_TIMEOUT"),
            "output_dir": os.getenv("PDF_OUTPUT_DIR"),
            "rules_path": os.getenv("EXTRACTION_RULES_PATH"),
            "log_level": os.getenv("LOG_LEVEL"),
            "log_format": os.getenv("LOG_FORMAT"),
            "metrics_port": os.getenv("METRICS_PORT"),
        }
        # Unset variables fall back to the model defaults
        return cls(**{key: value for key, value in values.items() if value not in (None, "")})
