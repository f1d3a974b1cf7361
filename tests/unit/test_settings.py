"""
Unit tests for PipelineSettings.
"""

import pytest
from pydantic import ValidationError

from pdf_pipeline.settings import PipelineSettings


@pytest.mark.unit
class TestPipelineSettings:
    """Tests for PipelineSettings"""

    def test_defaults(self, clean_env, tmp_path):
        """Test the defaults when nothing is configured"""
        settings = PipelineSettings.from_env(str(tmp_path / "missing.env"))

        assert settings.ollama_endpoint == "http://localhost:11434"
        assert settings.ollama_model == "llama3"
        assert settings.ollama_timeout == 120.0
        assert settings.output_dir == "/tmp"
        assert settings.rules_path is None
        assert settings.metrics_port is None

    def test_from_env_file(self, clean_env, test_env_file):
        """Test loading config/test.env"""
        settings = PipelineSettings.from_env(test_env_file)

        assert settings.ollama_endpoint == "http://ollama.test:11434"
        assert settings.ollama_timeout == 5.0
        assert settings.log_level == "WARNING"
        assert settings.log_format == "text"

    def test_environment_wins_over_file(self, clean_env, test_env_file):
        """Test that variables already set are not overridden"""
        clean_env.setenv("OLLAMA_MODEL", "mistral")

        settings = PipelineSettings.from_env(test_env_file)

        assert settings.ollama_model == "mistral"

    def test_environment_variables(self, clean_env, tmp_path):
        """Test every supported variable"""
        clean_env.setenv("PDF_OUTPUT_DIR", str(tmp_path))
        clean_env.setenv("EXTRACTION_RULES_PATH", "config/extraction_rules.yaml")
        clean_env.setenv("METRICS_PORT", "9100")

        settings = PipelineSettings.from_env(str(tmp_path / "missing.env"))

        assert settings.output_dir == str(tmp_path)
        assert settings.rules_path == "config/extraction_rules.yaml"
        assert settings.metrics_port == 9100

    def test_empty_values_fall_back_to_defaults(self, clean_env, tmp_path):
        """Test that empty variables count as unset"""
        clean_env.setenv("OLLAMA_MODEL", "")

        settings = PipelineSettings.from_env(str(tmp_path / "missing.env"))

        assert settings.ollama_model == "llama3"

    def test_invalid_timeout(self, clean_env, tmp_path):
        """Test that a non-positive timeout is rejected"""
        clean_env.setenv("OLLAMA_TIMEOUT", "0")

        with pytest.raises(ValidationError):
            PipelineSettings.from_env(str(tmp_path / "missing.env"))
