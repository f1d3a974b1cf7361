"""
OllamaSummarizer - summarizes record content through the Ollama HTTP API.
"""

import json
from typing import Any

import httpx

from pdf_pipeline.core.models import Record, StageOutcome
from pdf_pipeline.core.rules.conversion import json_safe
from pdf_pipeline.exceptions import ConfigurationError, ExternalCallError, MissingInputError
from pdf_pipeline.observability.logger import get_logger

from .base import BaseStage

logger = get_logger(__name__)

DEFAULT_PROMPT_TEMPLATE = (
    "Please summarize the following document content in a concise manner:\n\n{{data}}"
)
DATA_PLACEHOLDER = "{{data}}"

API_METHODS = ("generate", "chat")
DATA_SOURCES = ("fields", "text")

# Fields describing earlier stages rather than the document
EXCLUDED_FIELDS = ("extraction_metadata", "raw_text", "success")

MODEL_INFO_KEYS = (
    "model",
    "total_duration",
    "load_duration",
    "prompt_eval_count",
    "prompt_eval_duration",
    "eval_count",
    "eval_duration",
)


def render_template(template: str, placeholder: str, value: str) -> str:
    """Replace every occurrence of ``placeholder`` in ``template``."""
    return template.replace(placeholder, value)


class OllamaSummarizer(BaseStage):
    """
    Sends one prompt per record to Ollama and emits the summary.

    Output fields: summary, model_info (when enabled) and input_data (when
    enabled). Attachments are left untouched.
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:11434",
        model: str = "llama3",
        api_method: str = "generate",
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
        temperature: float = 0.7,
        max_tokens: int = 500,
        include_input_data: bool = False,
        include_model_info: bool = True,
        data_source: str = "fields",
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ):
        """
        Args:
            endpoint: Base URL of the Ollama API
            model: Model name
            api_method: "generate" or "chat"
            prompt_template: Prompt with ``{{data}}`` placeholders
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens in the response
            include_input_data: Echo the serialized input as ``input_data``
            include_model_info: Add usage and timing fields as ``model_info``
            data_source: "fields" (JSON of the record fields) or "text" (``fields["text"]``)
            timeout: HTTP timeout in seconds
            client: Optional preconfigured httpx client

        Raises:
            ConfigurationError: If a parameter is out of range
        """
        if api_method not in API_METHODS:
            raise ConfigurationError(f"Unsupported API method '{api_method}'. Use one of: {', '.join(API_METHODS)}")
        if data_source not in DATA_SOURCES:
            raise ConfigurationError(f"Unsupported data source '{data_source}'. Use one of: {', '.join(DATA_SOURCES)}")
        if not 0.0 <= temperature <= 1.0:
            raise ConfigurationError(f"Temperature must be between 0.0 and 1.0, got {temperature}")
        if max_tokens < 1:
            raise ConfigurationError(f"max_tokens must be at least 1, got {max_tokens}")
        if not endpoint:
            raise ConfigurationError("Ollama endpoint is required")

        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.api_method = api_method
        self.prompt_template = prompt_template
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.include_input_data = include_input_data
        self.include_model_info = include_model_info
        self.data_source = data_source
        self.timeout = timeout
        self._client = client

    @property
    def stage_name(self) -> str:
        return "summarize"

    @property
    def api_url(self) -> str:
        return f"{self.endpoint}/api/{self.api_method}"

    def process(self, record: Record) -> StageOutcome:
        data = self.serialize_input(record)
        prompt = render_template(self.prompt_template, DATA_PLACEHOLDER, data)

        payload = self._post(self.build_request(prompt))
        summary = self._extract_summary(payload)

        fields: dict[str, Any] = {"summary": summary}
        if self.include_model_info:
            fields["model_info"] = {key: payload.get(key) for key in MODEL_INFO_KEYS}
        if self.include_input_data:
            fields["input_data"] = data

        return StageOutcome.ok(fields)

    def serialize_input(self, record: Record) -> str:
        """Render the part of the record that gets summarized."""
        if self.data_source == "text":
            text = record.fields.get("text")
            if not text:
                raise MissingInputError("No text content found in input")
            return str(text)

        data = {key: value for key, value in record.fields.items() if key not in EXCLUDED_FIELDS}
        return json.dumps(json_safe(data), indent=2, default=str)

    def build_request(self, prompt: str) -> dict[str, Any]:
        """Build the JSON body for the configured API method."""
        body: dict[str, Any] = {"model": self.model}
        if self.api_method == "generate":
            body["prompt"] = prompt
        else:
            body["messages"] = [{"role": "user", "content": prompt}]
        body.update(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=False,
        )
        return body

    def _create_http_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout)

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST the request and return the decoded JSON response."""
        try:
            if self._client is not None:
                response = self._client.post(self.api_url, json=body)
                response.raise_for_status()
                payload = response.json()
            else:
                with self._create_http_client() as client:
                    response = client.post(self.api_url, json=body)
                    response.raise_for_status()
                    payload = response.json()
        except httpx.TimeoutException as e:
            raise ExternalCallError(f"Error calling Ollama API: request to {self.api_url} timed out") from e
        except httpx.HTTPStatusError as e:
            raise ExternalCallError(
                f"Error calling Ollama API: HTTP {e.response.status_code} from {self.api_url}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalCallError(f"Error calling Ollama API: {e}") from e
        except ValueError as e:
            raise ExternalCallError(f"Error calling Ollama API: invalid JSON response: {e}") from e

        if not isinstance(payload, dict):
            raise ExternalCallError("Error calling Ollama API: response is not a JSON object")

        logger.debug(
            "Ollama call complete",
            extra={"model": payload.get("model"), "eval_count": payload.get("eval_count")},
        )
        return payload

    def _extract_summary(self, payload: dict[str, Any]) -> str:
        if self.api_method == "generate":
            summary = payload.get("response")
        else:
            message = payload.get("message")
            summary = message.get("content") if isinstance(message, dict) else None

        if summary is None:
            raise ExternalCallError(
                f"Error calling Ollama API: response from /api/{self.api_method} has no summary"
            )
        return summary
