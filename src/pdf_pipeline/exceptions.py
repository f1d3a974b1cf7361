"""
Error taxonomy for the pipeline.

Every stage raises one of these; the record runner turns them into
error outcomes or aborts the batch.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(PipelineError):
    """Raised when a rule set or stage parameter is malformed."""


class MissingInputError(PipelineError):
    """Raised when a record lacks a field the stage requires."""


class RulePatternError(PipelineError):
    """
    Raised when an extraction rule's pattern cannot be compiled.

    Only ever raised and handled inside the extraction engine.
    """

    def __init__(self, field_name: str, pattern: str, message: str):
        self.field_name = field_name
        self.pattern = pattern
        self.message = message
        super().__init__(f"[{field_name}] invalid pattern '{pattern}': {message}")


class ExternalCallError(PipelineError):
    """Raised when an external tool or API call fails."""


class PipelineIOError(PipelineError, OSError):
    """Raised when an output directory or file cannot be written."""
