"""Exceptions for the stringbank store and query pipeline.

Every failure the core can produce has its own class so callers (the HTTP
layer, the CLI) can map it to a distinct outcome without parsing messages.
"""

from typing import Any, Dict, List, Optional


class StringBankError(Exception):
    """Base class for all stringbank errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(StringBankError):
    """Request data is missing or malformed (caller's fault, not retryable)."""

    @classmethod
    def missing_value(cls) -> "InvalidInputError":
        return cls('Missing "value" field in request body')

    @classmethod
    def value_not_string(cls, value: Any) -> "InvalidInputError":
        return cls(f'"value" field must be a string, got {type(value).__name__}')

    @classmethod
    def missing_query(cls) -> "InvalidInputError":
        return cls('Missing "query" parameter for natural language filtering')


class RecordConflictError(StringBankError):
    """The value is already stored. Carries the existing record id."""

    def __init__(self, record_id: str):
        super().__init__("String already exists in the system")
        self.record_id = record_id


class RecordNotFoundError(StringBankError):
    """No record with the given content address exists."""

    def __init__(self, record_id: str):
        super().__init__("String does not exist in the system")
        self.record_id = record_id


class InvalidFilterError(StringBankError):
    """One or more filter values failed validation.

    Always carries the complete list of field-level messages; a filter set
    with any invalid field is never applied.
    """

    def __init__(self, details: List[str], message: str = "Invalid filter values"):
        super().__init__(message)
        self.details = list(details)

    def __str__(self) -> str:
        return f"{self.message}: {'; '.join(self.details)}"


class ConflictingFiltersError(StringBankError):
    """A natural-language query produced no filters under suspicious wording.

    The check behind this is a loose substring heuristic, see
    ``stringbank.query.interpret.looks_conflicting``.
    """

    def __init__(self, original: str, parsed_filters: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Query parsed but resulted in conflicting filters "
            "(e.g., conflicting word counts)"
        )
        self.original = original
        self.parsed_filters = dict(parsed_filters or {})


class UpstreamError(StringBankError):
    """The natural-language delegate failed or could not be reached.

    Raised directly when the service is unreachable after retries; the
    subclasses signal a reachable service that returned unusable content.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error

    @classmethod
    def from_missing_api_key(cls) -> "UpstreamError":
        message = (
            "OpenAI API key not found. Natural-language filtering in 'llm' mode "
            "requires OpenAI API access.\n\n"
            "To fix this issue, either:\n"
            "1. Set the OPENAI_API_KEY environment variable, or\n"
            "2. Switch to offline mode: export STRINGBANK_NL_MODE=deterministic"
        )
        return cls(message)

    @classmethod
    def from_api_error(cls, error: Exception, attempts: int) -> "UpstreamError":
        message = (
            f"OpenAI API error after {attempts} attempt(s): {type(error).__name__}\n\n"
            f"Details: {error}"
        )
        return cls(message, original_error=error)


class UpstreamUnparseableError(UpstreamError):
    """The delegate returned text that is not a JSON object."""

    def __init__(self, raw_text: str, original_error: Optional[Exception] = None):
        super().__init__(
            "Unable to parse natural language query: LLM returned unparsable content",
            original_error=original_error,
        )
        self.raw_text = raw_text


class UpstreamEmptyError(UpstreamError):
    """The delegate returned no usable content."""

    def __init__(self):
        super().__init__("Unable to parse natural language query: LLM returned no content")
