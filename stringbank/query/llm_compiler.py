"""LLM-based filter translation - natural language → RawFilterMap.

The external service is modelled as a single capability, `Translator`,
which receives the free text and the filter JSON schema and returns raw
text. Retries and backoff live inside the translator implementation
(``stringbank.api_clients.openai.translator``); this module only builds the
request payload and parses the answer strictly.
"""

import json
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from stringbank.exceptions import UpstreamEmptyError, UpstreamUnparseableError
from stringbank.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


# Structural schema sent with every translation request
FILTER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "is_palindrome": {"type": "boolean"},
        "min_length": {"type": "integer"},
        "max_length": {"type": "integer"},
        "word_count": {"type": "integer"},
        "contains_character": {"type": "string"},
    },
    "additionalProperties": False,
}

SYSTEM_PROMPT = """You are a query parser for an API service. Your task is to translate a natural language request for filtering strings into a precise JSON object of API filter parameters.

Available filters and their required types are:
- "is_palindrome": boolean (true or false). Only include if requested.
- "min_length": integer. Only include if requested (e.g., "longer than 10" becomes 11, "at least 5" becomes 5).
- "max_length": integer. Only include if requested (e.g., "shorter than 10" becomes 9, "at most 5" becomes 5).
- "word_count": integer. Only include if an exact number of words is specified (e.g., "single word" becomes 1, "two words" becomes 2).
- "contains_character": single, lowercase character string. Only include if a specific character is requested (e.g., "containing the letter z" becomes "z", "the first vowel" becomes "a").

If the query is ambiguous, omit the filter. If the query asks for conflicting filters (e.g., "strings with 2 words and 5 words"), return an empty JSON object {}.

IMPORTANT: You MUST ONLY return the requested JSON object. DO NOT include any explanatory text, markdown formatting (like triple backticks), or comments outside of the JSON structure.

EXAMPLES:
Query: "all single word palindromic strings"
Output: {"word_count": 1, "is_palindrome": true}

Query: "strings longer than 10 characters"
Output: {"min_length": 11}

Query: "palindromic strings that contain the first vowel"
Output: {"is_palindrome": true, "contains_character": "a"}

Query: "strings containing the letter z"
Output: {"contains_character": "z"}
"""


@runtime_checkable
class Translator(Protocol):
    """Text-to-structured-data capability.

    Implementations return the service's raw text answer (None or "" when
    the service produced nothing) and raise UpstreamError when the service
    cannot be reached.
    """

    def translate(self, text: str, schema: Dict[str, Any]) -> Optional[str]:
        ...


def build_user_prompt(query_text: str) -> str:
    """Build the user message sent alongside SYSTEM_PROMPT.

    Args:
        query_text: Natural language query

    Returns:
        Formatted prompt for the LLM
    """
    return f"Translate this request into filter parameters:\n\n{query_text}"


def parse_translation(raw_text: Optional[str]) -> Dict[str, Any]:
    """Parse a translator answer strictly as a JSON object.

    No default is ever substituted for a bad answer.

    Args:
        raw_text: Text returned by the translator

    Returns:
        The raw filter map (still untyped; see compile_filters)

    Raises:
        UpstreamEmptyError: If the answer is None or blank
        UpstreamUnparseableError: If the answer is not JSON (including JSON
            with numbers too long to convert), or is JSON but not an object
    """
    if raw_text is None or not raw_text.strip():
        logger.error("LLM returned no content")
        raise UpstreamEmptyError()

    try:
        parsed = json.loads(raw_text)
    except ValueError as e:
        # JSONDecodeError, or an integer literal past the int() digit limit
        logger.error(f"Failed to parse LLM JSON (raw text): {raw_text[:500]}")
        raise UpstreamUnparseableError(raw_text, original_error=e) from e

    if not isinstance(parsed, dict):
        logger.error(f"LLM returned JSON that is not an object: {raw_text[:500]}")
        raise UpstreamUnparseableError(raw_text)

    return parsed


def translate_query(query_text: str, translator: Translator) -> Dict[str, Any]:
    """Translate free text into a raw filter map through the translator.

    Args:
        query_text: Natural language query
        translator: Delegate implementing the Translator protocol

    Returns:
        Raw filter map

    Raises:
        UpstreamError: If the delegate is unreachable
        UpstreamEmptyError / UpstreamUnparseableError: If its answer is unusable
    """
    raw_text = translator.translate(build_user_prompt(query_text), FILTER_SCHEMA)
    raw_filters = parse_translation(raw_text)
    logger.info(
        "Translated natural language query",
        extra={"extra_data": {"query": query_text[:100], "filters": len(raw_filters)}},
    )
    return raw_filters
