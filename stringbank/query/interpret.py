"""Natural-language adapter - free text → RawFilterMap.

Two modes:
- deterministic: a small fixed table of phrase triggers, no I/O. Used for
  offline runs and tests.
- llm: delegate to a Translator (OpenAI by default) and parse its answer
  strictly as JSON.

After either mode, `check_ambiguity` flags an empty result whose wording
suggests the user asked for something contradictory.
"""

from typing import Any, Dict, List, Optional, Tuple

from stringbank.api_clients.openai import OpenAITranslator
from stringbank.exceptions import ConflictingFiltersError
from stringbank.query.llm_compiler import SYSTEM_PROMPT, Translator, translate_query
from stringbank.utils.config_loader import InterpretMode, Settings
from stringbank.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


# (phrases that must all appear in the lowercased text, resulting filters).
# First matching rule wins.
DETERMINISTIC_RULES: List[Tuple[Tuple[str, ...], Dict[str, Any]]] = [
    (("single word", "palindromic"), {"word_count": 1, "is_palindrome": True}),
    (("two words",), {"word_count": 2}),
]


def interpret_deterministic(query_text: str) -> Dict[str, Any]:
    """Map free text to filters with the fixed phrase table.

    Args:
        query_text: Natural language query

    Returns:
        A new raw filter map; {} when no rule matches
    """
    lowered = query_text.lower()
    for phrases, filters in DETERMINISTIC_RULES:
        if all(phrase in lowered for phrase in phrases):
            return dict(filters)
    return {}


def looks_conflicting(query_text: str, raw_filters: Dict[str, Any]) -> bool:
    """Crude conflict check on an interpreted query.

    True when nothing was extracted but the text contains both "and" and
    "word" anywhere (plain substrings, so "android" and "password" count).
    This approximates "two different word counts were asked for".
    """
    if raw_filters:
        return False
    lowered = query_text.lower()
    return "and" in lowered and "word" in lowered


class NaturalLanguageInterpreter:
    """Turns free text into a raw filter map.

    Attributes:
        mode: InterpretMode.DETERMINISTIC or InterpretMode.LLM
        translator: Delegate used in LLM mode
    """

    def __init__(
        self,
        mode: InterpretMode = InterpretMode.DETERMINISTIC,
        translator: Optional[Translator] = None,
    ):
        if mode == InterpretMode.LLM and translator is None:
            raise ValueError("LLM mode requires a translator")
        self.mode = InterpretMode(mode)
        self.translator = translator

    def interpret(self, query_text: str) -> Dict[str, Any]:
        """Interpret free text without the ambiguity check.

        Raises:
            UpstreamError: In LLM mode, if the translator fails or its
                answer is empty or not a JSON object
        """
        if self.mode == InterpretMode.DETERMINISTIC:
            logger.debug("Deterministic mode, no external call")
            return interpret_deterministic(query_text)
        return translate_query(query_text, self.translator)

    def check_ambiguity(self, query_text: str, raw_filters: Dict[str, Any]) -> None:
        """Raise ConflictingFiltersError if the result looks contradictory."""
        if looks_conflicting(query_text, raw_filters):
            logger.info(
                "Natural language query flagged as conflicting",
                extra={"extra_data": {"query": query_text[:100]}},
            )
            raise ConflictingFiltersError(query_text, raw_filters)

    def interpret_checked(self, query_text: str) -> Dict[str, Any]:
        """Interpret free text, then apply the ambiguity check.

        Returns:
            Raw filter map, ready for compile_filters

        Raises:
            ConflictingFiltersError: If the result is empty under
                suspicious wording
            UpstreamError: As for `interpret`
        """
        raw_filters = self.interpret(query_text)
        self.check_ambiguity(query_text, raw_filters)
        return raw_filters


def build_interpreter(settings: Settings) -> NaturalLanguageInterpreter:
    """Create the interpreter described by the settings.

    In LLM mode this builds an OpenAITranslator, which needs an API key.

    Raises:
        UpstreamError: If LLM mode is selected and no API key is available
    """
    if settings.nl_mode == InterpretMode.DETERMINISTIC:
        return NaturalLanguageInterpreter(InterpretMode.DETERMINISTIC)

    translator = OpenAITranslator(
        instructions=SYSTEM_PROMPT,
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        max_retries=settings.max_retries,
        backoff_base=settings.backoff_base,
    )
    return NaturalLanguageInterpreter(InterpretMode.LLM, translator)
