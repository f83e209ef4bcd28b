"""Filter compiler - RawFilterMap → TypedFilterSet.

Raw filter maps come from two sloppy sources with one coercion policy:
- URL query strings, where every value is a string ("5", "true")
- LLM output, where values may be native JSON types or overlong strings
  ("the letter a" for a character)

Each recognized field is validated independently and every failure is
collected; if any field fails the whole map is rejected with
InvalidFilterError. Unrecognized keys are ignored.
"""

import math
import re
import string
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from stringbank.exceptions import InvalidFilterError
from stringbank.schemas import FilterName, TypedFilterSet
from stringbank.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)

# optional sign, digits, optional all-zero fraction ("5", "-3", "5.0", "5.")
_INTEGER_STRING = re.compile(r"^([+-]?[0-9]+)(?:\.0*)?$")
_ALPHANUMERIC = frozenset(string.ascii_lowercase + string.digits)

# A coercer returns (typed_value, None) on success or (None, error) on failure
CoerceResult = Tuple[Any, Optional[str]]


def parse_integer(raw: Any) -> Optional[int]:
    """Parse an integer from a query-string or JSON value.

    Accepts ints, integral floats (LLMs sometimes emit 5.0) and strings of
    ASCII digits with an optional sign and an optional all-zero fraction
    ("5.0"), so query strings and LLM output follow one policy. Booleans
    are not integers here. Digit strings too long for int() are rejected.

    Returns:
        The integer, or None if the value is not an integer
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if math.isfinite(raw) and raw.is_integer():
            return int(raw)
        return None
    if isinstance(raw, str):
        match = _INTEGER_STRING.match(raw.strip())
        if match:
            try:
                return int(match.group(1))
            except ValueError:
                # beyond sys.get_int_max_str_digits()
                return None
    return None


def coerce_is_palindrome(raw: Any) -> CoerceResult:
    if isinstance(raw, bool):
        return raw, None
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == "true":
            return True, None
        if text == "false":
            return False, None
    return None, f"is_palindrome must be true or false (got {raw!r})"


def _coerce_length(name: str) -> Callable[[Any], CoerceResult]:
    def coerce(raw: Any) -> CoerceResult:
        number = parse_integer(raw)
        if number is None or number < 0:
            return None, f"{name} must be a non-negative integer (got {raw!r})"
        return number, None
    return coerce


def coerce_word_count(raw: Any) -> CoerceResult:
    number = parse_integer(raw)
    if number is None or number < 1:
        return None, f"word_count must be a positive integer (got {raw!r})"
    return number, None


def coerce_contains_character(raw: Any) -> CoerceResult:
    """Coerce a character filter, simplifying overlong input.

    A single character is lowercased and accepted as-is. A longer string is
    reduced to its first non-blank character, lowercased, which is accepted
    only if it is an ASCII letter or digit. This keeps the *first*
    character: "the letter x" becomes "t", not "x".
    """
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        return None, f"contains_character must be a single character string (got {raw!r})"

    text = raw if isinstance(raw, str) else str(raw)

    if len(text) == 1:
        lowered = text.lower()
        # a few characters lowercase to two code points; keep those verbatim
        return (lowered if len(lowered) == 1 else text), None

    if len(text) > 1:
        first = text.lower().strip()[:1]
        if first in _ALPHANUMERIC:
            return first, None
        return None, (
            f"contains_character could not be simplified to a single character (got {raw!r})"
        )

    return None, f"contains_character must be a single character string (got {raw!r})"


COERCERS: Dict[FilterName, Callable[[Any], CoerceResult]] = {
    FilterName.IS_PALINDROME: coerce_is_palindrome,
    FilterName.MIN_LENGTH: _coerce_length("min_length"),
    FilterName.MAX_LENGTH: _coerce_length("max_length"),
    FilterName.WORD_COUNT: coerce_word_count,
    FilterName.CONTAINS_CHARACTER: coerce_contains_character,
}


def compile_filters(raw_filters: Optional[Mapping[str, Any]]) -> TypedFilterSet:
    """Validate and coerce a raw filter map.

    Args:
        raw_filters: Filter name → value of unknown shape. None or an empty
            map compiles to an empty filter set (no filtering).

    Returns:
        TypedFilterSet with every recognized field coerced

    Raises:
        InvalidFilterError: If any recognized field is invalid. ``details``
            lists one message per failing field.
    """
    raw_filters = raw_filters or {}
    parsed: Dict[str, Any] = {}
    errors: List[str] = []

    for name, coerce in COERCERS.items():
        if name.value not in raw_filters:
            continue
        value, error = coerce(raw_filters[name.value])
        if error:
            errors.append(error)
        else:
            parsed[name.value] = value

    ignored = [key for key in raw_filters if key not in {n.value for n in FilterName}]
    if ignored:
        logger.debug(f"Ignoring unrecognized filter keys: {ignored}")

    if errors:
        logger.info(
            "Filter compilation failed",
            extra={"extra_data": {"errors": errors}},
        )
        raise InvalidFilterError(errors)

    return TypedFilterSet(**parsed)
