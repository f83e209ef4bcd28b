"""String analyzer - value → StringProperties.

Pure and total: any string, including the empty string, can be analyzed.
The same `content_address` is used for insert and delete-by-value so both
paths always agree on a value's id.
"""

import hashlib
import re
from typing import Dict

from stringbank.schemas import StringProperties

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def content_address(value: str) -> str:
    """SHA-256 hex digest of the value's UTF-8 bytes.

    Args:
        value: Raw string, not normalized

    Returns:
        64-character lowercase hex digest
    """
    # surrogatepass keeps lone surrogates (valid in JSON) hashable
    return hashlib.sha256(value.encode("utf-8", "surrogatepass")).hexdigest()


def normalize(value: str) -> str:
    """Lowercase and drop everything that is not an ASCII letter or digit."""
    return _NON_ALNUM.sub("", value.lower())


def character_frequencies(normalized: str) -> Dict[str, int]:
    frequencies: Dict[str, int] = {}
    for char in normalized:
        frequencies[char] = frequencies.get(char, 0) + 1
    return frequencies


def analyze(value: str) -> StringProperties:
    """Derive the properties of a string.

    Args:
        value: Raw string

    Returns:
        StringProperties for the value. ``length`` and ``word_count`` are
        computed on the raw value; palindrome and character statistics on
        the normalized form.
    """
    normalized = normalize(value)
    frequencies = character_frequencies(normalized)

    return StringProperties(
        length=len(value),
        is_palindrome=normalized == normalized[::-1],
        unique_characters=len(frequencies),
        word_count=len(value.split()),
        sha256_hash=content_address(value),
        character_frequency_map=frequencies,
    )
