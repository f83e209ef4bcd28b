"""Typed filter models.

`TypedFilterSet` is the validated output of the filter compiler. Raw filter
maps (query strings, LLM output) never reach the query engine directly.
All filters use AND semantics.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilterName(str, Enum):
    """Recognized filter names, in the order the query engine applies them."""
    IS_PALINDROME = "is_palindrome"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    WORD_COUNT = "word_count"
    CONTAINS_CHARACTER = "contains_character"


class TypedFilterSet(BaseModel):
    """A validated, type-correct set of filters.

    Unset fields (None) are not applied. An empty set means "no filtering".
    """
    model_config = ConfigDict(extra='forbid', frozen=True)

    is_palindrome: Optional[bool] = None
    min_length: Optional[int] = Field(None, ge=0)
    max_length: Optional[int] = Field(None, ge=0)
    word_count: Optional[int] = Field(None, ge=1)
    contains_character: Optional[str] = Field(None, min_length=1, max_length=1)

    def applied(self) -> Dict[str, Any]:
        """Filters that are actually set, keyed by filter name."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.applied()
