"""Result schemas for QueryService.

These are the shapes returned to every interface (HTTP API, CLI), so a
filtered listing looks the same wherever it is produced.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from stringbank.schemas import AnalysisRecord


class FilterResult(BaseModel):
    """Result of listing records with structured filters."""
    data: List[AnalysisRecord] = Field(default_factory=list)
    count: int = 0
    filters_applied: Dict[str, Any] = Field(default_factory=dict)


class InterpretedQuery(BaseModel):
    """How a natural-language query was understood."""
    original: str
    parsed_filters: Dict[str, Any] = Field(default_factory=dict)


class NaturalLanguageResult(BaseModel):
    """Result of filtering records with a natural-language query."""
    data: List[AnalysisRecord] = Field(default_factory=list)
    count: int = 0
    interpreted_query: InterpretedQuery
