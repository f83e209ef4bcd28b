"""Query module - filter compilation, execution and natural-language input.

- compile_filters: RawFilterMap -> TypedFilterSet (validation and coercion)
- apply_filters: TypedFilterSet applied to a record sequence
- NaturalLanguageInterpreter: free text -> RawFilterMap
- QueryService: unified entry point used by the API and the CLI

Usage:
    from stringbank.query import QueryService

    service = QueryService(store)
    result = service.list_records({"word_count": "1"})
"""

from stringbank.query.compile import compile_filters
from stringbank.query.execute import apply_filters
from stringbank.query.interpret import (
    NaturalLanguageInterpreter,
    build_interpreter,
    interpret_deterministic,
)
from stringbank.query.models import FilterResult, InterpretedQuery, NaturalLanguageResult
from stringbank.query.service import QueryService

__all__ = [
    # Unified service (preferred)
    "QueryService",
    "FilterResult",
    "InterpretedQuery",
    "NaturalLanguageResult",
    # Building blocks
    "compile_filters",
    "apply_filters",
    "NaturalLanguageInterpreter",
    "build_interpreter",
    "interpret_deterministic",
]
