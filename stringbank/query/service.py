"""Query Service - single entry point for filtered listings.

Usage:
    from stringbank.store import RecordStore
    from stringbank.query import QueryService, NaturalLanguageInterpreter

    store = RecordStore()
    service = QueryService(store, NaturalLanguageInterpreter())

    result = service.list_records({"is_palindrome": "true", "min_length": "3"})
    result = service.filter_by_natural_language("all single word palindromic strings")
"""

import time
from typing import Any, Mapping, Optional

from stringbank.exceptions import InvalidFilterError, InvalidInputError
from stringbank.query.compile import compile_filters
from stringbank.query.execute import apply_filters
from stringbank.query.interpret import NaturalLanguageInterpreter
from stringbank.query.models import FilterResult, InterpretedQuery, NaturalLanguageResult
from stringbank.store import RecordStore
from stringbank.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


class QueryService:
    """Compiles filter requests and runs them against a RecordStore.

    The store and interpreter are injected so each application (or test)
    owns its own instances.
    """

    def __init__(
        self,
        store: RecordStore,
        interpreter: Optional[NaturalLanguageInterpreter] = None,
    ):
        self.store = store
        self.interpreter = interpreter or NaturalLanguageInterpreter()

    def list_records(self, raw_filters: Optional[Mapping[str, Any]] = None) -> FilterResult:
        """List stored records matching structured filters.

        Args:
            raw_filters: Loosely typed filter map (e.g. query parameters)

        Returns:
            FilterResult with the matches and the typed filters applied

        Raises:
            InvalidFilterError: If any filter value is invalid
        """
        start_time = time.time()
        filters = compile_filters(raw_filters)
        data = apply_filters(self.store.list_all(), filters)

        logger.info(
            "Listed records",
            extra={
                "extra_data": {
                    "filters": filters.applied(),
                    "count": len(data),
                    "execution_time_ms": round((time.time() - start_time) * 1000, 3),
                }
            },
        )
        return FilterResult(data=data, count=len(data), filters_applied=filters.applied())

    def filter_by_natural_language(self, query_text: Optional[str]) -> NaturalLanguageResult:
        """Interpret free text, compile it and list the matching records.

        Args:
            query_text: Natural language query

        Returns:
            NaturalLanguageResult with matches and the interpreted query

        Raises:
            InvalidInputError: If the query text is missing or blank
            ConflictingFiltersError: If the text yields no filters under
                suspicious wording
            InvalidFilterError: If the interpreted filters are invalid
            UpstreamError: If the natural-language delegate fails
        """
        if not query_text or not query_text.strip():
            raise InvalidInputError.missing_query()

        logger.info(
            "Interpreting natural language query",
            extra={"extra_data": {"query": query_text[:100], "mode": self.interpreter.mode.value}},
        )
        raw_filters = self.interpreter.interpret_checked(query_text)

        try:
            filters = compile_filters(raw_filters)
        except InvalidFilterError as e:
            raise InvalidFilterError(
                e.details, message="Invalid filter values in interpreted query"
            ) from e

        data = apply_filters(self.store.list_all(), filters)
        logger.info(
            "Natural language query executed",
            extra={"extra_data": {"filters": filters.applied(), "count": len(data)}},
        )

        return NaturalLanguageResult(
            data=data,
            count=len(data),
            interpreted_query=InterpretedQuery(
                original=query_text,
                parsed_filters=filters.applied(),
            ),
        )
