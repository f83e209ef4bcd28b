"""Tests for QueryService (structured and natural-language listings)."""

from unittest.mock import Mock

import pytest

from stringbank.exceptions import (
    ConflictingFiltersError,
    InvalidFilterError,
    InvalidInputError,
    UpstreamError,
)
from stringbank.query import FilterResult, NaturalLanguageInterpreter, NaturalLanguageResult, QueryService
from stringbank.store import RecordStore
from stringbank.utils.config_loader import InterpretMode


@pytest.fixture
def store():
    store = RecordStore()
    for value in ["racecar", "hello world", "level", "two words", "abc"]:
        store.insert(value)
    return store


@pytest.fixture
def service(store):
    return QueryService(store)


def llm_service(store, answer):
    translator = Mock()
    translator.translate.return_value = answer
    return QueryService(store, NaturalLanguageInterpreter(InterpretMode.LLM, translator))


class TestListRecords:
    """Tests for list_records()."""

    def test_no_filters(self, service):
        result = service.list_records({})
        assert isinstance(result, FilterResult)
        assert result.count == 5
        assert result.filters_applied == {}

    def test_typed_filters_are_reported(self, service):
        result = service.list_records({"is_palindrome": "true", "min_length": "5"})

        assert [r.value for r in result.data] == ["racecar", "level"]
        assert result.count == 2
        assert result.filters_applied == {"is_palindrome": True, "min_length": 5}

    def test_invalid_filter(self, service):
        with pytest.raises(InvalidFilterError) as exc_info:
            service.list_records({"min_length": "-1"})
        assert exc_info.value.message == "Invalid filter values"

    def test_sees_later_inserts(self, service, store):
        store.insert("noon")
        assert service.list_records({"is_palindrome": "true"}).count == 3


class TestFilterByNaturalLanguage:
    """Tests for filter_by_natural_language()."""

    def test_single_word_palindromes(self, service):
        result = service.filter_by_natural_language("all single word palindromic strings")

        assert isinstance(result, NaturalLanguageResult)
        assert [r.value for r in result.data] == ["racecar", "level"]
        assert result.count == 2
        assert result.interpreted_query.original == "all single word palindromic strings"
        assert result.interpreted_query.parsed_filters == {"is_palindrome": True, "word_count": 1}

    def test_unmatched_text_lists_everything(self, service):
        result = service.filter_by_natural_language("show me everything")
        assert result.count == 5
        assert result.interpreted_query.parsed_filters == {}

    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_missing_query(self, service, query):
        with pytest.raises(InvalidInputError):
            service.filter_by_natural_language(query)

    def test_conflicting(self, service):
        with pytest.raises(ConflictingFiltersError):
            service.filter_by_natural_language("strings with 3 words and 5 words")

    def test_llm_filters_are_compiled(self, store):
        service = llm_service(store, '{"contains_character": "R", "word_count": 1.0}')

        result = service.filter_by_natural_language("single words with the letter r")

        assert [r.value for r in result.data] == ["racecar"]
        assert result.interpreted_query.parsed_filters == {
            "word_count": 1,
            "contains_character": "r",
        }

    def test_overlong_character_keeps_first_letter(self, store):
        service = llm_service(store, '{"contains_character": "the letter r"}')

        result = service.filter_by_natural_language("strings with the letter r")

        assert result.interpreted_query.parsed_filters == {"contains_character": "t"}
        assert [r.value for r in result.data] == ["two words"]

    def test_invalid_llm_filters(self, store):
        service = llm_service(store, '{"min_length": -3, "word_count": 0}')

        with pytest.raises(InvalidFilterError) as exc_info:
            service.filter_by_natural_language("strings shorter than nothing")

        assert exc_info.value.message == "Invalid filter values in interpreted query"
        assert len(exc_info.value.details) == 2

    def test_upstream_failure_propagates(self, store):
        translator = Mock()
        translator.translate.side_effect = UpstreamError("unreachable")
        service = QueryService(store, NaturalLanguageInterpreter(InterpretMode.LLM, translator))

        with pytest.raises(UpstreamError):
            service.filter_by_natural_language("anything at all")
