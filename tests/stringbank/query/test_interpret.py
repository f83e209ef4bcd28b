"""Tests for the natural-language interpreter (deterministic and LLM modes)."""

from unittest.mock import Mock

import pytest

from stringbank.exceptions import ConflictingFiltersError, UpstreamError, UpstreamUnparseableError
from stringbank.query import NaturalLanguageInterpreter, build_interpreter, interpret_deterministic
from stringbank.query.interpret import looks_conflicting
from stringbank.query.llm_compiler import FILTER_SCHEMA
from stringbank.utils.config_loader import InterpretMode, Settings


class TestDeterministicMode:
    """Tests for the fixed phrase table."""

    def test_single_word_palindromic(self):
        result = interpret_deterministic("all single word palindromic strings")
        assert result == {"word_count": 1, "is_palindrome": True}

    def test_matching_is_case_insensitive(self):
        assert interpret_deterministic("Single Word PALINDROMIC please") == {
            "word_count": 1,
            "is_palindrome": True,
        }

    def test_two_words(self):
        assert interpret_deterministic("strings with two words") == {"word_count": 2}

    def test_first_rule_wins(self):
        result = interpret_deterministic("single word palindromic or two words")
        assert result == {"word_count": 1, "is_palindrome": True}

    def test_no_match_is_empty(self):
        assert interpret_deterministic("strings longer than 10 characters") == {}

    def test_result_is_a_fresh_copy(self):
        first = interpret_deterministic("two words")
        first["word_count"] = 99
        assert interpret_deterministic("two words") == {"word_count": 2}

    def test_interpreter_never_calls_a_translator(self):
        translator = Mock()
        interpreter = NaturalLanguageInterpreter(InterpretMode.DETERMINISTIC, translator)

        result = interpreter.interpret("all single word palindromic strings")

        assert result == {"word_count": 1, "is_palindrome": True}
        translator.translate.assert_not_called()


class TestAmbiguityCheck:
    """Tests for the conflicting-filters check.

    The check is a plain substring test, so it is intentionally loose.
    """

    def test_conflicting_word_counts_are_flagged(self):
        interpreter = NaturalLanguageInterpreter()
        with pytest.raises(ConflictingFiltersError) as exc_info:
            interpreter.interpret_checked("strings with 3 words and 5 words")
        assert exc_info.value.original == "strings with 3 words and 5 words"
        assert exc_info.value.parsed_filters == {}

    def test_loose_substrings_also_trigger(self):
        """'android' contains 'and' and 'password' contains 'word'."""
        assert looks_conflicting("android password", {}) is True

    def test_non_empty_filters_are_never_flagged(self):
        assert looks_conflicting("two words and more", {"word_count": 2}) is False

    def test_unrelated_empty_result_passes(self):
        interpreter = NaturalLanguageInterpreter()
        assert interpreter.interpret_checked("strings longer than 10") == {}


class TestLLMMode:
    """Tests for delegation to a Translator."""

    def test_requires_translator(self):
        with pytest.raises(ValueError):
            NaturalLanguageInterpreter(InterpretMode.LLM)

    def test_delegates_with_schema(self):
        translator = Mock()
        translator.translate.return_value = '{"min_length": 11}'
        interpreter = NaturalLanguageInterpreter(InterpretMode.LLM, translator)

        result = interpreter.interpret("strings longer than 10 characters")

        assert result == {"min_length": 11}
        prompt, schema = translator.translate.call_args[0]
        assert "strings longer than 10 characters" in prompt
        assert schema is FILTER_SCHEMA

    def test_unparseable_answer_raises(self):
        translator = Mock()
        translator.translate.return_value = "Sure! Here are your filters."
        interpreter = NaturalLanguageInterpreter(InterpretMode.LLM, translator)

        with pytest.raises(UpstreamUnparseableError):
            interpreter.interpret("anything")

    def test_empty_llm_answer_goes_through_ambiguity_check(self):
        translator = Mock()
        translator.translate.return_value = "{}"
        interpreter = NaturalLanguageInterpreter(InterpretMode.LLM, translator)

        with pytest.raises(ConflictingFiltersError):
            interpreter.interpret_checked("strings with 2 words and 5 words")


class TestBuildInterpreter:
    """Tests for build_interpreter()."""

    def test_deterministic_settings(self):
        interpreter = build_interpreter(Settings(nl_mode=InterpretMode.DETERMINISTIC))
        assert interpreter.mode == InterpretMode.DETERMINISTIC
        assert interpreter.translator is None

    def test_llm_mode_without_key_fails(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(UpstreamError) as exc_info:
            build_interpreter(Settings(nl_mode=InterpretMode.LLM, openai_api_key=None))
        assert "OPENAI_API_KEY" in exc_info.value.message
