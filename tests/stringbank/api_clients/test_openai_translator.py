"""Tests for OpenAITranslator (mocked OpenAI client)."""

from unittest.mock import Mock, patch

import httpx
import pytest
from openai import APIConnectionError, BadRequestError, RateLimitError

from stringbank.api_clients.openai import OpenAITranslator
from stringbank.exceptions import UpstreamError
from stringbank.query.llm_compiler import FILTER_SCHEMA

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/responses")


def rate_limit_error():
    return RateLimitError(
        "Rate limit reached", response=httpx.Response(429, request=REQUEST), body=None
    )


def bad_request_error():
    return BadRequestError(
        "Invalid schema", response=httpx.Response(400, request=REQUEST), body=None
    )


def make_response(text):
    response = Mock()
    response.output_text = text
    response.usage.input_tokens = 120
    response.usage.output_tokens = 8
    return response


@pytest.fixture
def client():
    return Mock()


@pytest.fixture(autouse=True)
def no_llm_log():
    with patch("stringbank.api_clients.openai.translator.log_llm_call") as mock_log:
        yield mock_log


class TestOpenAITranslator:
    """Tests for OpenAITranslator.translate()."""

    def test_returns_output_text(self, client, no_llm_log):
        client.responses.create.return_value = make_response('{"word_count": 2}')
        translator = OpenAITranslator("instructions", client=client, model="gpt-4o-mini")

        assert translator.translate("two words please", FILTER_SCHEMA) == '{"word_count": 2}'

        kwargs = client.responses.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["input"][0] == {"role": "system", "content": "instructions"}
        assert kwargs["input"][1] == {"role": "user", "content": "two words please"}
        assert kwargs["text"]["format"]["type"] == "json_schema"
        assert kwargs["text"]["format"]["schema"] is FILTER_SCHEMA
        no_llm_log.assert_called_once()

    @patch("stringbank.api_clients.openai.translator.time.sleep")
    def test_retries_rate_limit_then_succeeds(self, mock_sleep, client):
        client.responses.create.side_effect = [
            rate_limit_error(),
            rate_limit_error(),
            make_response("{}"),
        ]
        translator = OpenAITranslator("i", client=client, max_retries=5, backoff_base=0.5)

        assert translator.translate("q", FILTER_SCHEMA) == "{}"
        assert client.responses.create.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("stringbank.api_clients.openai.translator.time.sleep")
    def test_backoff_grows(self, mock_sleep, client):
        client.responses.create.side_effect = [
            APIConnectionError(request=REQUEST),
            APIConnectionError(request=REQUEST),
            make_response("{}"),
        ]
        translator = OpenAITranslator("i", client=client, backoff_base=1.0)

        translator.translate("q", FILTER_SCHEMA)

        first, second = (c.args[0] for c in mock_sleep.call_args_list)
        assert 1.0 <= first <= 2.0
        assert 2.0 <= second <= 3.0

    @patch("stringbank.api_clients.openai.translator.time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep, client):
        client.responses.create.side_effect = rate_limit_error()
        translator = OpenAITranslator("i", client=client, max_retries=3)

        with pytest.raises(UpstreamError) as exc_info:
            translator.translate("q", FILTER_SCHEMA)

        assert client.responses.create.call_count == 3
        assert mock_sleep.call_count == 2
        assert "3 attempt" in exc_info.value.message
        assert isinstance(exc_info.value.original_error, RateLimitError)

    @patch("stringbank.api_clients.openai.translator.time.sleep")
    def test_non_retryable_error_fails_at_once(self, mock_sleep, client):
        client.responses.create.side_effect = bad_request_error()
        translator = OpenAITranslator("i", client=client)

        with pytest.raises(UpstreamError):
            translator.translate("q", FILTER_SCHEMA)

        assert client.responses.create.call_count == 1
        mock_sleep.assert_not_called()

    def test_empty_output_is_returned_as_is(self, client):
        client.responses.create.return_value = make_response("")
        translator = OpenAITranslator("i", client=client)
        assert translator.translate("q", FILTER_SCHEMA) == ""


class TestConstruction:
    """Tests for OpenAITranslator.__init__()."""

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(UpstreamError) as exc_info:
            OpenAITranslator("i")
        assert "OPENAI_API_KEY" in exc_info.value.message

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        translator = OpenAITranslator("i")
        assert translator.client is not None

    def test_at_least_one_attempt(self, client):
        assert OpenAITranslator("i", client=client, max_retries=0).max_retries == 1
