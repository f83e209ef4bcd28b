import os
import random
import time
from typing import Any, Dict, Optional

from openai import (
    OpenAI,
    APIConnectionError,
    APIError,
    APITimeoutError,
    RateLimitError,
)

from stringbank.exceptions import UpstreamError
from stringbank.utils.llm_logger import log_llm_call
from stringbank.utils.logger import LoggerManager

logger = LoggerManager.get_logger("openai_translator")

# Transient failures worth another attempt; other API errors fail at once
RETRYABLE_ERRORS = (RateLimitError, APITimeoutError, APIConnectionError)


class OpenAITranslator:
    """
    Translates free text into schema-shaped JSON text with the OpenAI
    Responses API.

    Rate limits, timeouts and connection errors are retried with exponential
    backoff plus jitter; the last error is raised as UpstreamError once the
    attempts run out.
    """

    def __init__(
        self,
        instructions: str,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        max_retries: int = 5,
        backoff_base: float = 1.0,
        client: Optional[OpenAI] = None,
    ):
        """
        Args:
            instructions (str): System prompt sent with every request.
            api_key (str, optional): OpenAI key. Falls back to OPENAI_API_KEY.
            model (str): Model name.
            max_retries (int): Total attempts per translation.
            backoff_base (float): Seconds for the first retry delay; doubles
                on each further attempt.
            client (OpenAI, optional): Pre-built client (tests inject one).

        Raises:
            UpstreamError: If no API key is available and no client is given.
        """
        self.instructions = instructions
        self.model = model
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base

        if client is None:
            api_key_to_use = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key_to_use:
                raise UpstreamError.from_missing_api_key()
            client = OpenAI(api_key=api_key_to_use)
        self.client = client

        logger.info(f"OpenAITranslator initialized for model: {self.model}")

    def _delay(self, attempt: int) -> float:
        return self.backoff_base * (2 ** attempt) + random.uniform(0, 1)

    def _request(self, text: str, schema: Dict[str, Any]) -> Any:
        return self.client.responses.create(
            model=self.model,
            input=[
                {"role": "system", "content": self.instructions},
                {"role": "user", "content": text},
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "string_filters",
                    "schema": schema,
                    "strict": False,
                }
            },
        )

    def translate(self, text: str, schema: Dict[str, Any]) -> Optional[str]:
        """
        Send one translation request, retrying transient failures.

        Args:
            text (str): User message (the free-text query).
            schema (dict): JSON schema the answer should follow.

        Returns:
            Optional[str]: The model's raw text answer; may be empty.

        Raises:
            UpstreamError: If every attempt failed, or a non-retryable API
                error occurred.
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                response = self._request(text, schema)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < self.max_retries - 1:
                    wait_time = self._delay(attempt)
                    logger.warning(
                        f"OpenAI call failed with {type(e).__name__} "
                        f"(attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {wait_time:.1f}s..."
                    )
                    time.sleep(wait_time)
                    continue
                logger.error(f"OpenAI call failed after {self.max_retries} attempts")
                raise UpstreamError.from_api_error(e, attempts=self.max_retries) from e
            except APIError as e:
                logger.error(f"OpenAI API error: {e}")
                raise UpstreamError.from_api_error(e, attempts=attempt + 1) from e

            log_llm_call(
                call_type="filter_translation",
                model=self.model,
                system_prompt=self.instructions,
                user_prompt=text,
                response=response,
                extra_metadata={"attempts": attempt + 1},
            )
            return getattr(response, "output_text", None)

        # max_retries >= 1, so the loop always returns or raises
        raise UpstreamError.from_api_error(last_error, attempts=self.max_retries)
