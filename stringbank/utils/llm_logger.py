"""LLM call logging with cost tracking.

Every call the natural-language translator makes to OpenAI is appended to a
JSONL file with:
- Prompt sizes (and the prompts themselves, or previews)
- Token usage (input/output/total)
- A cost estimate based on the pricing table below
- Call metadata (model, timestamp, call type)

Usage:
    from stringbank.utils.llm_logger import log_llm_call

    log_llm_call(
        call_type="filter_translation",
        model="gpt-4o-mini",
        system_prompt=SYSTEM_PROMPT,
        user_prompt=text,
        response=resp,
    )
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from stringbank.utils.logger import LoggerManager


# Pricing per 1M tokens. Update these when OpenAI changes pricing.
PRICING_PER_1M_TOKENS = {
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
}

DEFAULT_LLM_LOG_PATH = Path(os.getenv("STRINGBANK_LLM_LOG", "logs/llm_calls.jsonl"))


class LLMLogger:
    """Writes one JSON line per LLM call.

    Attributes:
        log_path: Path to the JSONL log file
        log_full_prompts: Whether to log full prompts or just previews
        preview_length: Max characters kept per prompt preview
    """

    def __init__(
        self,
        log_path: Optional[Path] = None,
        log_full_prompts: bool = False,
        preview_length: int = 200,
    ):
        self.log_path = Path(log_path) if log_path else DEFAULT_LLM_LOG_PATH
        self.log_full_prompts = log_full_prompts
        self.preview_length = preview_length
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = LoggerManager.get_logger("stringbank.llm_calls")

    def _calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        pricing = PRICING_PER_1M_TOKENS.get(model, {"input": 0, "output": 0})
        cost = (
            (input_tokens * pricing["input"] / 1_000_000) +
            (output_tokens * pricing["output"] / 1_000_000)
        )
        return round(cost, 6)

    def _truncate(self, text: str) -> str:
        if len(text) <= self.preview_length:
            return text
        return text[:self.preview_length] + "..."

    def log_call(
        self,
        call_type: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        response: Any,
        extra_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Log an LLM API call.

        Args:
            call_type: Type of call (e.g., "filter_translation")
            model: Model name
            system_prompt: The instruction prompt sent
            user_prompt: The user text sent
            response: The OpenAI response object (usage is read if present)
            extra_metadata: Optional additional fields

        Returns:
            The log entry dict that was written
        """
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "input_tokens", 0) if usage else 0
        output_tokens = getattr(usage, "output_tokens", 0) if usage else 0
        # Mocks and older SDKs may hand back non-integers here
        input_tokens = input_tokens if isinstance(input_tokens, int) else 0
        output_tokens = output_tokens if isinstance(output_tokens, int) else 0
        total_tokens = input_tokens + output_tokens
        cost_usd = self._calculate_cost(model, input_tokens, output_tokens)

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "call_type": call_type,
            "model": model,
            "prompts": {
                "system_length": len(system_prompt),
                "user_length": len(user_prompt),
            },
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": total_tokens,
            },
            "cost_usd": cost_usd,
        }

        if self.log_full_prompts:
            log_entry["prompts"]["system"] = system_prompt
            log_entry["prompts"]["user"] = user_prompt
        else:
            log_entry["prompts"]["user_preview"] = self._truncate(user_prompt)

        if extra_metadata:
            log_entry["metadata"] = extra_metadata

        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_entry, ensure_ascii=False) + "\n")
        except OSError as e:
            self.logger.warning(f"Failed to write LLM log: {e}")

        self.logger.info(
            f"LLM call: {call_type} | model={model} | "
            f"tokens={total_tokens} (in={input_tokens}, out={output_tokens}) | "
            f"cost=${cost_usd:.6f}"
        )
        return log_entry


_default_logger: Optional[LLMLogger] = None


def get_llm_logger() -> LLMLogger:
    """Return the shared LLMLogger, creating it on first use."""
    global _default_logger
    if _default_logger is None:
        _default_logger = LLMLogger()
    return _default_logger


def log_llm_call(**kwargs) -> Dict[str, Any]:
    """Shorthand for ``get_llm_logger().log_call(**kwargs)``."""
    return get_llm_logger().log_call(**kwargs)
