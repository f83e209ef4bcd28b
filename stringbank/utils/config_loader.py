"""YAML configuration with environment overrides.

Settings are read from ``config/settings.yaml`` (or the file named by
``STRINGBANK_CONFIG``) and then overridden by environment variables, so a
deployment can run entirely from the environment without a config file.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from stringbank.utils.logger import LoggerManager

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class InterpretMode(str, Enum):
    """How free-text filter requests are turned into filter maps."""
    DETERMINISTIC = "deterministic"
    LLM = "llm"


class ConfigLoader:
    """
    Loads and provides access to a YAML configuration file.
    Supports nested keys via dot notation.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.logger = LoggerManager.get_logger(__name__, use_json=True)
        self.config = self._load()

    def _load(self) -> dict:
        path = self.path
        if not path.exists():
            self.logger.error("config.missing", extra={"extra_data": {"path": str(path)}})
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(
                "config.load.fail",
                extra={"extra_data": {"path": str(path), "error": str(e)}},
                exc_info=True,
            )
            raise

        if data is None:
            data = {}
        if not isinstance(data, dict):
            self.logger.error("config.invalid_type", extra={"extra_data": {"path": str(path)}})
            raise ValueError(f"Invalid config (expected mapping) at {path}")
        self.logger.info("config.loaded", extra={"extra_data": {"path": str(path)}})
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Supports dot notation for nested access."""
        val = self.config
        for part in key.split("."):
            if isinstance(val, dict) and part in val:
                val = val[part]
            else:
                return default
        return val

    def as_dict(self) -> dict:
        return self.config


class Settings(BaseModel):
    """Runtime settings for the API, the CLI and the translator."""
    nl_mode: InterpretMode = InterpretMode.DETERMINISTIC
    openai_model: str = "gpt-4o-mini"
    openai_api_key: Optional[str] = None
    max_retries: int = Field(5, ge=1)
    backoff_base: float = Field(1.0, ge=0.0)
    nl_rate_limit: str = "30/minute"
    rate_limit_enabled: bool = True
    log_level: str = "INFO"


# environment variable -> Settings field
ENV_OVERRIDES = {
    "STRINGBANK_NL_MODE": "nl_mode",
    "STRINGBANK_OPENAI_MODEL": "openai_model",
    "OPENAI_API_KEY": "openai_api_key",
    "STRINGBANK_MAX_RETRIES": "max_retries",
    "STRINGBANK_BACKOFF_BASE": "backoff_base",
    "STRINGBANK_NL_RATE_LIMIT": "nl_rate_limit",
    "STRINGBANK_RATE_LIMIT_ENABLED": "rate_limit_enabled",
    "STRINGBANK_LOG_LEVEL": "log_level",
}


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Build Settings from the YAML file (if any) and the environment.

    Args:
        path: Explicit config path. When omitted, ``STRINGBANK_CONFIG`` or
            ``config/settings.yaml`` is used if it exists.

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If an explicit path does not exist
        pydantic.ValidationError: If a value has the wrong type
    """
    values: dict = {}

    if path is not None:
        values.update(_settings_from_file(ConfigLoader(path)))
    else:
        default_path = Path(os.getenv("STRINGBANK_CONFIG", DEFAULT_CONFIG_PATH))
        if default_path.exists():
            values.update(_settings_from_file(ConfigLoader(default_path)))

    for env_name, field_name in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value

    return Settings(**values)


def _settings_from_file(loader: ConfigLoader) -> dict:
    values = {
        "nl_mode": loader.get("nl.mode"),
        "openai_model": loader.get("nl.openai.model"),
        "max_retries": loader.get("nl.openai.max_retries"),
        "backoff_base": loader.get("nl.openai.backoff_base"),
        "nl_rate_limit": loader.get("api.nl_rate_limit"),
        "rate_limit_enabled": loader.get("api.rate_limit_enabled"),
        "log_level": loader.get("logging.level"),
    }
    return {k: v for k, v in values.items() if v is not None}
