"""
Centralized logger factory for stringbank.

`LoggerManager` hands out cached `logging.Logger` instances that write to the
console (colored through `colorlog`) and to a log file (plain text or JSON
lines through `JsonLogFormatter`). Every module in the service obtains its
logger here so that handlers are attached exactly once per name.
"""

import os
import sys
import json
import logging
from typing import Optional

from colorlog import ColoredFormatter


class LoggerManager:
    """
    Factory for named, pre-configured loggers.

    - Loggers are cached by name, so repeated calls never stack handlers.
    - Each logger gets a console handler on stdout and a file handler.
    - The log directory defaults to ``logs/`` and can be moved with the
      ``STRINGBANK_LOG_DIR`` environment variable.
    - Propagation is disabled so records are not emitted twice by the root
      logger (uvicorn and pytest both install root handlers).
    """

    _loggers = {}
    _default_log_dir = "logs"

    @classmethod
    def get_logger(
        cls,
        name: str,
        log_file: Optional[str] = None,
        level: Optional[str] = None,
        use_json: bool = False,
        use_color: bool = True,
    ) -> logging.Logger:
        """
        Retrieve or create a logger configured for console and file output.

        Args:
            name (str): Logger name, usually ``__name__``.
            log_file (Optional[str]): Full path of the log file. Defaults to
                ``<log dir>/<name>.log``.
            level (Optional[str]): Threshold such as "DEBUG" or "INFO".
                Falls back to ``STRINGBANK_LOG_LEVEL`` and then "INFO".
            use_json (bool): Write the file handler as JSON lines.
            use_color (bool): Color the console output.

        Returns:
            logging.Logger: The configured logger.
        """
        if name in cls._loggers:
            return cls._loggers[name]

        level = (level or os.getenv("STRINGBANK_LOG_LEVEL", "INFO")).upper()

        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False

        log_dir = (
            os.path.dirname(log_file)
            if log_file
            else os.getenv("STRINGBANK_LOG_DIR", cls._default_log_dir)
        )
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        if not log_file:
            log_file = os.path.join(log_dir, f"{name}.log")

        logger.addHandler(cls._setup_file_handler(log_file, level, use_json))
        logger.addHandler(cls._setup_console_handler(level, use_color))

        cls._loggers[name] = logger
        return logger

    @classmethod
    def set_level(cls, level: str) -> None:
        """Change the threshold of every logger created so far."""
        for logger in cls._loggers.values():
            logger.setLevel(level.upper())
            for handler in logger.handlers:
                handler.setLevel(level.upper())

    @staticmethod
    def _setup_file_handler(filepath: str, level: str, use_json: bool) -> logging.Handler:
        handler = logging.FileHandler(filepath, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(LoggerManager._get_formatter(use_json=use_json, color=False))
        return handler

    @staticmethod
    def _setup_console_handler(level: str, use_color: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(LoggerManager._get_formatter(use_json=False, color=use_color))
        return handler

    @staticmethod
    def _get_formatter(use_json: bool = False, color: bool = False) -> logging.Formatter:
        """
        Build the formatter for a handler.

        Args:
            use_json (bool): Return a `JsonLogFormatter`.
            color (bool): Return a `colorlog.ColoredFormatter`.

        Returns:
            logging.Formatter: A formatter instance.
        """
        if use_json:
            return JsonLogFormatter()

        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"

        if color:
            return ColoredFormatter(
                fmt="%(log_color)s" + fmt,
                datefmt=datefmt,
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "bold_red",
                },
            )
        return logging.Formatter(fmt, datefmt)


class JsonLogFormatter(logging.Formatter):
    """
    Formatter that renders each record as one JSON object.

    Example Output:
        {
            "timestamp": "2025-10-17 13:12:01",
            "level": "INFO",
            "logger": "stringbank.store.record_store",
            "message": "record.inserted",
            "record_id": "a1b2..."
        }

    Structured fields are passed with ``extra={"extra_data": {...}}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_data"):
            log_record.update(record.extra_data)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)
