"""
logging_config.py - Centralized logging configuration.

Every module calls get_logger(__name__); only entry points (CLI, API)
call setup_logging().
"""

from __future__ import annotations

import json
import logging
import os
import sys

LEVEL_NAMES = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; the pipe-delimited message stays a single string field."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: int = logging.INFO, json_format: bool = False) -> None:
    """Configure root logger with consistent formatting.

    Args:
        level: Logging level.
        json_format: If True, emit one JSON object per line.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JsonLineFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(name)-14s] %(levelname)-7s %(message)s",
            datefmt="%H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def level_from_env(default: int = logging.INFO) -> int:
    """Read LOG_LEVEL from the environment, falling back to `default`."""
    raw = os.getenv("LOG_LEVEL", "").strip().upper()
    if raw in LEVEL_NAMES:
        return getattr(logging, raw)
    return default


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
