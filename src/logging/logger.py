# src/logging/logger.py — v3
"""Root `docpilot` logger setup with JSON and text formatters.

Modules log through `logging.getLogger(__name__)`; every such logger sits
under the `docpilot` root configured by setup_logging().
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from docpilot.logging.context import get_context

ROOT_LOGGER_NAME = "docpilot"


class JsonFormatter(logging.Formatter):
    """Structured JSON log formatter, one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context_dict = ctx.as_dict()
        if context_dict:
            log_entry["context"] = context_dict

        # Extra data passed via extra={"data": {...}}
        if hasattr(record, "data") and record.data:  # type: ignore[attr-defined]
            log_entry["data"] = record.data  # type: ignore[attr-defined]

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.namespace:
            parts.append(f"[{ctx.namespace}]")
        if ctx.operation:
            parts.append(f"({ctx.operation})")
        parts.append(f"- {record.getMessage()}")
        text = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            text += "\n" + self.formatException(record.exc_info)
        return text


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Configure root docpilot logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: Output format ("json" or "text").
        log_file: Path to log file (None = stdout only).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates on re-init
    root_logger.handlers.clear()

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JsonFormatter()
    else:
        formatter = TextFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from docpilot.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            str(log_file), rotation=rotation, retention=retention
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
