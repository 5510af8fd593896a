# src/logging/handlers.py — v2
"""Size-based rotating file handler for the docpilot log file."""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"^(\d+)\s*(B|KB|MB|GB)?$", re.IGNORECASE)
_MULTIPLIERS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse a size string like '10MB' (or a bare byte count) into bytes."""
    match = _SIZE_PATTERN.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    unit = (match.group(2) or "B").upper()
    return int(match.group(1)) * _MULTIPLIERS[unit]


def create_rotating_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Create a rotating file handler, creating the log directory if needed.

    Args:
        log_file: Path to log file.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of backup files to keep.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
