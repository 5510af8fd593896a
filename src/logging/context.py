# src/logging/context.py — v2
"""Contextual logging support — attach source locator, namespace and operation to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per processed document, read by the formatters.
_source_locator: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_locator", default=None
)
_namespace: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "namespace", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    source_locator: str | None = None
    namespace: str | None = None
    operation: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        source_locator=_source_locator.get(),
        namespace=_namespace.get(),
        operation=_operation.get(),
        step=_step.get(),
    )


def set_document_context(source_locator: str, namespace: str | None = None) -> None:
    """Set document-level context (called once per processed document)."""
    _source_locator.set(source_locator)
    _namespace.set(namespace)


def set_operation_context(operation: str, step: str | None = None) -> None:
    """Set operation-level context (chunking, summarizing, consolidating...)."""
    _operation.set(operation)
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _source_locator.set(None)
    _namespace.set(None)
    _operation.set(None)
    _step.set(None)
