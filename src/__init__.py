# src/__init__.py — v1
"""docpilot — cached document processing and page-aware chunking."""

from docpilot.version import __version__

__all__ = ["__version__"]
