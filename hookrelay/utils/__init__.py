"""Utility modules for hookrelay."""

from .logging import get_logger, redact, request_context, setup_logging

__all__ = [
    "get_logger",
    "redact",
    "request_context",
    "setup_logging",
]
