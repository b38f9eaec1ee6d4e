"""Structured logging for the relay.

structlog renders through the stdlib ``logging`` tree so aiohttp's access
log and our own events share one handler. Webhook bodies and trigger
payloads are logged whole, so credentials are scrubbed at any depth before
rendering. Per-request fields (``route``, ``source``) come from
``structlog.contextvars``; see :func:`request_context`.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import structlog

REDACTED = "***REDACTED***"

_SENSITIVE_KEYS = ("token", "secret", "password", "authorization", "api_key")

# "token=abc", "Authorization: token abc" inside free text such as comments
_SENSITIVE_INLINE = re.compile(
    r"(token|secret|password|authorization)(\s*[:=]\s*)(?:token\s+|bearer\s+)?[\"']?[^\s\"',;]+",
    re.IGNORECASE,
)

# Keys structlog itself owns; never rewritten
_RESERVED = frozenset({"event", "exc_info", "stack_info", "timestamp", "level", "logger"})


def _is_sensitive_key(key: Any) -> bool:
    return isinstance(key, str) and any(s in key.lower() for s in _SENSITIVE_KEYS)


def redact(value: Any) -> Any:
    """Return ``value`` with credentials masked in nested mappings, lists and strings."""
    if isinstance(value, Mapping):
        return {
            k: REDACTED if _is_sensitive_key(k) else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    if isinstance(value, str):
        return _SENSITIVE_INLINE.sub(r"\1\2" + REDACTED, value)
    return value


def _redact_event(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if key in _RESERVED:
            continue
        event_dict[key] = REDACTED if _is_sensitive_key(key) else redact(value)
    return event_dict


@contextmanager
def request_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every log event emitted while handling one webhook."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog with optional JSON output."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if numeric_level <= logging.DEBUG:
        print(
            "WARNING: DEBUG logging is enabled. Raw webhook payloads, including "
            "review comments, will appear in logs (credentials are masked).",
            file=sys.stderr,
        )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_event,
    ]

    renderer: structlog.types.Processor
    if json_output:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # aiohttp.access records arrive without structlog's processors
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Outbound requests are already logged as trigger_* / gitea_* events
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
