"""Deciding whether a review event should start CI, and what to send."""

from __future__ import annotations

from enum import Enum

from hookrelay.config import Settings
from hookrelay.webhooks.models import (
    TRIGGER_MARKER,
    EventKind,
    ReviewEvent,
    Source,
    TriggerPayload,
)

__all__ = [
    "TRIGGER_MARKER",
    "MarkerLine",
    "build_trigger_payload",
    "comment_lines",
    "should_trigger",
]


class MarkerLine(str, Enum):
    FIRST = "first"
    LAST = "last"


def comment_lines(text: str) -> list[str]:
    """Split a comment on ``\\n`` only.

    A ``\\r`` right before a ``\\n`` is dropped and a terminating newline does
    not start an extra empty line. Other separators (lone ``\\r``, form feed,
    ``\\u2028``) stay part of the line.
    """
    lines = text.split("\n")
    last = lines.pop()
    lines = [line.removesuffix("\r") for line in lines]
    if last:
        lines.append(last)
    return lines


def should_trigger(
    event: ReviewEvent,
    marker: str = TRIGGER_MARKER,
    line: MarkerLine = MarkerLine.LAST,
) -> bool:
    """Return True if the designated comment line contains the trigger marker.

    Only comment-added events can trigger. Gerrit prepends its own
    "Patch Set N:" header to comments, so the marker is looked for on the
    last line unless configured otherwise.
    """
    if event.event_kind is not EventKind.COMMENT_ADDED:
        return False

    lines = comment_lines(event.comment_text)
    if not lines:
        return False

    designated = lines[0] if line is MarkerLine.FIRST else lines[-1]
    return marker in designated


def build_trigger_payload(event: ReviewEvent, settings: Settings) -> TriggerPayload:
    """Map a triggering event onto the CI endpoint's payload."""
    base = settings.clone_url_base(event.source)
    if event.source is Source.GITEA and not base and event.source_clone_url:
        clone_url = event.source_clone_url
    else:
        clone_url = f"{base}/{event.project}"

    return TriggerPayload(
        commit=event.revision,
        clone_url=clone_url,
        feedback_url=settings.feedback_url,
        feedback_port=settings.feedback_port,
    )
