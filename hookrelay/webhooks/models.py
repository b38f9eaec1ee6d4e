"""Webhook event and trigger models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

TRIGGER_MARKER = "\\check"


class EventKind(str, Enum):
    COMMENT_ADDED = "comment_added"
    UNKNOWN = "unknown"


class Source(str, Enum):
    GERRIT = "gerrit"
    GITEA = "gitea"


class DispatchOutcome(str, Enum):
    ACCEPTED = "accepted"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class ReviewEvent:
    """A review-tool event reduced to what the relay needs.

    A ``COMMENT_ADDED`` event always carries a project, revision and comment;
    ``UNKNOWN`` events carry nothing but their kind and source.
    """

    event_kind: EventKind
    source: Source
    project: str = ""
    revision: str = ""
    comment_text: str = ""
    # Clone location reported by the source itself, if any
    source_clone_url: str = ""

    def __post_init__(self) -> None:
        if self.event_kind is EventKind.COMMENT_ADDED:
            for name in ("project", "revision", "comment_text"):
                if not getattr(self, name):
                    raise ValueError(f"comment-added event requires a non-empty {name}")

    @classmethod
    def unknown(cls, source: Source) -> ReviewEvent:
        return cls(event_kind=EventKind.UNKNOWN, source=source)


@dataclass(frozen=True)
class TriggerPayload:
    """Body POSTed to the CI trigger endpoint."""

    commit: str
    clone_url: str
    feedback_url: str
    feedback_port: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TriggerPayload:
        return cls(
            commit=str(data["commit"]),
            clone_url=str(data["clone_url"]),
            feedback_url=str(data["feedback_url"]),
            feedback_port=str(data["feedback_port"]),
        )


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class AdaptError(Exception):
    """An inbound webhook could not be turned into a ReviewEvent."""


class InvalidBodyError(AdaptError):
    def __init__(self, received: str) -> None:
        super().__init__(f"webhook body must be a JSON object, got {received}")
        self.received = received


class MissingFieldError(AdaptError):
    def __init__(self, field: str) -> None:
        super().__init__(f"missing or invalid field: {field}")
        self.field = field


class WrongEventTypeError(AdaptError):
    def __init__(self, received: str | None) -> None:
        super().__init__(f"unsupported event type: {received!r}")
        self.received = received


class RevisionLookupError(Exception):
    """The source-control API could not tell us which revision to build."""
