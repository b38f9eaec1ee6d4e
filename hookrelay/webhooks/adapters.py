"""Per-source parsing of review webhooks into ReviewEvents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Annotated, Any, Protocol, TypeVar

from pydantic import BaseModel, Field, StringConstraints, ValidationError

from hookrelay.webhooks.models import (
    EventKind,
    InvalidBodyError,
    MissingFieldError,
    ReviewEvent,
    Source,
    WrongEventTypeError,
)

NonEmptyStr = Annotated[str, StringConstraints(strict=True, min_length=1)]

_M = TypeVar("_M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Raw webhook schemas
# ---------------------------------------------------------------------------

class _GerritChange(BaseModel):
    project: NonEmptyStr


class _GerritPatchSet(BaseModel):
    revision: NonEmptyStr


class GerritCommentAdded(BaseModel):
    """``comment-added`` stream event as sent by the Gerrit webhooks plugin."""

    change: _GerritChange
    patch_set: _GerritPatchSet = Field(alias="patchSet")
    comment: NonEmptyStr


class _GiteaComment(BaseModel):
    body: NonEmptyStr


class _GiteaIssueRepository(BaseModel):
    owner: NonEmptyStr
    name: NonEmptyStr


class _GiteaIssue(BaseModel):
    id: NonEmptyStr
    repository: _GiteaIssueRepository


class _GiteaRepository(BaseModel):
    ssh_url: NonEmptyStr


class GiteaPullRequestComment(BaseModel):
    comment: _GiteaComment
    issue: _GiteaIssue
    repository: _GiteaRepository


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

class RevisionResolver(Protocol):
    async def resolve_revision(self, owner: str, name: str, index: str) -> str: ...


class EventAdapter(ABC):
    """Turns one source's raw webhook body and headers into a ReviewEvent.

    ``adapt`` raises an :class:`AdaptError` subclass instead of returning a
    partially filled event.
    """

    @property
    @abstractmethod
    def source(self) -> Source: ...

    @abstractmethod
    async def adapt(self, payload: Any, headers: Mapping[str, str]) -> ReviewEvent: ...


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidBodyError(type(payload).__name__)
    return payload


def _parse(model: type[_M], payload: dict[str, Any]) -> _M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        loc = e.errors()[0]["loc"]
        raise MissingFieldError(".".join(str(part) for part in loc)) from None


class GerritAdapter(EventAdapter):
    EVENT_TYPE = "comment-added"

    @property
    def source(self) -> Source:
        return Source.GERRIT

    async def adapt(self, payload: Any, headers: Mapping[str, str]) -> ReviewEvent:
        body = _require_object(payload)

        # Schema is only defined for comment-added; anything else stops here
        if body.get("type") != self.EVENT_TYPE:
            return ReviewEvent.unknown(self.source)

        raw = _parse(GerritCommentAdded, body)
        return ReviewEvent(
            event_kind=EventKind.COMMENT_ADDED,
            source=self.source,
            project=raw.change.project,
            revision=raw.patch_set.revision,
            comment_text=raw.comment,
        )


class GiteaAdapter(EventAdapter):
    EVENT_HEADER = "x-gitea-event-type"
    EVENT_TYPE = "pull_request_comment"

    def __init__(self, resolver: RevisionResolver) -> None:
        self._resolver = resolver

    @property
    def source(self) -> Source:
        return Source.GITEA

    async def adapt(self, payload: Any, headers: Mapping[str, str]) -> ReviewEvent:
        event_type = {k.lower(): v for k, v in headers.items()}.get(self.EVENT_HEADER)
        if event_type != self.EVENT_TYPE:
            raise WrongEventTypeError(event_type)

        raw = _parse(GiteaPullRequestComment, _require_object(payload))
        owner = raw.issue.repository.owner
        name = raw.issue.repository.name

        # Gitea comment events don't carry the commit; ask the API for the PR head
        revision = await self._resolver.resolve_revision(owner, name, raw.issue.id)

        return ReviewEvent(
            event_kind=EventKind.COMMENT_ADDED,
            source=self.source,
            project=f"{owner}/{name}",
            revision=revision,
            comment_text=raw.comment.body,
            source_clone_url=raw.repository.ssh_url,
        )
