"""Per-request pipeline: adapt, evaluate, build, dispatch."""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

from hookrelay.config import Settings
from hookrelay.utils.logging import get_logger, request_context
from hookrelay.webhooks.adapters import EventAdapter
from hookrelay.webhooks.dispatch import TriggerDispatcher
from hookrelay.webhooks.models import (
    AdaptError,
    DispatchOutcome,
    EventKind,
    RevisionLookupError,
)
from hookrelay.webhooks.trigger import MarkerLine, build_trigger_payload, should_trigger

log = get_logger(__name__)


class RelayHandler:
    """Turns one inbound webhook into at most one CI trigger call."""

    def __init__(
        self,
        settings: Settings,
        adapters: Mapping[str, EventAdapter],
        dispatcher: TriggerDispatcher,
    ) -> None:
        self._settings = settings
        self._adapters = dict(adapters)
        self._dispatcher = dispatcher
        self._marker_line = MarkerLine(settings.marker_line)

    @property
    def routes(self) -> list[str]:
        return list(self._adapters)

    async def handle(
        self, route: str, payload: Any, headers: Mapping[str, str]
    ) -> HTTPStatus:
        adapter = self._adapters.get(route)
        if adapter is None:
            return HTTPStatus.NOT_FOUND

        with request_context(route=route, source=adapter.source.value):
            try:
                return await self._run(adapter, payload, headers)
            except Exception:
                log.exception("webhook_handler_error")
                return HTTPStatus.INTERNAL_SERVER_ERROR

    async def _run(
        self, adapter: EventAdapter, payload: Any, headers: Mapping[str, str]
    ) -> HTTPStatus:
        log.debug("webhook_received", payload=payload)

        try:
            event = await adapter.adapt(payload, headers)
        except AdaptError as e:
            log.warning("webhook_rejected", reason=str(e))
            return HTTPStatus.BAD_REQUEST
        except RevisionLookupError as e:
            log.error("revision_lookup_failed", reason=str(e))
            return HTTPStatus.INTERNAL_SERVER_ERROR

        if event.event_kind is not EventKind.COMMENT_ADDED:
            log.info("webhook_ignored", reason="not a comment-added event")
            return HTTPStatus.BAD_REQUEST

        if not should_trigger(event, self._settings.trigger_marker, self._marker_line):
            log.info(
                "trigger_marker_absent",
                project=event.project,
                line=self._marker_line.value,
            )
            return HTTPStatus.OK

        trigger = build_trigger_payload(event, self._settings)
        outcome = await self._dispatcher.dispatch(trigger)
        if outcome is DispatchOutcome.TRANSPORT_FAILURE:
            return HTTPStatus.INTERNAL_SERVER_ERROR
        return HTTPStatus.OK
