"""Outbound delivery of trigger payloads to the CI endpoint."""

from __future__ import annotations

import httpx

from hookrelay.utils.logging import get_logger
from hookrelay.webhooks.models import DispatchOutcome, TriggerPayload

log = get_logger(__name__)


class TriggerDispatcher:
    """POSTs trigger payloads to a single CI endpoint, one attempt each."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def dispatch(self, payload: TriggerPayload) -> DispatchOutcome:
        body = payload.to_dict()
        log.info("trigger_sending", endpoint=self._endpoint, payload=body)

        try:
            resp = await self._client.post(self._endpoint, json=body)
        except httpx.TransportError as e:
            log.error(
                "trigger_dispatch_failed",
                endpoint=self._endpoint,
                error=repr(e),
            )
            return DispatchOutcome.TRANSPORT_FAILURE

        # A completed exchange counts as delivered; the CI endpoint owns its status
        log.info(
            "trigger_dispatched",
            endpoint=self._endpoint,
            status=resp.status_code,
            commit=payload.commit,
        )
        return DispatchOutcome.ACCEPTED

    async def aclose(self) -> None:
        await self._client.aclose()
