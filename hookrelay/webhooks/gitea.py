"""Gitea REST API client used to find the commit behind a pull request."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from hookrelay.config import GiteaConfig
from hookrelay.utils.logging import get_logger
from hookrelay.webhooks.models import RevisionLookupError

log = get_logger(__name__)


class GiteaClient:
    def __init__(
        self,
        config: GiteaConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"token {config.token}"
        self._client = httpx.AsyncClient(
            base_url=config.api_url.rstrip("/"),
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    async def resolve_revision(self, owner: str, name: str, index: str) -> str:
        """Return the head commit SHA of pull request ``index`` in ``owner/name``."""
        path = "/repos/{}/{}/pulls/{}/commits".format(
            *(quote(part, safe="") for part in (owner, name, index))
        )
        try:
            resp = await self._client.get(path)
        except httpx.TransportError as e:
            raise RevisionLookupError(f"GET {path} failed: {e!r}") from e

        if not resp.is_success:
            raise RevisionLookupError(f"GET {path} returned {resp.status_code}")

        try:
            commits: Any = resp.json()
        except ValueError as e:
            raise RevisionLookupError(f"GET {path} returned a non-JSON body") from e

        if not isinstance(commits, list) or not commits:
            raise RevisionLookupError(f"no commits listed for {owner}/{name}#{index}")

        # Gitea lists PR commits oldest first
        head = commits[-1]
        sha = head.get("sha") if isinstance(head, dict) else None
        if not isinstance(sha, str) or not sha:
            raise RevisionLookupError(f"head commit of {owner}/{name}#{index} has no sha")

        log.debug("gitea_revision_resolved", repo=f"{owner}/{name}", index=index, sha=sha)
        return sha

    async def aclose(self) -> None:
        await self._client.aclose()
