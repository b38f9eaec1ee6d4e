"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

from typing import Any

from aiohttp import web

from hookrelay.config import Settings
from hookrelay.utils.logging import get_logger
from hookrelay.webhooks.relay import RelayHandler

log = get_logger(__name__)


class RelayServer:
    """Receives review webhooks and hands them to the relay pipeline."""

    def __init__(self, settings: Settings, handler: RelayHandler) -> None:
        self._settings = settings
        self._handler = handler
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if not self._settings.service_addr:
            log.warning(
                "service_addr_not_configured",
                msg="No CI endpoint configured; every triggered dispatch will fail.",
            )
        host, port = self._settings.listen_host_port()
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host, port)
        await site.start()
        log.info(
            "relay_server_started",
            bind=host,
            port=port,
            routes=self._handler.routes,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("relay_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        for route in self._handler.routes:
            app.router.add_post(route, self._handle_webhook)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        try:
            payload: Any = await request.json()
        except ValueError:
            log.warning("webhook_invalid_json", path=request.path)
            return web.Response(status=400, text="Invalid JSON")

        status = await self._handler.handle(request.path, payload, request.headers)
        return web.Response(status=status.value, text=status.phrase)

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})
