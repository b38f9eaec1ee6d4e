"""hookrelay entry point — wires everything together and runs the server."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from hookrelay import __version__
from hookrelay.config import Settings, load_settings
from hookrelay.utils.logging import get_logger, setup_logging
from hookrelay.webhooks.adapters import EventAdapter, GerritAdapter, GiteaAdapter
from hookrelay.webhooks.dispatch import TriggerDispatcher
from hookrelay.webhooks.gitea import GiteaClient
from hookrelay.webhooks.relay import RelayHandler
from hookrelay.webhooks.server import RelayServer

log = get_logger(__name__)


def _route(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


class HookRelay:
    """Main application: owns the HTTP clients and the webhook server."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.dispatcher = TriggerDispatcher(
            settings.service_addr, timeout=settings.dispatch_timeout
        )
        self.gitea_client: GiteaClient | None = None

        adapters: dict[str, EventAdapter] = {}
        if settings.gerrit.enabled:
            adapters[_route(settings.gerrit.path)] = GerritAdapter()
        if settings.gitea.enabled:
            self.gitea_client = GiteaClient(settings.gitea)
            adapters[_route(settings.gitea.path)] = GiteaAdapter(self.gitea_client)

        self.handler = RelayHandler(settings, adapters, self.dispatcher)
        self.server = RelayServer(settings, self.handler)

    async def start(self) -> None:
        log.info(
            "hookrelay_starting",
            version=__version__,
            service_addr=self.settings.service_addr,
            marker_line=self.settings.marker_line,
        )
        if self.settings.gerrit.enabled and not self.settings.gerrit.clone_url:
            log.warning(
                "gerrit_clone_url_not_configured",
                msg="Gerrit triggers will carry a clone_url of '/<project>'.",
            )
        if self.settings.gitea.enabled and not self.settings.gitea.api_url:
            log.warning("gitea_api_url_not_configured", msg="Gitea revisions cannot be resolved.")
        await self.server.start()
        log.info("hookrelay_ready")

    async def stop(self) -> None:
        log.info("hookrelay_stopping")
        await self.server.stop()
        await self.dispatcher.aclose()
        if self.gitea_client is not None:
            await self.gitea_client.aclose()
        log.info("hookrelay_stopped")


async def run(settings: Settings) -> None:
    app = HookRelay(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--listen-addr", default=None, help="host:port to serve webhooks on")
@click.option("--service-addr", default=None, help="CI trigger endpoint URL")
def cli(
    config_path: str | None,
    log_level: str | None,
    listen_addr: str | None,
    service_addr: str | None,
) -> None:
    """Relay review comments containing the trigger marker to a CI endpoint."""
    settings = load_settings(
        config_path,
        log_level=log_level,
        listen_addr=listen_addr,
        service_addr=service_addr,
    )
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
