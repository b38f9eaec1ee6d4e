"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hookrelay.webhooks.models import TRIGGER_MARKER, Source


class GerritConfig(BaseModel):
    enabled: bool = True
    path: str = "/gerrit"
    clone_url: str = ""  # e.g. https://review.example.com; project is appended


class GiteaConfig(BaseModel):
    enabled: bool = True
    path: str = "/gitea"
    clone_url: str = ""  # empty: fall back to the payload's repository.ssh_url
    api_url: str = ""  # e.g. https://git.example.com/api/v1
    token: str = ""
    timeout: float = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOOKRELAY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        frozen=True,
        coerce_numbers_to_str=True,
    )

    # CI trigger endpoint
    service_addr: str = ""
    dispatch_timeout: float = 10.0
    feedback_url: str = ""
    feedback_port: str = ""

    listen_addr: str = "0.0.0.0:8080"

    trigger_marker: str = TRIGGER_MARKER
    marker_line: Literal["first", "last"] = "last"

    gerrit: GerritConfig = Field(default_factory=GerritConfig)
    gitea: GiteaConfig = Field(default_factory=GiteaConfig)

    log_level: str = "INFO"
    log_json: bool = False

    def listen_host_port(self) -> tuple[str, int]:
        """Split ``listen_addr`` into host and port."""
        host, sep, port = self.listen_addr.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"listen_addr must be host:port, got {self.listen_addr!r}")
        return host.strip("[]") or "0.0.0.0", int(port)

    def clone_url_base(self, source: Source) -> str:
        if source is Source.GERRIT:
            base = self.gerrit.clone_url
        else:
            base = self.gitea.clone_url
        return base.rstrip("/")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(
    config_path: str | Path | None = None, **overrides: Any
) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config.

    Keyword ``overrides`` (typically from the command line) win over both.
    """
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("HOOKRELAY_CONFIG")

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Init kwargs outrank env vars in pydantic-settings, so re-apply env over YAML
    env_settings = Settings()
    env_data = env_settings.model_dump(exclude_unset=True)
    merged = _deep_merge(yaml_data, env_data)
    merged = _deep_merge(merged, {k: v for k, v in overrides.items() if v is not None})
    return Settings(**merged)
