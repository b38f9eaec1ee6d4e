"""Tests for settings loading."""

import os

import pytest

from hookrelay.config import GerritConfig, GiteaConfig, Settings, load_settings
from hookrelay.webhooks.models import Source


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.upper().startswith("HOOKRELAY_"):
            monkeypatch.delenv(key)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.listen_addr == "0.0.0.0:8080"
        assert settings.trigger_marker == "\\check"
        assert settings.marker_line == "last"
        assert settings.dispatch_timeout == 10.0
        assert settings.gerrit.enabled is True
        assert settings.gerrit.path == "/gerrit"
        assert settings.gitea.path == "/gitea"

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("HOOKRELAY_SERVICE_ADDR", "http://ci:8080")
        monkeypatch.setenv("HOOKRELAY_FEEDBACK_PORT", "9000")
        monkeypatch.setenv("HOOKRELAY_GERRIT__CLONE_URL", "https://review.example.com")
        settings = Settings()
        assert settings.service_addr == "http://ci:8080"
        assert settings.feedback_port == "9000"
        assert settings.gerrit.clone_url == "https://review.example.com"

    def test_marker_line_validated(self):
        with pytest.raises(ValueError):
            Settings(marker_line="middle")

    def test_read_only(self):
        settings = Settings()
        with pytest.raises(ValueError):
            settings.service_addr = "http://elsewhere"

    @pytest.mark.parametrize(
        "addr, expected",
        [
            ("0.0.0.0:8080", ("0.0.0.0", 8080)),
            ("127.0.0.1:3000", ("127.0.0.1", 3000)),
            (":9000", ("0.0.0.0", 9000)),
            ("[::1]:8080", ("::1", 8080)),
        ],
    )
    def test_listen_host_port(self, addr, expected):
        assert Settings(listen_addr=addr).listen_host_port() == expected

    @pytest.mark.parametrize("addr", ["localhost", "localhost:http", ""])
    def test_listen_host_port_invalid(self, addr):
        with pytest.raises(ValueError):
            Settings(listen_addr=addr).listen_host_port()

    def test_clone_url_base_per_source(self):
        settings = Settings(
            gerrit=GerritConfig(clone_url="https://review.example.com/"),
            gitea=GiteaConfig(clone_url="https://git.example.com"),
        )
        assert settings.clone_url_base(Source.GERRIT) == "https://review.example.com"
        assert settings.clone_url_base(Source.GITEA) == "https://git.example.com"


class TestLoadSettings:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "service_addr: http://ci.example.com\n"
            "marker_line: first\n"
            "gitea:\n"
            "  api_url: https://git.example.com/api/v1\n"
            "  token: abc\n"
        )
        settings = load_settings(path)
        assert settings.service_addr == "http://ci.example.com"
        assert settings.marker_line == "first"
        assert settings.gitea.api_url == "https://git.example.com/api/v1"
        assert settings.gitea.path == "/gitea"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("service_addr: http://from-yaml\nfeedback_url: http://fb\n")
        monkeypatch.setenv("HOOKRELAY_SERVICE_ADDR", "http://from-env")
        settings = load_settings(path)
        assert settings.service_addr == "http://from-env"
        assert settings.feedback_url == "http://fb"

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "relay.yaml"
        path.write_text("feedback_port: '7000'\n")
        monkeypatch.setenv("HOOKRELAY_CONFIG", str(path))
        assert load_settings().feedback_port == "7000"

    def test_overrides_win(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("listen_addr: 0.0.0.0:1111\n")
        monkeypatch.setenv("HOOKRELAY_LISTEN_ADDR", "0.0.0.0:2222")
        settings = load_settings(path, listen_addr="127.0.0.1:3333", log_level=None)
        assert settings.listen_addr == "127.0.0.1:3333"
        assert settings.log_level == "INFO"

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "nope.yaml")
        assert settings.listen_addr == "0.0.0.0:8080"
