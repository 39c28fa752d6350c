"""Tests for environment configuration."""

import os
from urllib.parse import parse_qs, urlparse

import pytest

from browserbase_mcp.api.config import ServiceConfig, load_config

ENV_VARS = (
    "BROWSERBASE_API_KEY",
    "BROWSERBASE_PROJECT_ID",
    "BROWSERBASE_CONNECT_URL",
    "PORT",
    "HOST",
    "ALLOWED_ORIGINS",
    "BROWSERBASE_MCP_API_KEY",
    "STAGEHAND_MODEL_NAME",
    "MODEL_API_KEY",
    "ALLOW_CUSTOM_SCRIPTS",
)


def clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self, monkeypatch):
        clear_env(monkeypatch)

        config = load_config(env_file=None)

        assert config.port == 3000
        assert config.host == "0.0.0.0"
        assert config.allowed_origins == ["*"]
        assert config.service_api_key is None
        assert config.allow_custom_scripts is True
        assert config.has_credentials is False

    def test_from_env(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("BROWSERBASE_API_KEY", "bb-key")
        monkeypatch.setenv("BROWSERBASE_PROJECT_ID", "bb-project")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.test, https://b.test")
        monkeypatch.setenv("ALLOW_CUSTOM_SCRIPTS", "false")

        config = load_config(env_file=None)

        assert config.has_credentials is True
        assert config.port == 8080
        assert config.allowed_origins == ["https://a.test", "https://b.test"]
        assert config.allow_custom_scripts is False


class TestDotenv:
    """Tests for .env loading."""

    @pytest.fixture
    def isolated_environ(self, monkeypatch):
        """load_dotenv writes into os.environ; give it a throwaway copy."""
        monkeypatch.setattr(os, "environ", os.environ.copy())
        clear_env(monkeypatch)

    def test_env_file_in_working_directory(self, tmp_path, monkeypatch, isolated_environ):
        (tmp_path / ".env").write_text(
            "BROWSERBASE_API_KEY=dotenv-key\n"
            "BROWSERBASE_PROJECT_ID=dotenv-project\n"
            "PORT=4000\n"
        )
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.browserbase_api_key == "dotenv-key"
        assert config.browserbase_project_id == "dotenv-project"
        assert config.port == 4000

    def test_environment_wins_over_env_file(self, tmp_path, isolated_environ):
        env_file = tmp_path / "custom.env"
        env_file.write_text("BROWSERBASE_API_KEY=dotenv-key\n")
        os.environ["BROWSERBASE_API_KEY"] = "shell-key"

        config = load_config(env_file=str(env_file))

        assert config.browserbase_api_key == "shell-key"

    def test_missing_env_file(self, tmp_path, monkeypatch, isolated_environ):
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.has_credentials is False


class TestWsEndpoint:
    """Tests for the Browserbase connection URI."""

    def test_ws_endpoint_carries_credentials(self):
        config = ServiceConfig(browserbase_api_key="bb-key", browserbase_project_id="bb-project")

        parsed = urlparse(config.ws_endpoint)

        assert parsed.scheme == "wss"
        assert parsed.netloc == "connect.browserbase.com"
        assert parse_qs(parsed.query) == {"apiKey": ["bb-key"], "projectId": ["bb-project"]}
