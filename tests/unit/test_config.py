"""Tests for runtime settings — env-driven service URLs and paths."""

from __future__ import annotations

from pathlib import Path

from pcl.config import (
    CONFIG_FILE_NAME,
    DEFAULT_AUTH_URL,
    DEFAULT_DA_URL,
    DEFAULT_DAPP_URL,
    Settings,
)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("PCL_AUTH_URL", "PCL_DA_URL", "PCL_DAPP_URL", "PCL_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)
        assert settings.environment == "development"
        assert settings.log_level == "WARNING"
        assert settings.auth_url == DEFAULT_AUTH_URL
        assert settings.da_url == DEFAULT_DA_URL
        assert settings.dapp_url == DEFAULT_DAPP_URL
        assert settings.auth_poll_interval_seconds == 2.0
        assert settings.forge_binary == "forge"

    def test_service_urls_overridable_from_env(self, monkeypatch):
        monkeypatch.setenv("PCL_AUTH_URL", "https://auth.example")
        monkeypatch.setenv("PCL_DA_URL", "https://da.example")
        monkeypatch.setenv("PCL_DAPP_URL", "https://dapp.example/api")
        settings = Settings(_env_file=None)
        assert settings.auth_url == "https://auth.example"
        assert settings.da_url == "https://da.example"
        assert settings.dapp_url == "https://dapp.example/api"

    def test_numeric_fields_from_env(self, monkeypatch):
        monkeypatch.setenv("PCL_HTTP_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("PCL_AUTH_MAX_NETWORK_RETRIES", "9")
        settings = Settings(_env_file=None)
        assert settings.http_timeout_seconds == 5.0
        assert settings.auth_max_network_retries == 9

    def test_config_path_under_config_dir(self, tmp_path: Path):
        settings = Settings(_env_file=None, config_dir=tmp_path)
        assert settings.config_path == tmp_path / CONFIG_FILE_NAME

    def test_env_file_is_read(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("PCL_DEFAULT_PROJECT", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("PCL_DEFAULT_PROJECT=from-dotenv\n", encoding="utf-8")
        settings = Settings(_env_file=env_file)
        assert settings.default_project == "from-dotenv"
