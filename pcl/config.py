"""Runtime settings — env-driven, one instance per command invocation.

Centralized settings using pydantic-settings for environment variable
support. Reads from a .env file and PCL_* environment variables.

The three remote services (auth, assertion DA, dApp registration) each have
an independently overridable base URL.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AUTH_URL = "https://dapp.phylax.systems/api/v1/cli/auth"
DEFAULT_DA_URL = "https://demo-21-assertion-da.phylax.systems"
DEFAULT_DAPP_URL = "https://dapp.phylax.systems/api/v1"

CONFIG_FILE_NAME = "config.json"


class Settings(BaseSettings):
    """CLI settings with environment variable overrides.

    All settings can be overridden via PCL_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Point the CLI at a staging stack::

        export PCL_AUTH_URL=https://staging.example/api/v1/cli/auth
        export PCL_DA_URL=https://da.staging.example
        export PCL_DAPP_URL=https://staging.example/api/v1

    Keep state somewhere other than ``~/.pcl``::

        export PCL_CONFIG_DIR=/tmp/pcl-state
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PCL_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "WARNING"
    debug: bool = False

    # Persisted state
    config_dir: Path = Path.home() / ".pcl"

    # Remote services
    auth_url: str = DEFAULT_AUTH_URL
    da_url: str = DEFAULT_DA_URL
    dapp_url: str = DEFAULT_DAPP_URL

    # HTTP
    http_timeout_seconds: float = 30.0
    http_connect_timeout_seconds: float = 10.0

    # Device authorization polling
    auth_poll_interval_seconds: float = 2.0
    auth_max_network_retries: int = 5
    auth_backoff_seconds: float = 1.0
    auth_max_backoff_seconds: float = 30.0

    # External build tool
    forge_binary: str = "forge"
    assertions_dir: Path = Path("assertions/src")
    default_project: str = ""

    @property
    def config_path(self) -> Path:
        """Location of the persisted state file."""
        return self.config_dir / CONFIG_FILE_NAME
