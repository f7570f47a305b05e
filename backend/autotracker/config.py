from __future__ import annotations

import os
from typing import Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CLOCKIFY_API_URL = "https://api.clockify.me/api/v1"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    """Application runtime configuration."""

    app_name: str = "auto-timetracker"
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8080"))

    auth_key: str = os.getenv("AUTH_KEY", "")

    clockify_key: str = os.getenv("CLOCKIFY_KEY", "")
    clockify_workspace: str = os.getenv("CLOCKIFY_WORKSPACE", "")
    clockify_project: str = os.getenv("CLOCKIFY_PROJECT", "")
    clockify_api_url: str = os.getenv("CLOCKIFY_API_URL", DEFAULT_CLOCKIFY_API_URL)
    clockify_timeout: float = float(os.getenv("CLOCKIFY_TIMEOUT", "2"))
    user_agent: str = "auto-timetracker"

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    exit_on_upstream_error: bool = os.getenv("EXIT_ON_UPSTREAM_ERROR", "true").lower() == "true"

    keep_alive_seconds: int = 15
    shutdown_grace_seconds: int = 30

    @field_validator("clockify_api_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def listen_addr(self) -> str:
        return f"{self.host}:{self.port}"


def parse_listen_addr(value: str, default_host: str = "0.0.0.0") -> Tuple[str, int]:
    """Split a ``host:port`` address; an empty host (``:8080``) binds all interfaces."""
    host, sep, port = value.rpartition(":")
    if not sep:
        raise ValueError(f"listen address must look like host:port, got {value!r}")
    try:
        port_number = int(port)
    except ValueError as exc:
        raise ValueError(f"invalid port in listen address {value!r}") from exc
    host = host.strip("[]") or default_host
    return host, port_number


settings = Settings()
