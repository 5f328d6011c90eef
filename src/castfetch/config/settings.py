from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _resolve_env_file() -> str | None:
    env_file = os.getenv("ENV_FILE")
    if env_file:
        return env_file
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    candidate = Path(".env")
    return str(candidate) if candidate.is_file() else None


class Settings(BaseSettings):
    """Application-wide settings with sensible defaults."""

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file(), env_file_encoding="utf-8", extra="allow"
    )

    app_name: str = "Cast Fetch"
    environment: str = "development"
    api_host: str = "0.0.0.0"  # noqa: S104
    api_port: int = 8000
    reload: bool = False
    log_level: str = "info"

    race_deadline_sec: float = Field(
        default=45.0, gt=0, description="Global deadline for one multi-path race."
    )
    user_agent: str = Field(
        default="Cast-and-Response/1.0 (Podcast Player)",
        description="Client label sent with every outgoing request.",
    )
    delivery_paths: list[str] = Field(
        default_factory=lambda: ["corsproxy", "allorigins", "cors_anywhere"],
        description="Ordered names of the built-in delivery paths to race.",
    )
    relay_base_url: str | None = Field(
        default=None, description="Base URL of a self-hosted relay raced as an extra path."
    )

    def __init__(self, **values) -> None:
        super().__init__(**values)
        set_settings(self)


_CURRENT_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _CURRENT_SETTINGS
    if _CURRENT_SETTINGS is None:
        _CURRENT_SETTINGS = Settings()
    return _CURRENT_SETTINGS


def set_settings(settings: Settings) -> None:
    global _CURRENT_SETTINGS
    _CURRENT_SETTINGS = settings
