"""Environment-driven settings for the TeamFinder backend."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration with dotenv support.

    Environment variables match the field names case-insensitively, e.g.
    ``STORAGE_BACKEND=firestore`` or ``CAP_OUTSTANDING_INVITES=true``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    storage_backend: Literal["local", "firestore"] = Field(
        default="local", description="Where teams, users and events are stored"
    )
    data_dir: Optional[Path] = Field(
        default=None, description="Seed directory with users/ and events/ JSON for the local backend"
    )
    demo_mode: bool = Field(
        default=True, description="Accept X-Demo-User-Id in place of a Firebase ID token"
    )
    cap_outstanding_invites: bool = Field(
        default=False, description="Count pending invites against the event's team size"
    )
    default_search_limit: int = Field(default=20, ge=1)
    max_search_limit: int = Field(default=100, ge=1)
    cors_origin: str = Field(
        default="http://localhost:5173", description="Comma-separated allowed origins"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _lower_backend(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
