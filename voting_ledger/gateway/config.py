from __future__ import annotations

"""
Configuration loader for the voting gateway.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Exposes a cached `get_settings()` accessor.

Environment variables:
    LOG_LEVEL              (str, default "INFO")  Logging level
    LOG_FORMAT             (str, default "json")  "json" or "console"
    CORS_ALLOW_ORIGINS     (csv|json list, default "*")
    HOST                   (str, default "0.0.0.0")
    PORT                   (int, default 8080)

The ledger store itself is selected by the core VOTING_LEDGER_* variables
(see voting_ledger.config).
"""

import json
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list(val: str) -> List[str]:
    s = (val or "").strip()
    if not s:
        return []
    if s.startswith("[") and s.endswith("]"):
        try:
            return [str(x) for x in json.loads(s)]
        except ValueError:
            pass
    return [x.strip() for x in s.split(",") if x.strip()]


class Settings(BaseSettings):
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field("json", description='"json" or "console"')
    cors_allow_origins: str = Field("*", description="CSV or JSON list of allowed origins")
    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(8080, ge=1, le=65535, description="Bind port")

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return str(v).upper() if v is not None else "INFO"

    @property
    def cors_origins(self) -> List[str]:
        return _parse_list(self.cors_allow_origins)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
