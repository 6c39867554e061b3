"""
Runtime configuration.

Values come from environment variables prefixed with CLASSPLANNER_
(e.g. CLASSPLANNER_API_URL) or from a .env file in the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLASSPLANNER_", env_file=".env", env_file_encoding="utf-8")

    api_url: str = "http://localhost:8000/api/"
    api_token: Optional[str] = None
    timeout: float = 30.0
    snapshot_path: Optional[Path] = None
    log_level: str = "INFO"

    @field_validator("api_url")
    @classmethod
    def _trailing_slash(cls, v: str) -> str:
        # relative endpoints are joined onto the base URL
        v = v.strip()
        return v if v.endswith("/") else v + "/"

    @field_validator("log_level")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper() or "INFO"

    def resolved_snapshot_path(self) -> Path:
        if self.snapshot_path is not None:
            return Path(self.snapshot_path)
        return PACKAGE_DIR / "data" / "snapshot.json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
