"""Settings for the core server FastAPI application."""

from __future__ import annotations

import os
from typing import List

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

# Search for the nearest .env so running from subdirectories still loads root config.
load_dotenv(find_dotenv(usecwd=True))


def _default_cors_origins() -> List[str]:
    """Build the default list of CORS origins."""

    raw = os.getenv("CORE_CORS_ALLOW_ORIGINS")
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    value = os.getenv("APP_BASE_URL")
    return [value.strip()] if value else []


class CoreSettings(BaseModel):
    """API metadata and start-up behaviour for the FastAPI app."""

    api_title: str = "Universe Hierarchy API"
    api_version: str = "0.1.0"
    cors_allow_origins: List[str] = Field(default_factory=_default_cors_origins)
    log_level: str = Field(
        default_factory=lambda: (os.getenv("LOG_LEVEL") or os.getenv("LOGURU_LEVEL") or "INFO").upper()
    )
    ensure_indexes_on_startup: bool = Field(
        default_factory=lambda: os.getenv("CORE_ENSURE_INDEXES", "1").lower() not in {"0", "false", "no"}
    )


settings = CoreSettings()
