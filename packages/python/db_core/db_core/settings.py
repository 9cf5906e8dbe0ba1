"""Configuration helpers for MongoDB connections used by db_core.

Values come from the environment (or a .env file loaded by the app) when the
module is first imported; set the variables before importing ``db_core``.
"""
import os

from loguru import logger
from pydantic import BaseModel, Field


class MongoSettings(BaseModel):
    """MongoDB connection configuration for the universe hierarchy services."""

    uri: str = Field(
        default_factory=lambda: os.getenv("MONGO_URI", "mongodb://mongo_default:27017")
    )
    db_name: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "universes"))
    server_selection_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))
    )


settings: MongoSettings = MongoSettings()
logger.info(
    "MongoSettings initialized with uri={uri} db_name={db_name}",
    uri=settings.uri,
    db_name=settings.db_name,
)
