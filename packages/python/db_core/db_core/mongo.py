"""Async MongoDB helpers built on top of Motor.

Only generic utilities live here; domain repositories import these helpers and
build their own collections, documents and invariants on top."""

from functools import lru_cache
from typing import Any

from loguru import logger
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)

from .settings import settings


@lru_cache
def get_mongo_client() -> AsyncIOMotorClient:
    """Return a cached Motor client configured via ``db_core.settings``."""

    logger.debug("Opening Mongo client for {uri}", uri=settings.uri)
    return AsyncIOMotorClient(
        settings.uri,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
    )


def get_db() -> AsyncIOMotorDatabase:
    """Return the main application database defined by ``settings.db_name``."""

    client = get_mongo_client()
    return client[settings.db_name]


def get_collection(name: str) -> AsyncIOMotorCollection:
    """Shortcut for ``get_db()[name]``."""

    return get_db()[name]


def close_mongo_client() -> None:
    """Close the cached client (if any) so the next call reconnects."""

    if get_mongo_client.cache_info().currsize:
        get_mongo_client().close()
        logger.debug("Mongo client closed")
    get_mongo_client.cache_clear()


async def ping() -> dict[str, Any]:
    """Run a simple ``ping`` command against the configured MongoDB server."""

    db = get_db()
    await db.command("ping")
    return {"ok": True}
