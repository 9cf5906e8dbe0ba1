"""Minimal MongoDB helpers shared across domain repositories.

Example usage in a domain repository:

    from db_core import get_collection

    async def list_roots(scope_id: str):
        cursor = get_collection("content_relationships").find(
            {"scope_id": scope_id, "parent_id": None}
        ).sort("display_order", 1)
        return await cursor.to_list(length=None)
"""

from .settings import MongoSettings, settings
from .mongo import close_mongo_client, get_collection, get_db, get_mongo_client, ping

__all__ = [
    "MongoSettings",
    "settings",
    "get_mongo_client",
    "get_db",
    "get_collection",
    "close_mongo_client",
    "ping",
]
