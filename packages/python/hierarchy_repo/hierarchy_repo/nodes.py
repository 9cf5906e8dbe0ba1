"""Read access to the content documents the CRUD layer owns."""

from __future__ import annotations

from typing import List, Optional

from db_core import get_collection

from .config import settings
from .errors import NodeNotFoundError, storage_errors
from .models import Node


def _collection():
    return get_collection(settings.content_collection)


def _doc_to_model(doc: dict) -> Node:
    return Node(
        id=str(doc.get("_id") or doc["id"]),
        scope_id=doc["scope_id"],
        name=doc.get("name") or "",
        is_viewable=bool(doc.get("is_viewable", False)),
        owner_id=doc.get("owner_id"),
    )


async def list_nodes_for_scope(scope_id: str) -> List[Node]:
    with storage_errors("listing nodes", scope_id=scope_id):
        cursor = _collection().find({"scope_id": scope_id})
        docs = [doc async for doc in cursor]
    return [_doc_to_model(doc) for doc in docs]


async def get_node(node_id: str) -> Optional[Node]:
    with storage_errors("fetching node"):
        doc = await _collection().find_one({"_id": node_id})
    return _doc_to_model(doc) if doc else None


async def require_node(scope_id: str, node_id: str) -> Node:
    """Return the node or raise ``NodeNotFoundError`` when it is absent from the scope."""

    node = await get_node(node_id)
    if node is None or node.scope_id != scope_id:
        raise NodeNotFoundError(f"Node {node_id} not found in scope {scope_id}")
    return node


async def delete_node_document(scope_id: str, node_id: str) -> bool:
    with storage_errors("deleting node", scope_id=scope_id):
        result = await _collection().delete_one({"_id": node_id, "scope_id": scope_id})
    return result.deleted_count > 0


async def delete_scope_documents(scope_id: str) -> int:
    with storage_errors("deleting scope nodes", scope_id=scope_id):
        result = await _collection().delete_many({"scope_id": scope_id})
    return result.deleted_count
