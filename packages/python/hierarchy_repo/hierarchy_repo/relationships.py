"""Async persistence for parent/child edges along with their structural invariants."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import uuid4

from db_core import get_collection
from loguru import logger
from pymongo.errors import DuplicateKeyError

from .config import settings
from .cycle_guard import would_create_cycle
from .errors import (
    CyclicEdgeError,
    InvalidEdgeError,
    NodeNotFoundError,
    storage_errors,
)
from .graph import EdgeIndex
from .locks import scope_locks
from .models import Edge
from .nodes import get_node, require_node


def _collection():
    return get_collection(settings.edges_collection)


def _doc_to_model(doc: dict) -> Edge:
    return Edge(
        parent_id=doc.get("parent_id"),
        child_id=doc["child_id"],
        scope_id=doc["scope_id"],
        display_order=max(0, int(doc.get("display_order", 0))),
    )


async def list_edges_for_scope(scope_id: str) -> List[Edge]:
    """Return every edge of the scope, unsorted."""

    with storage_errors("listing edges", scope_id=scope_id):
        cursor = _collection().find({"scope_id": scope_id})
        docs = [doc async for doc in cursor]
    return [_doc_to_model(doc) for doc in docs]


async def load_edge_index(scope_id: str) -> EdgeIndex:
    return EdgeIndex(await list_edges_for_scope(scope_id))


async def get_children(scope_id: str, parent_id: Optional[str]) -> List[Edge]:
    """Edges directly under ``parent_id`` (``None`` for roots), ascending by display order."""

    with storage_errors("listing children", scope_id=scope_id):
        cursor = (
            _collection()
            .find({"scope_id": scope_id, "parent_id": parent_id})
            .sort([("display_order", 1), ("child_id", 1)])
        )
        docs = [doc async for doc in cursor]
    return [_doc_to_model(doc) for doc in docs]


async def get_parents(child_id: str) -> List[Edge]:
    """Edges pointing at ``child_id``; usually zero or one."""

    with storage_errors("listing parents"):
        cursor = _collection().find({"child_id": child_id})
        docs = [doc async for doc in cursor]
    return [_doc_to_model(doc) for doc in docs]


def _next_order(index: EdgeIndex, parent_id: Optional[str]) -> int:
    orders = [edge.display_order for edge in index.children(parent_id)]
    return max(orders) + 1 if orders else 0


async def _require_endpoints(scope_id: str, parent_id: Optional[str], child_id: str) -> None:
    for node_id in (parent_id, child_id):
        if node_id is None:
            continue
        node = await get_node(node_id)
        if node is None:
            raise InvalidEdgeError(f"Node {node_id} does not exist")
        if node.scope_id != scope_id:
            raise InvalidEdgeError(f"Node {node_id} belongs to scope {node.scope_id}, not {scope_id}")


async def _insert_edge(
    scope_id: str,
    parent_id: Optional[str],
    child_id: str,
    display_order: int,
) -> Edge:
    now = datetime.utcnow()
    doc = {
        "_id": uuid4().hex,
        "scope_id": scope_id,
        "parent_id": parent_id,
        "child_id": child_id,
        "display_order": display_order,
        "created_at": now,
        "updated_at": now,
    }
    with storage_errors("inserting edge", scope_id=scope_id):
        try:
            await _collection().insert_one(doc)
        except DuplicateKeyError as exc:
            raise InvalidEdgeError(f"Edge {parent_id} -> {child_id} already exists") from exc
    return _doc_to_model(doc)


async def create_edge(
    scope_id: str,
    parent_id: Optional[str],
    child_id: str,
    order: Optional[int] = None,
) -> Edge:
    """
    Attach ``child_id`` under ``parent_id`` (or as a root when ``parent_id`` is None).

    Without ``order`` the edge is appended after the last sibling. An explicit
    ``order`` is clamped to the end of the group and the siblings are
    renumbered densely around the new child.
    """

    if parent_id == child_id:
        raise InvalidEdgeError(f"Node {child_id} cannot be its own parent")
    if order is not None and order < 0:
        raise InvalidEdgeError("display order must be >= 0")

    async with scope_locks.lock_for(scope_id):
        await _require_endpoints(scope_id, parent_id, child_id)
        index = await load_edge_index(scope_id)

        if would_create_cycle(parent_id, child_id, index.parents):
            logger.info(
                "Rejected cyclic edge {parent_id} -> {child_id} in {scope_id}",
                parent_id=parent_id,
                child_id=child_id,
                scope_id=scope_id,
            )
            raise CyclicEdgeError(parent_id, child_id)
        if index.has_edge(parent_id, child_id):
            raise InvalidEdgeError(f"Edge {parent_id} -> {child_id} already exists")

        if order is None:
            edge = await _insert_edge(scope_id, parent_id, child_id, _next_order(index, parent_id))
        else:
            siblings = [edge.child_id for edge in index.children(parent_id)]
            position = min(order, len(siblings))
            siblings.insert(position, child_id)
            edge = await _insert_edge(scope_id, parent_id, child_id, position)
            await _write_orders(scope_id, parent_id, siblings)

    logger.info(
        "Created edge {parent_id} -> {child_id} at {order} in {scope_id}",
        parent_id=parent_id,
        child_id=child_id,
        order=edge.display_order,
        scope_id=scope_id,
    )
    return edge


async def delete_edge(scope_id: str, parent_id: Optional[str], child_id: str) -> bool:
    """Remove one edge; returns False when it was already absent."""

    async with scope_locks.lock_for(scope_id):
        with storage_errors("deleting edge", scope_id=scope_id):
            result = await _collection().delete_one(
                {"scope_id": scope_id, "parent_id": parent_id, "child_id": child_id}
            )

    deleted = result.deleted_count > 0
    if deleted:
        logger.info(
            "Deleted edge {parent_id} -> {child_id} in {scope_id}",
            parent_id=parent_id,
            child_id=child_id,
            scope_id=scope_id,
        )
    return deleted


async def purge_node_edges(scope_id: str, node_id: str) -> int:
    """Unlocked body of ``delete_all_for_node``; the caller holds the scope lock."""

    with storage_errors("deleting node edges", scope_id=scope_id):
        result = await _collection().delete_many(
            {
                "scope_id": scope_id,
                "$or": [{"parent_id": node_id}, {"child_id": node_id}],
            }
        )

    if result.deleted_count:
        logger.info(
            "Deleted {count} edges of node {node_id} in {scope_id}",
            count=result.deleted_count,
            node_id=node_id,
            scope_id=scope_id,
        )
    return result.deleted_count


async def delete_all_for_node(scope_id: str, node_id: str) -> int:
    """Drop every edge where ``node_id`` is the parent or the child.

    Former children are left without a parent edge and render as roots.
    """

    async with scope_locks.lock_for(scope_id):
        return await purge_node_edges(scope_id, node_id)


async def purge_scope_edges(scope_id: str) -> int:
    """Drop every edge of the scope; the caller holds the scope lock."""

    with storage_errors("deleting scope edges", scope_id=scope_id):
        result = await _collection().delete_many({"scope_id": scope_id})
    return result.deleted_count


async def _write_orders(scope_id: str, parent_id: Optional[str], child_ids: Sequence[str]) -> None:
    collection = _collection()
    now = datetime.utcnow()
    with storage_errors("rewriting sibling order", scope_id=scope_id):
        for position, child_id in enumerate(child_ids):
            await collection.update_one(
                {"scope_id": scope_id, "parent_id": parent_id, "child_id": child_id},
                {"$set": {"display_order": position, "updated_at": now}},
            )


async def reorder_siblings(
    scope_id: str,
    parent_id: Optional[str],
    ordered_child_ids: Sequence[str],
) -> List[Edge]:
    """
    Give each listed sibling ``display_order = index``.

    Siblings missing from the list keep their relative order after the listed
    ones. Listing a node that is not a child of ``parent_id`` is rejected.
    """

    if len(set(ordered_child_ids)) != len(ordered_child_ids):
        raise InvalidEdgeError("ordered_child_ids contains duplicates")

    async with scope_locks.lock_for(scope_id):
        siblings = [edge.child_id for edge in await get_children(scope_id, parent_id)]
        unknown = [child_id for child_id in ordered_child_ids if child_id not in siblings]
        if unknown:
            raise InvalidEdgeError(f"Not children of {parent_id}: {', '.join(unknown)}")

        listed = set(ordered_child_ids)
        final_order = list(ordered_child_ids) + [c for c in siblings if c not in listed]
        await _write_orders(scope_id, parent_id, final_order)
        result = await get_children(scope_id, parent_id)

    logger.info(
        "Reordered {count} children of {parent_id} in {scope_id}",
        count=len(final_order),
        parent_id=parent_id,
        scope_id=scope_id,
    )
    return result


async def move_node(
    scope_id: str,
    node_id: str,
    new_parent_id: Optional[str],
    new_order: Optional[int] = None,
) -> Edge:
    """
    Re-parent ``node_id`` under ``new_parent_id`` at position ``new_order``.

    The node's current parent edge is rewritten in place so readers never see
    it detached; any additional parent edges are removed. Siblings under the
    new parent are renumbered densely around the inserted node. A rejected
    move leaves every edge untouched.
    """

    if new_parent_id == node_id:
        raise InvalidEdgeError(f"Node {node_id} cannot be its own parent")
    if new_order is not None and new_order < 0:
        raise InvalidEdgeError("display order must be >= 0")

    async with scope_locks.lock_for(scope_id):
        await require_node(scope_id, node_id)
        if new_parent_id is not None:
            parent = await get_node(new_parent_id)
            if parent is None or parent.scope_id != scope_id:
                raise InvalidEdgeError(f"Target parent {new_parent_id} not found in scope {scope_id}")

        index = await load_edge_index(scope_id)
        if would_create_cycle(new_parent_id, node_id, index.parents):
            logger.info(
                "Rejected move of {node_id} under descendant {parent_id}",
                node_id=node_id,
                parent_id=new_parent_id,
            )
            raise CyclicEdgeError(new_parent_id, node_id)

        siblings = [
            edge.child_id
            for edge in index.children(new_parent_id)
            if edge.child_id != node_id
        ]
        position = len(siblings) if new_order is None else min(new_order, len(siblings))
        siblings.insert(position, node_id)

        current = index.parents(node_id)
        primary = next((edge for edge in current if edge.parent_id == new_parent_id), None)
        if primary is None and current:
            primary = current[0]

        collection = _collection()
        now = datetime.utcnow()
        with storage_errors("moving node", scope_id=scope_id):
            if primary is None:
                await _insert_edge(scope_id, new_parent_id, node_id, position)
            else:
                await collection.update_one(
                    {"scope_id": scope_id, "parent_id": primary.parent_id, "child_id": node_id},
                    {"$set": {"parent_id": new_parent_id, "display_order": position, "updated_at": now}},
                )
                for edge in current:
                    if edge is primary:
                        continue
                    await collection.delete_one(
                        {"scope_id": scope_id, "parent_id": edge.parent_id, "child_id": node_id}
                    )
        await _write_orders(scope_id, new_parent_id, siblings)

    logger.info(
        "Moved {node_id} under {parent_id} at {position} in {scope_id}",
        node_id=node_id,
        parent_id=new_parent_id,
        position=position,
        scope_id=scope_id,
    )
    return Edge(
        parent_id=new_parent_id,
        child_id=node_id,
        scope_id=scope_id,
        display_order=position,
    )


async def get_node_parents_in_scope(scope_id: str, node_id: str) -> List[Edge]:
    """Parent edges of an existing node; raises when the node is unknown."""

    node = await get_node(node_id)
    if node is None or node.scope_id != scope_id:
        raise NodeNotFoundError(f"Node {node_id} not found in scope {scope_id}")
    return [edge for edge in await get_parents(node_id) if edge.scope_id == scope_id]
