"""Leaf progress rows and the per-user aggregation queries built on them."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Dict, Iterable, List

from db_core import get_collection
from loguru import logger
from pymongo import ReturnDocument

from .aggregation import ProgressAggregator, round_half_up_mean, scope_progress
from .config import settings
from .errors import InvalidProgressError, NodeNotFoundError, storage_errors
from .graph import EdgeIndex
from .models import (
    LeafProgress,
    ProgressCalculation,
    ProgressSummary,
    ProgressUpdate,
    ScopeProgressStats,
    clamp_progress,
)
from .nodes import get_node, list_nodes_for_scope
from .relationships import list_edges_for_scope


def _collection():
    return get_collection(settings.progress_collection)


def _doc_to_model(doc: dict) -> LeafProgress:
    return LeafProgress(
        user_id=doc["user_id"],
        node_id=doc["node_id"],
        scope_id=doc["scope_id"],
        progress=clamp_progress(doc.get("progress", 0)),
        updated_at=doc.get("updated_at") or datetime.utcnow(),
    )


async def _progress_rows(query: dict) -> List[dict]:
    with storage_errors("reading progress", scope_id=query.get("scope_id")):
        cursor = _collection().find(query)
        return [doc async for doc in cursor]


def _as_map(docs: Iterable[dict]) -> Dict[str, int]:
    return {doc["node_id"]: clamp_progress(doc.get("progress", 0)) for doc in docs}


async def set_user_progress(
    user_id: str,
    scope_id: str,
    node_id: str,
    progress: int,
) -> LeafProgress:
    """Upsert the user's progress on a viewable node, clamped into 0..100."""

    node = await get_node(node_id)
    if node is None:
        raise NodeNotFoundError(f"Node {node_id} not found")
    if node.scope_id != scope_id:
        raise InvalidProgressError(f"Node {node_id} is not part of scope {scope_id}")
    if not node.is_viewable:
        raise InvalidProgressError(f"Node {node_id} is organizational; its progress is derived")

    value = clamp_progress(progress)
    now = datetime.utcnow()
    with storage_errors("writing progress", scope_id=scope_id):
        doc = await _collection().find_one_and_update(
            {"user_id": user_id, "node_id": node_id},
            {
                "$set": {"scope_id": scope_id, "progress": value, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        doc = {
            "user_id": user_id,
            "node_id": node_id,
            "scope_id": scope_id,
            "progress": value,
            "updated_at": now,
        }

    logger.debug(
        "Progress of {user_id} on {node_id} set to {progress}",
        user_id=user_id,
        node_id=node_id,
        progress=value,
    )
    return _doc_to_model(doc)


async def bulk_update_progress(user_id: str, updates: Iterable[ProgressUpdate]) -> List[LeafProgress]:
    return [
        await set_user_progress(user_id, update.scope_id, update.node_id, update.progress)
        for update in updates
    ]


async def get_user_progress(user_id: str, node_id: str) -> int:
    """Stored value for a single leaf, 0 when nothing was recorded."""

    with storage_errors("reading progress"):
        doc = await _collection().find_one({"user_id": user_id, "node_id": node_id})
    return clamp_progress(doc.get("progress", 0)) if doc else 0


async def get_user_progress_for_scope(user_id: str, scope_id: str) -> Dict[str, int]:
    return _as_map(await _progress_rows({"user_id": user_id, "scope_id": scope_id}))


async def get_all_user_progress(user_id: str) -> Dict[str, int]:
    return _as_map(await _progress_rows({"user_id": user_id}))


async def delete_progress_for_node(scope_id: str, node_id: str) -> int:
    with storage_errors("deleting node progress", scope_id=scope_id):
        result = await _collection().delete_many({"scope_id": scope_id, "node_id": node_id})
    return result.deleted_count


async def delete_progress_for_scope(scope_id: str) -> int:
    with storage_errors("deleting scope progress", scope_id=scope_id):
        result = await _collection().delete_many({"scope_id": scope_id})
    return result.deleted_count


async def _snapshot(user_id: str, scope_id: str):
    nodes, edges, leaf_values = await asyncio.gather(
        list_nodes_for_scope(scope_id),
        list_edges_for_scope(scope_id),
        get_user_progress_for_scope(user_id, scope_id),
    )
    return nodes, EdgeIndex(edges), leaf_values


async def get_progress(user_id: str, scope_id: str, node_id: str) -> int:
    """Completion of any node for the user, recomputed from a fresh snapshot."""

    nodes, index, leaf_values = await _snapshot(user_id, scope_id)
    node = next((node for node in nodes if node.id == node_id), None)
    if node is None:
        raise NodeNotFoundError(f"Node {node_id} not found in scope {scope_id}")
    return ProgressAggregator(nodes, index, leaf_values).progress(node)


async def get_progress_map(user_id: str, scope_id: str) -> Dict[str, int]:
    """Completion of every node of the scope, from one snapshot."""

    nodes, index, leaf_values = await _snapshot(user_id, scope_id)
    return ProgressAggregator(nodes, index, leaf_values, memoize=True).progress_map()


async def get_scope_progress(user_id: str, scope_id: str) -> ProgressCalculation:
    nodes, leaf_values = await asyncio.gather(
        list_nodes_for_scope(scope_id),
        get_user_progress_for_scope(user_id, scope_id),
    )
    return scope_progress(nodes, leaf_values)


async def get_progress_summary(user_id: str) -> ProgressSummary:
    """Counts of the user's tracked and completed content and scopes."""

    rows = await _progress_rows({"user_id": user_id})
    by_scope: Dict[str, Dict[str, int]] = {}
    for doc in rows:
        by_scope.setdefault(doc["scope_id"], {})[doc["node_id"]] = clamp_progress(doc.get("progress", 0))

    completed_scopes = 0
    for scope_id, values in by_scope.items():
        viewable = [node for node in await list_nodes_for_scope(scope_id) if node.is_viewable]
        if viewable and all(values.get(node.id, 0) >= 100 for node in viewable):
            completed_scopes += 1

    return ProgressSummary(
        total_content=len(rows),
        completed_content=sum(1 for doc in rows if clamp_progress(doc.get("progress", 0)) >= 100),
        total_scopes=len(by_scope),
        completed_scopes=completed_scopes,
    )


async def get_scope_progress_stats(scope_id: str) -> ScopeProgressStats:
    """Aggregate figures across every user with progress in the scope."""

    nodes, rows = await asyncio.gather(
        list_nodes_for_scope(scope_id),
        _progress_rows({"scope_id": scope_id}),
    )
    values = [clamp_progress(doc.get("progress", 0)) for doc in rows]
    return ScopeProgressStats(
        total_viewable_content=sum(1 for node in nodes if node.is_viewable),
        users_with_progress=len({doc["user_id"] for doc in rows}),
        average_completion=round_half_up_mean(values),
    )
