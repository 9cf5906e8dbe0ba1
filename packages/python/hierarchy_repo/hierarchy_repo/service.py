"""Scope-level operations composed from the stores and the pure engine."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from db_core import get_collection
from loguru import logger
from pymongo import ASCENDING

from . import progress as progress_store
from . import relationships
from .aggregation import ProgressAggregator
from .config import settings
from .errors import storage_errors
from .forest import build_forest, content_path, iter_forest, parent_options
from .graph import EdgeIndex
from .locks import scope_locks
from .models import ParentOption, TreeNode
from .nodes import delete_node_document, delete_scope_documents, list_nodes_for_scope


async def ensure_indexes() -> None:
    """Create the edge and progress indexes; safe to call on every start-up."""

    edges = get_collection(settings.edges_collection)
    progress = get_collection(settings.progress_collection)
    with storage_errors("creating indexes"):
        await edges.create_index(
            [("scope_id", ASCENDING), ("parent_id", ASCENDING), ("child_id", ASCENDING)],
            unique=True,
            name="edges_scope_parent_child_unique",
        )
        await edges.create_index(
            [("scope_id", ASCENDING), ("parent_id", ASCENDING), ("display_order", ASCENDING)],
            name="edges_sibling_order",
        )
        await edges.create_index([("child_id", ASCENDING)], name="edges_child")
        await progress.create_index(
            [("user_id", ASCENDING), ("node_id", ASCENDING)],
            unique=True,
            name="progress_user_node_unique",
        )
        await progress.create_index([("scope_id", ASCENDING)], name="progress_scope")
    logger.info("Hierarchy indexes ensured")


async def build_scope_forest(
    scope_id: str,
    user_id: Optional[str] = None,
    *,
    with_progress: bool = False,
) -> List[TreeNode]:
    """Ordered forest of the scope, optionally annotated with the user's progress."""

    nodes, edges = await asyncio.gather(
        list_nodes_for_scope(scope_id),
        relationships.list_edges_for_scope(scope_id),
    )
    index = EdgeIndex(edges)
    forest = build_forest(nodes, index, orphans_as_roots=settings.orphans_as_roots)
    logger.debug(
        "Built forest for {scope_id}: {nodes} nodes, {edges} edges, {roots} roots",
        scope_id=scope_id,
        nodes=len(nodes),
        edges=len(edges),
        roots=len(forest),
    )

    if with_progress and user_id is not None:
        leaf_values = await progress_store.get_user_progress_for_scope(user_id, scope_id)
        values = ProgressAggregator(nodes, index, leaf_values, memoize=True).progress_map()
        for tree in iter_forest(forest):
            tree.progress = values.get(tree.id, 0)
    return forest


async def get_path(scope_id: str, node_id: str) -> List[str]:
    edges = await relationships.list_edges_for_scope(scope_id)
    return content_path(node_id, edges)


async def get_parent_options(scope_id: str, exclude_id: Optional[str] = None) -> List[ParentOption]:
    nodes, edges = await asyncio.gather(
        list_nodes_for_scope(scope_id),
        relationships.list_edges_for_scope(scope_id),
    )
    return parent_options(nodes, edges, exclude_id=exclude_id)


async def delete_node(scope_id: str, node_id: str) -> None:
    """
    Remove a node with its edges and progress rows.

    The whole cascade runs under the scope lock, so no structural write can
    attach to the node while it is being removed. Former children lose their
    parent edge and show up as roots. Deleting an already removed node, or a
    node of another scope, is a no-op.
    """

    async with scope_locks.lock_for(scope_id):
        await relationships.purge_node_edges(scope_id, node_id)
        await progress_store.delete_progress_for_node(scope_id, node_id)
        deleted = await delete_node_document(scope_id, node_id)
    if deleted:
        logger.info("Deleted node {node_id} from {scope_id}", node_id=node_id, scope_id=scope_id)


async def delete_scope(scope_id: str) -> None:
    """Remove every edge, progress row and content document of a scope."""

    async with scope_locks.lock_for(scope_id):
        edges = await relationships.purge_scope_edges(scope_id)
        rows = await progress_store.delete_progress_for_scope(scope_id)
        nodes = await delete_scope_documents(scope_id)
    scope_locks.discard(scope_id)
    logger.info(
        "Deleted scope {scope_id}: {nodes} nodes, {edges} edges, {rows} progress rows",
        scope_id=scope_id,
        nodes=nodes,
        edges=edges,
        rows=rows,
    )
