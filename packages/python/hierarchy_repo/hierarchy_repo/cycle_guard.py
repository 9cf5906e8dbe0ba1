"""Ancestor walk that keeps the edge set acyclic."""

from __future__ import annotations

from typing import Callable, List, Optional, Set, Tuple

from loguru import logger

from .models import Edge

ParentLookup = Callable[[str], List[Edge]]


def would_create_cycle(
    parent_id: Optional[str],
    child_id: str,
    get_parents: ParentLookup,
) -> bool:
    """
    Return True when attaching ``child_id`` under ``parent_id`` would close a cycle.

    Walks upward from ``parent_id`` through every parent chain. Reaching
    ``child_id`` means the child is already an ancestor of the new parent. A
    chain that loops back onto itself without reaching the child is existing
    corruption: it is logged and the walk stops on that branch.
    """

    if parent_id is None:
        return False
    if parent_id == child_id:
        return True

    on_path: Set[str] = set()
    finished: Set[str] = set()
    stack: List[Tuple[str, bool]] = [(parent_id, False)]

    while stack:
        current, leaving = stack.pop()
        if leaving:
            on_path.discard(current)
            finished.add(current)
            continue
        if current == child_id:
            return True
        if current in on_path:
            logger.warning(
                "Existing ancestor cycle detected at {node_id} while checking {parent_id} -> {child_id}",
                node_id=current,
                parent_id=parent_id,
                child_id=child_id,
            )
            continue
        if current in finished:
            continue

        on_path.add(current)
        stack.append((current, True))
        for edge in get_parents(current):
            if edge.parent_id is not None:
                stack.append((edge.parent_id, False))

    return False
