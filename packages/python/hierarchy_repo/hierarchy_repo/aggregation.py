"""Recursive progress aggregation over a snapshot of a scope."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Set

from loguru import logger

from .graph import EdgeIndex
from .models import Node, ProgressCalculation, clamp_progress


def round_half_up_mean(values: List[int]) -> int:
    """Arithmetic mean rounded half-up, computed exactly on integers."""

    if not values:
        return 0
    total = sum(values)
    count = len(values)
    return (2 * total + count) // (2 * count)


class ProgressAggregator:
    """
    Computes 0..100 completion values for one user over one snapshot.

    Viewable nodes report their stored value (0 when absent). Organizational
    nodes report the rounded mean of their children, or 0 without children.
    Set ``memoize`` to share results between calls on the same instance; the
    default recomputes from the snapshot each time.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: EdgeIndex,
        leaf_values: Mapping[str, int],
        *,
        memoize: bool = False,
    ) -> None:
        self.nodes: Dict[str, Node] = {node.id: node for node in nodes}
        self.edges = edges
        self.leaf_values = leaf_values
        self._memo: Optional[Dict[str, int]] = {} if memoize else None

    def leaf_value(self, node_id: str) -> int:
        return clamp_progress(self.leaf_values.get(node_id, 0))

    def progress(self, node: Node) -> int:
        return self._progress(node, set())

    def _progress(self, node: Node, expanding: Set[str]) -> int:
        if node.is_viewable:
            return self.leaf_value(node.id)
        if self._memo is not None and node.id in self._memo:
            return self._memo[node.id]
        if node.id in expanding:
            logger.warning("Node {node_id} is its own descendant; counting it as empty", node_id=node.id)
            return 0

        expanding.add(node.id)
        try:
            values = [
                self._progress(child, expanding)
                for child in self._children(node.id)
            ]
        finally:
            expanding.discard(node.id)

        value = clamp_progress(round_half_up_mean(values))
        if self._memo is not None:
            self._memo[node.id] = value
        return value

    def _children(self, node_id: str) -> List[Node]:
        children = []
        for edge in self.edges.children(node_id):
            child = self.nodes.get(edge.child_id)
            if child is not None:
                children.append(child)
        return children

    def progress_map(self) -> Dict[str, int]:
        return {node_id: self.progress(node) for node_id, node in self.nodes.items()}


def get_progress(
    node: Node,
    nodes: Iterable[Node],
    edges: Iterable,
    leaf_values: Mapping[str, int],
) -> int:
    """Completion of ``node`` for the user whose leaf values are given."""

    index = edges if isinstance(edges, EdgeIndex) else EdgeIndex(edges)
    return ProgressAggregator(nodes, index, leaf_values).progress(node)


def scope_progress(nodes: Iterable[Node], leaf_values: Mapping[str, int]) -> ProgressCalculation:
    """Average completion over every viewable node, attached or not."""

    viewable = [node for node in nodes if node.is_viewable]
    if not viewable:
        return ProgressCalculation()

    values = [clamp_progress(leaf_values.get(node.id, 0)) for node in viewable]
    return ProgressCalculation(
        total_items=len(values),
        completed_items=sum(1 for value in values if value >= 100),
        percentage=sum(values) / len(values),
    )
