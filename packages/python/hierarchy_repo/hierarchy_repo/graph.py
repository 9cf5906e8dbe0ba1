"""In-memory indexes over a snapshot of edges."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from .models import Edge


class EdgeIndex:
    """Parent-to-children and child-to-parents lookups over a fixed list of edges.

    Edges stay plain rows; traversal is always a pair of dictionary lookups, so a
    corrupt edge set can never produce reference cycles in memory.
    """

    def __init__(self, edges: Iterable[Edge]) -> None:
        self.edges: List[Edge] = list(edges)
        self._children: Dict[Optional[str], List[Edge]] = defaultdict(list)
        self._parents: Dict[str, List[Edge]] = defaultdict(list)
        for edge in self.edges:
            self._children[edge.parent_id].append(edge)
            self._parents[edge.child_id].append(edge)
        for siblings in self._children.values():
            siblings.sort(key=lambda edge: (edge.display_order, edge.child_id))

    def children(self, parent_id: Optional[str]) -> List[Edge]:
        """Edges under ``parent_id`` sorted by display order (``None`` = roots)."""
        return list(self._children.get(parent_id, ()))

    def parents(self, child_id: str) -> List[Edge]:
        return list(self._parents.get(child_id, ()))

    def roots(self) -> List[Edge]:
        return self.children(None)

    def has_edge(self, parent_id: Optional[str], child_id: str) -> bool:
        return any(edge.parent_id == parent_id for edge in self._parents.get(child_id, ()))

    def has_parent_edge(self, node_id: str) -> bool:
        return bool(self._parents.get(node_id))

    def descendants(self, node_id: str) -> Set[str]:
        """Every node reachable below ``node_id`` (the node itself excluded)."""

        seen: Set[str] = set()
        stack = [edge.child_id for edge in self._children.get(node_id, ())]
        while stack:
            current = stack.pop()
            if current in seen or current == node_id:
                continue
            seen.add(current)
            stack.extend(edge.child_id for edge in self._children.get(current, ()))
        return seen

    def first_parent(self, child_id: str) -> Optional[Edge]:
        parents = self._parents.get(child_id)
        if not parents:
            return None
        return min(parents, key=lambda edge: (edge.parent_id is None, edge.display_order))
