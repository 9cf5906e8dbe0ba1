"""Forest assembly from flat node and edge lists."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from loguru import logger

from .graph import EdgeIndex
from .models import Edge, Node, ParentOption, TreeNode

INDENT_UNIT = "\u00a0" * 4

EdgesLike = Union[EdgeIndex, Iterable[Edge]]


def _as_index(edges: EdgesLike) -> EdgeIndex:
    return edges if isinstance(edges, EdgeIndex) else EdgeIndex(edges)


class _ForestBuilder:
    def __init__(self, nodes: Iterable[Node], index: EdgeIndex) -> None:
        self.nodes: Dict[str, Node] = {node.id: node for node in nodes}
        self.index = index
        self._expanding: Set[str] = set()
        self._memo: Dict[Tuple[str, int], List[TreeNode]] = {}

    def tree_node(self, node: Node, depth: int, display_order: int) -> TreeNode:
        return TreeNode(
            **node.model_dump(),
            depth=depth,
            display_order=display_order,
            children=self.expand(node.id, depth + 1),
        )

    def expand(self, node_id: str, depth: int) -> List[TreeNode]:
        key = (node_id, depth)
        if key in self._memo:
            return self._memo[key]
        if node_id in self._expanding:
            logger.warning("Node {node_id} is its own descendant; truncating expansion", node_id=node_id)
            return []

        self._expanding.add(node_id)
        try:
            children = self.place(self.index.children(node_id), depth)
        finally:
            self._expanding.discard(node_id)
        self._memo[key] = children
        return children

    def place(self, edges: List[Edge], depth: int) -> List[TreeNode]:
        placed = []
        for edge in edges:
            child = self.nodes.get(edge.child_id)
            if child is None:
                logger.debug("Skipping stale edge to missing node {child_id}", child_id=edge.child_id)
                continue
            placed.append(self.tree_node(child, depth, edge.display_order))
        return placed

    def orphans(self) -> List[Node]:
        loose = [node for node in self.nodes.values() if not self.index.has_parent_edge(node.id)]
        return sorted(loose, key=lambda node: (node.name, node.id))


def build_forest(
    nodes: Iterable[Node],
    edges: EdgesLike,
    *,
    orphans_as_roots: bool = True,
) -> List[TreeNode]:
    """
    Assemble the ordered forest of a scope.

    Roots are the nodes with a ``parent_id=None`` edge, ordered by that edge's
    display order. When ``orphans_as_roots`` is set, nodes without any incoming
    edge follow them, sorted by name. Edges pointing at unknown nodes are
    skipped, and so are nodes whose only parents are unknown.
    """

    builder = _ForestBuilder(nodes, _as_index(edges))
    forest = builder.place(builder.index.roots(), 0)
    if orphans_as_roots:
        next_order = max((tree.display_order for tree in forest), default=-1) + 1
        for offset, node in enumerate(builder.orphans()):
            forest.append(builder.tree_node(node, 0, next_order + offset))
    return forest


def iter_forest(forest: List[TreeNode]) -> Iterator[TreeNode]:
    """Pre-order walk over every placed tree node."""

    stack = list(reversed(forest))
    while stack:
        tree = stack.pop()
        yield tree
        stack.extend(reversed(tree.children))


def content_path(node_id: str, edges: EdgesLike) -> List[str]:
    """Ids from the top of the first parent chain down to ``node_id``."""

    index = _as_index(edges)
    path = [node_id]
    seen = {node_id}
    current: Optional[str] = node_id
    while current is not None:
        edge = index.first_parent(current)
        if edge is None or edge.parent_id is None:
            break
        if edge.parent_id in seen:
            logger.warning("Parent chain of {node_id} loops at {parent_id}", node_id=node_id, parent_id=edge.parent_id)
            break
        seen.add(edge.parent_id)
        path.insert(0, edge.parent_id)
        current = edge.parent_id
    return path


def parent_options(
    nodes: Iterable[Node],
    edges: EdgesLike,
    exclude_id: Optional[str] = None,
) -> List[ParentOption]:
    """Flatten the forest into picker rows, hiding ``exclude_id`` and everything below it."""

    index = _as_index(edges)
    hidden: Set[str] = set()
    if exclude_id is not None:
        hidden = index.descendants(exclude_id) | {exclude_id}

    options: List[ParentOption] = []
    stack = list(reversed(build_forest(nodes, index)))
    while stack:
        tree = stack.pop()
        if tree.id in hidden:
            continue
        options.append(
            ParentOption(
                id=tree.id,
                name=tree.name,
                depth=tree.depth,
                display_name=f"{INDENT_UNIT * tree.depth}{tree.name}",
                is_viewable=tree.is_viewable,
                # Viewable content cannot act as a parent.
                disabled=tree.is_viewable,
            )
        )
        stack.extend(reversed(tree.children))
    return options
