"""Universe hierarchy engine: edges, cycle guard, forest assembly and progress."""

from .aggregation import ProgressAggregator, get_progress, round_half_up_mean, scope_progress
from .config import HierarchySettings, settings
from .cycle_guard import would_create_cycle
from .errors import (
    CyclicEdgeError,
    HierarchyError,
    InvalidEdgeError,
    InvalidProgressError,
    NodeNotFoundError,
    StorageError,
)
from .forest import build_forest, content_path, parent_options
from .graph import EdgeIndex
from .models import (
    Edge,
    LeafProgress,
    Node,
    ParentOption,
    ProgressCalculation,
    ProgressSummary,
    ProgressUpdate,
    ScopeProgressStats,
    TreeNode,
)

__all__ = [
    "CyclicEdgeError",
    "Edge",
    "EdgeIndex",
    "HierarchyError",
    "HierarchySettings",
    "InvalidEdgeError",
    "InvalidProgressError",
    "LeafProgress",
    "Node",
    "NodeNotFoundError",
    "ParentOption",
    "ProgressAggregator",
    "ProgressCalculation",
    "ProgressSummary",
    "ProgressUpdate",
    "ScopeProgressStats",
    "StorageError",
    "TreeNode",
    "build_forest",
    "content_path",
    "get_progress",
    "parent_options",
    "round_half_up_mean",
    "scope_progress",
    "settings",
    "would_create_cycle",
]
