"""Pydantic models describing content nodes, edges and progress rows."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

PROGRESS_MIN = 0
PROGRESS_MAX = 100


def clamp_progress(value: Optional[float]) -> int:
    """Clamp a stored or computed progress value into ``[0, 100]``."""

    if value is None:
        return PROGRESS_MIN
    return int(max(PROGRESS_MIN, min(PROGRESS_MAX, value)))


class Node(BaseModel):
    """A content item of a universe, owned by the surrounding CRUD layer."""

    id: str
    scope_id: str
    name: str = ""
    is_viewable: bool = False
    owner_id: Optional[str] = None


class Edge(BaseModel):
    """Directed parent/child relationship; ``parent_id=None`` marks a root."""

    parent_id: Optional[str] = None
    child_id: str
    scope_id: str
    display_order: int = Field(default=0, ge=0)


class LeafProgress(BaseModel):
    """Completion of one viewable node for one user."""

    user_id: str
    node_id: str
    scope_id: str
    progress: int = Field(default=0, ge=PROGRESS_MIN, le=PROGRESS_MAX)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class TreeNode(Node):
    """A node placed in the forest together with its ordered children."""

    depth: int = 0
    display_order: int = 0
    children: List["TreeNode"] = Field(default_factory=list)
    progress: Optional[int] = None


class ParentOption(BaseModel):
    """One row of a flattened "choose a parent" picker."""

    id: str
    name: str
    depth: int
    display_name: str
    is_viewable: bool
    disabled: bool


class ProgressCalculation(BaseModel):
    total_items: int = 0
    completed_items: int = 0
    percentage: float = 0.0


class ProgressSummary(BaseModel):
    total_content: int = 0
    completed_content: int = 0
    total_scopes: int = 0
    completed_scopes: int = 0


class ScopeProgressStats(BaseModel):
    total_viewable_content: int = 0
    users_with_progress: int = 0
    average_completion: int = 0


class ProgressUpdate(BaseModel):
    """Payload item for bulk progress writes."""

    node_id: str
    scope_id: str
    progress: int


TreeNode.model_rebuild()
