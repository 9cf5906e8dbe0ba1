"""Request payloads accepted by the hierarchy routers."""

from typing import List, Optional

from pydantic import BaseModel, Field


class EdgeCreatePayload(BaseModel):
    parent_id: Optional[str] = None
    child_id: str
    order: Optional[int] = Field(default=None, ge=0)


class MovePayload(BaseModel):
    new_parent_id: Optional[str] = None
    new_order: Optional[int] = Field(default=None, ge=0)


class ReorderPayload(BaseModel):
    parent_id: Optional[str] = None
    ordered_child_ids: List[str] = Field(default_factory=list)


class ProgressPayload(BaseModel):
    # Clamped server-side rather than rejected.
    progress: int


class ProgressValue(BaseModel):
    node_id: str
    progress: int
