"""Configuration for the hierarchy engine."""

import os

from pydantic import BaseModel, Field


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class HierarchySettings(BaseModel):
    """Collection names and forest assembly behaviour."""

    content_collection: str = Field(
        default_factory=lambda: os.getenv("HIERARCHY_CONTENT_COLLECTION", "content")
    )
    edges_collection: str = Field(
        default_factory=lambda: os.getenv(
            "HIERARCHY_EDGES_COLLECTION", "content_relationships"
        )
    )
    progress_collection: str = Field(
        default_factory=lambda: os.getenv("HIERARCHY_PROGRESS_COLLECTION", "user_progress")
    )
    # Nodes without any incoming edge are rendered as trailing roots.
    orphans_as_roots: bool = Field(
        default_factory=lambda: _env_flag("HIERARCHY_ORPHANS_AS_ROOTS", True)
    )


settings = HierarchySettings()
