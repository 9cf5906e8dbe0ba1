"""Domain-level errors for the hierarchy engine."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger
from pymongo.errors import PyMongoError


class HierarchyError(Exception):
    """Base class for every error raised by the hierarchy engine."""


class InvalidEdgeError(HierarchyError):
    """Raised for self-parenting, unknown nodes, scope mismatches or duplicate edges."""


class CyclicEdgeError(HierarchyError):
    """Raised when an edge would let a node become its own ancestor."""

    def __init__(self, parent_id: str, child_id: str) -> None:
        super().__init__(f"Cannot place {child_id} under its own descendant {parent_id}")
        self.parent_id = parent_id
        self.child_id = child_id


class NodeNotFoundError(HierarchyError):
    """Raised when an update or move targets a node or edge that does not exist."""


class InvalidProgressError(HierarchyError):
    """Raised when progress is written for a node that cannot store it."""


class StorageError(HierarchyError):
    """Raised when the underlying store fails; no mutation is considered applied."""


@contextmanager
def storage_errors(action: str, *, scope_id: Optional[str] = None) -> Iterator[None]:
    """Re-raise driver failures inside the block as ``StorageError``."""

    try:
        yield
    except PyMongoError as exc:
        logger.error(
            "Storage failure while {action} (scope={scope_id}): {error}",
            action=action,
            scope_id=scope_id,
            error=exc,
        )
        raise StorageError(f"Storage failure while {action}") from exc
