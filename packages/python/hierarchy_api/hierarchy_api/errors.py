"""Translate hierarchy engine errors into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from hierarchy_repo import (
    CyclicEdgeError,
    HierarchyError,
    InvalidEdgeError,
    InvalidProgressError,
    NodeNotFoundError,
    StorageError,
)

_STATUS_BY_ERROR: list[tuple[type[HierarchyError], int, str]] = [
    (CyclicEdgeError, 409, "cyclic_edge"),
    (InvalidEdgeError, 422, "invalid_edge"),
    (InvalidProgressError, 422, "invalid_progress"),
    (NodeNotFoundError, 404, "not_found"),
    (StorageError, 503, "storage_error"),
]


def _status_for(exc: HierarchyError) -> tuple[int, str]:
    for error_type, status, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status, code
    return 400, "hierarchy_error"


async def hierarchy_error_handler(request: Request, exc: HierarchyError) -> JSONResponse:
    status, code = _status_for(exc)
    logger.debug(
        "{method} {path} failed with {code}: {error}",
        method=request.method,
        path=request.url.path,
        code=code,
        error=exc,
    )
    return JSONResponse(status_code=status, content={"detail": str(exc), "code": code})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HierarchyError, hierarchy_error_handler)
