"""FastAPI routers for reading and writing completion progress."""

from fastapi import APIRouter, Depends

from hierarchy_repo import (
    LeafProgress,
    ProgressCalculation,
    ProgressSummary,
    ScopeProgressStats,
)
from hierarchy_repo import progress as progress_store

from .identity import get_user_id
from .schemas import ProgressPayload, ProgressValue

router = APIRouter(prefix="/scopes/{scope_id}", tags=["progress"])
user_router = APIRouter(prefix="/users/me", tags=["progress"])


@router.get("/nodes/{node_id}/progress", response_model=ProgressValue)
async def read_node_progress(scope_id: str, node_id: str, user_id: str = Depends(get_user_id)):
    value = await progress_store.get_progress(user_id, scope_id, node_id)
    return ProgressValue(node_id=node_id, progress=value)


@router.put("/nodes/{node_id}/progress", response_model=LeafProgress)
async def write_node_progress(
    scope_id: str,
    node_id: str,
    payload: ProgressPayload,
    user_id: str = Depends(get_user_id),
):
    return await progress_store.set_user_progress(user_id, scope_id, node_id, payload.progress)


@router.get("/progress", response_model=ProgressCalculation)
async def read_scope_progress(scope_id: str, user_id: str = Depends(get_user_id)):
    return await progress_store.get_scope_progress(user_id, scope_id)


@router.get("/progress/map", response_model=dict[str, int])
async def read_progress_map(scope_id: str, user_id: str = Depends(get_user_id)):
    return await progress_store.get_progress_map(user_id, scope_id)


@router.get("/progress/stats", response_model=ScopeProgressStats)
async def read_scope_stats(scope_id: str, user_id: str = Depends(get_user_id)):
    return await progress_store.get_scope_progress_stats(scope_id)


@user_router.get("/progress/summary", response_model=ProgressSummary)
async def read_progress_summary(user_id: str = Depends(get_user_id)):
    return await progress_store.get_progress_summary(user_id)
