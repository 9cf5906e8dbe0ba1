from __future__ import annotations

"""FastAPI router exposing hierarchy structure operations."""

from fastapi import APIRouter, Depends, Query, Response

from hierarchy_repo import Edge, ParentOption, TreeNode
from hierarchy_repo import relationships, service

from .identity import get_user_id
from .schemas import EdgeCreatePayload, MovePayload, ReorderPayload

router = APIRouter(prefix="/scopes/{scope_id}", tags=["hierarchy"])


@router.get("/forest", response_model=list[TreeNode])
async def get_forest(
    scope_id: str,
    with_progress: bool = Query(default=False),
    user_id: str = Depends(get_user_id),
):
    """Return the ordered forest of the scope."""

    return await service.build_scope_forest(
        scope_id,
        user_id,
        with_progress=with_progress,
    )


@router.get("/children", response_model=list[Edge])
async def get_children(
    scope_id: str,
    parent_id: str | None = Query(default=None),
    user_id: str = Depends(get_user_id),
):
    """Return the edges below ``parent_id`` (roots when omitted), in display order."""

    return await relationships.get_children(scope_id, parent_id)


@router.get("/nodes/{node_id}/parents", response_model=list[Edge])
async def get_parents(scope_id: str, node_id: str, user_id: str = Depends(get_user_id)):
    return await relationships.get_node_parents_in_scope(scope_id, node_id)


@router.get("/nodes/{node_id}/path", response_model=list[str])
async def get_path(scope_id: str, node_id: str, user_id: str = Depends(get_user_id)):
    """Return node ids from the top of the hierarchy down to the node."""

    return await service.get_path(scope_id, node_id)


@router.get("/parent-options", response_model=list[ParentOption])
async def get_parent_options(
    scope_id: str,
    exclude_id: str | None = Query(default=None),
    user_id: str = Depends(get_user_id),
):
    return await service.get_parent_options(scope_id, exclude_id)


@router.post("/edges", response_model=Edge, status_code=201)
async def create_edge(
    scope_id: str,
    payload: EdgeCreatePayload,
    user_id: str = Depends(get_user_id),
):
    """Attach a node under a parent, or as a root when ``parent_id`` is null."""

    return await relationships.create_edge(
        scope_id,
        payload.parent_id,
        payload.child_id,
        payload.order,
    )


@router.delete("/edges", status_code=204)
async def delete_edge(
    scope_id: str,
    child_id: str = Query(...),
    parent_id: str | None = Query(default=None),
    user_id: str = Depends(get_user_id),
) -> Response:
    await relationships.delete_edge(scope_id, parent_id, child_id)
    return Response(status_code=204)


@router.post("/nodes/{node_id}/move", response_model=Edge)
async def move_node(
    scope_id: str,
    node_id: str,
    payload: MovePayload,
    user_id: str = Depends(get_user_id),
):
    """Move a node under a new parent at the requested position."""

    return await relationships.move_node(
        scope_id,
        node_id,
        payload.new_parent_id,
        payload.new_order,
    )


@router.post("/reorder", response_model=list[Edge])
async def reorder_siblings(
    scope_id: str,
    payload: ReorderPayload,
    user_id: str = Depends(get_user_id),
):
    """Rewrite sibling order; the response is the authoritative order."""

    return await relationships.reorder_siblings(
        scope_id,
        payload.parent_id,
        payload.ordered_child_ids,
    )


@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(
    scope_id: str,
    node_id: str,
    user_id: str = Depends(get_user_id),
) -> Response:
    """Delete a node together with its edges and progress rows."""

    await service.delete_node(scope_id, node_id)
    return Response(status_code=204)
