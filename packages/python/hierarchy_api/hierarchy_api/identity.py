"""Caller identity as supplied by the surrounding application."""

from __future__ import annotations

from fastapi import Header, HTTPException

USER_ID_HEADER = "X-User-Id"


def _normalize_user_id(value: str | None) -> str | None:
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed:
            return trimmed
    return None


async def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    Return the authenticated user id forwarded by the gateway.

    Authentication happens upstream; the hierarchy engine trusts this id.
    """

    user_id = _normalize_user_id(x_user_id)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id
