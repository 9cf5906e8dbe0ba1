"""Expose the hierarchy FastAPI routers."""

from .errors import register_error_handlers
from .router import router
from .progress_router import router as progress_router, user_router

__all__ = ["router", "progress_router", "user_router", "register_error_handlers"]
