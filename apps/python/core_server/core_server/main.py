"""FastAPI application composing the hierarchy and progress routers."""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from dotenv import find_dotenv, load_dotenv

# Load .env before db_core and hierarchy_repo read their settings.
load_dotenv(find_dotenv(usecwd=True))

from .config import settings
from db_core import close_mongo_client
from hierarchy_api import progress_router, register_error_handlers, router as hierarchy_router, user_router
from hierarchy_repo.service import ensure_indexes


def _configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.info("Logger configured at {level} level", level=settings.log_level)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.ensure_indexes_on_startup:
        await ensure_indexes()
    yield
    close_mongo_client()


_configure_logging()

app = FastAPI(title=settings.api_title, version=settings.api_version, lifespan=lifespan)

# Allow the front-end origins (with credentials) to talk to this API.
if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
logger.info("CORS middleware added {origins}", origins=settings.cors_allow_origins)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Simple liveness endpoint for load balancers and probes."""

    return {"status": "ok"}


register_error_handlers(app)
app.include_router(hierarchy_router)
app.include_router(progress_router)
app.include_router(user_router)

"""Run with:

    uvicorn core_server.main:app --host 0.0.0.0 --port 8000 --reload
"""
