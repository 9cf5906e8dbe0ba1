import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

import db_core.mongo
from core_server.main import app
from hierarchy_repo.config import settings
from hierarchy_repo.locks import scope_locks
from hierarchy_repo.service import ensure_indexes


@pytest.fixture()
async def mongo_db(monkeypatch):
    client = AsyncMongoMockClient()
    db = client["hierarchy_api_test"]
    monkeypatch.setattr(db_core.mongo, "get_db", lambda: db)
    scope_locks.clear()
    await ensure_indexes()
    yield db
    scope_locks.clear()


@pytest.fixture()
async def seeded(mongo_db):
    content = mongo_db[settings.content_collection]
    await content.insert_many(
        [
            {"_id": "season", "scope_id": "u1", "name": "Season 1", "is_viewable": False},
            {"_id": "arc", "scope_id": "u1", "name": "Arc", "is_viewable": False},
            {"_id": "ep1", "scope_id": "u1", "name": "Ep1", "is_viewable": True},
            {"_id": "ep2", "scope_id": "u1", "name": "Ep2", "is_viewable": True},
        ]
    )
    return mongo_db


@pytest.fixture()
async def client(seeded):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        headers={"X-User-Id": "alice"},
    ) as http_client:
        yield http_client
