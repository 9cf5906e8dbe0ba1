import pytest
from mongomock_motor import AsyncMongoMockClient

import db_core.mongo
from hierarchy_repo.config import settings
from hierarchy_repo.locks import scope_locks
from hierarchy_repo.service import ensure_indexes


@pytest.fixture()
async def mongo_db(monkeypatch):
    client = AsyncMongoMockClient()
    db = client["hierarchy_test"]
    monkeypatch.setattr(db_core.mongo, "get_db", lambda: db)
    scope_locks.clear()
    await ensure_indexes()
    yield db
    scope_locks.clear()


@pytest.fixture()
def add_node(mongo_db):
    async def _add(node_id, scope_id="u1", *, viewable=False, name=None, owner_id="owner-1"):
        await mongo_db[settings.content_collection].insert_one(
            {
                "_id": node_id,
                "scope_id": scope_id,
                "name": name or node_id,
                "is_viewable": viewable,
                "owner_id": owner_id,
            }
        )
        return node_id

    return _add
