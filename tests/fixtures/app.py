# tests/fixtures/app.py

"""
🧩 App Fixture:
- Builds the real FastAPI app via `create_app`
- Overrides the session factory, object store and parent locks per test
- Returns an HTTP client fixture for integration tests
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from reelbox.dependencies.media import get_parent_locks, get_session_factory
from reelbox.main import create_app
from reelbox.services.media.locks import ParentLocks
from reelbox.services.storage import get_object_store


@pytest.fixture()
def parent_locks() -> ParentLocks:
    return ParentLocks(backend="local")


@pytest.fixture()
def app(session_factory, object_store, parent_locks) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_parent_locks] = lambda: parent_locks
    return app


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
