"""
Pytest configuration and shared fixtures.

Route tests never touch PostgreSQL: repository coroutines are monkeypatched
per test and `core.db.transaction` yields a placeholder connection.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Sequence

import pytest
from fastapi.testclient import TestClient

from core import db, storage

NOW = datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)


class FakeImageStore:
    """
    In-memory `ImageStore`.

    `ids` maps candidate ids to store ids, `urls` maps URLs to store ids.
    Every call is recorded so tests can assert which lookups ran.
    """

    def __init__(self, ids: dict[str, str] | None = None, urls: dict[str, str] | None = None):
        self.ids = ids or {}
        self.urls = urls or {}
        self.id_calls: list[list[str]] = []
        self.url_calls: list[list[str]] = []

    async def existing_ids(self, ids: Sequence[str]) -> dict[str, str]:
        self.id_calls.append(list(ids))
        return {i: self.ids[i] for i in ids if i in self.ids}

    async def ids_by_url(self, urls: Sequence[str]) -> dict[str, str]:
        self.url_calls.append(list(urls))
        return {u: self.urls[u] for u in urls if u in self.urls}


class FakeConnection:
    """Stands in for an asyncpg connection inside `db.transaction()`."""

    def __init__(self) -> None:
        self.committed = False


@pytest.fixture
def fake_transaction(monkeypatch) -> list[FakeConnection]:
    """
    Replace `db.transaction` and return the list of connections it handed out.

    A connection is marked committed only when its block exits cleanly.
    """
    connections: list[FakeConnection] = []

    @asynccontextmanager
    async def transaction():
        conn = FakeConnection()
        connections.append(conn)
        yield conn
        conn.committed = True

    monkeypatch.setattr(db, "transaction", transaction)
    return connections


@pytest.fixture(autouse=True)
def reset_storage_client():
    storage.reset_client()
    yield
    storage.reset_client()


@pytest.fixture
def client() -> TestClient:
    # No context manager: the lifespan (DB pool) is not started.
    from main import app

    return TestClient(app)


def image_row(image_id: str, url: str, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": image_id,
        "strapi_id": None,
        "url": url,
        "bucket": "assets",
        "folder_path": "images",
        "filename": url.rsplit("/", 1)[-1],
        "size": 12.5,
        "width": 640,
        "height": 480,
        "mime": "image/jpeg",
        "ext": ".jpg",
        "alt": None,
        "caption": None,
        "is_public": True,
        "created_at": NOW,
    }
    row.update(overrides)
    return row
