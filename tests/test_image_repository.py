import pytest

from core import db
from images import repository
from images.reconciler import ReconciliationPlan
from images.transformer import ImageRecord


class RecordingConnection:
    def __init__(self):
        self.statements = []

    async def execute(self, sql, *args):
        self.statements.append(("execute", " ".join(sql.split()), args))

    async def executemany(self, sql, rows):
        self.statements.append(("executemany", " ".join(sql.split()), rows))


def record(url="https://storage.googleapis.com/assets/images/new.jpg"):
    return ImageRecord(
        strapi_id=None,
        url=url,
        bucket="assets",
        folder_path="images",
        filename="new.jpg",
        size=1.0,
        width=10,
        height=10,
        mime="image/jpeg",
        ext=".jpg",
        alt=None,
        caption=None,
    )


@pytest.mark.asyncio
async def test_existing_ids_prefers_primary_key(monkeypatch):
    async def fetch_all(sql, *args):
        return [
            {"id": "7", "strapi_id": None},
            {"id": "uuid-a", "strapi_id": 7},
            {"id": "uuid-b", "strapi_id": 8},
        ]

    monkeypatch.setattr(db, "fetch_all", fetch_all)

    resolved = await repository.existing_ids(["7", "8", "missing"])

    assert resolved == {"7": "7", "8": "uuid-b"}


@pytest.mark.asyncio
async def test_ids_by_url_keeps_oldest_match(monkeypatch):
    async def fetch_all(sql, *args):
        return [
            {"id": "first", "url": "https://x/b/a.jpg"},
            {"id": "second", "url": "https://x/b/a.jpg"},
        ]

    monkeypatch.setattr(db, "fetch_all", fetch_all)

    assert await repository.ids_by_url(["https://x/b/a.jpg"]) == {"https://x/b/a.jpg": "first"}


@pytest.mark.asyncio
async def test_lookups_skip_query_for_empty_input(monkeypatch):
    async def fetch_all(sql, *args):
        raise AssertionError("no query expected")

    monkeypatch.setattr(db, "fetch_all", fetch_all)

    assert await repository.existing_ids([]) == {}
    assert await repository.ids_by_url([]) == {}
    assert await repository.list_for_opportunities([]) == {}


@pytest.mark.asyncio
async def test_apply_plan_creates_then_detaches_then_attaches():
    conn = RecordingConnection()
    plan = ReconciliationPlan(to_disconnect=["a", "b"], to_connect=["a"], to_create=[record()])

    attached = await repository.apply_opportunity_plan(conn, "opp-1", plan)

    kinds = [(kind, sql.split()[0]) for kind, sql, _ in conn.statements]
    assert kinds == [("execute", "INSERT"), ("execute", "DELETE"), ("executemany", "INSERT")]
    new_id = conn.statements[0][2][0]
    assert attached == ["a", new_id]
    assert conn.statements[1][2] == ("opp-1", ["a", "b"])
    assert conn.statements[2][2] == [("opp-1", "a"), ("opp-1", new_id)]


@pytest.mark.asyncio
async def test_apply_plan_with_only_disconnects():
    conn = RecordingConnection()

    attached = await repository.apply_opportunity_plan(conn, "opp-1", ReconciliationPlan(to_disconnect=["a"]))

    assert attached == []
    assert [kind for kind, _, _ in conn.statements] == ["execute"]


@pytest.mark.asyncio
async def test_list_for_opportunities_groups_rows(monkeypatch):
    async def fetch_all(sql, *args):
        return [
            {"opportunity_id": "o1", "id": "a"},
            {"opportunity_id": "o2", "id": "b"},
            {"opportunity_id": "o1", "id": "c"},
        ]

    monkeypatch.setattr(db, "fetch_all", fetch_all)

    grouped = await repository.list_for_opportunities(["o1", "o2"])

    assert grouped == {"o1": [{"id": "a"}, {"id": "c"}], "o2": [{"id": "b"}]}
