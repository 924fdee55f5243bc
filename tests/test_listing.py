import pytest

from core import db, listing
from core.listing import Filters, PageParams, list_envelope, order_by, page_params
from core.payload import present
from core.relations import connect_ids, disconnect_ids, first_connect_id

COLUMNS = {"name": "c.name", "createdAt": "c.created_at"}


def test_page_params_clamps_and_unquotes():
    params = page_params(page=0, page_size=500, sort="  ", q="%E9%AB%98%E7%9F%A5")

    assert params.page == 1
    assert params.page_size == listing.MAX_PAGE_SIZE
    assert params.sort is None
    assert params.query == "高知"


def test_page_params_offset():
    params = PageParams(page=3, page_size=20)
    assert (params.offset, params.limit) == (40, 20)


@pytest.mark.parametrize(
    "sort, expected",
    [
        (None, "c.id ASC"),
        ("name:DESC", "c.name DESC"),
        ("createdAt", "c.created_at ASC"),
        ("name:sideways", "c.name ASC"),
        ("password:ASC", "c.id ASC"),
        ("name; DROP TABLE x", "c.id ASC"),
    ],
)
def test_order_by_whitelist(sort, expected):
    assert order_by(sort, COLUMNS, "c.id ASC") == expected


def test_filters_number_placeholders_in_order():
    filters = Filters()
    filters.add(f"c.place_id = {filters.param('p1')}")
    filters.search("50%_off", ["c.name", "c.description"])

    assert filters.where() == (
        "WHERE c.place_id = $1 AND (c.name ILIKE $2 OR c.description ILIKE $2)"
    )
    assert filters.args == ["p1", "%50\\%\\_off%"]


def test_empty_filters():
    filters = Filters()
    filters.search(None, ["c.name"])
    assert filters.where() == ""


def test_list_envelope_page_count():
    body = list_envelope([{"id": "a"}], total=21, params=PageParams(page=2, page_size=10))
    assert body["pagination"] == {"page": 2, "pageSize": 10, "pageCount": 3, "total": 21}


@pytest.mark.asyncio
async def test_fetch_page_appends_limit_and_offset(monkeypatch):
    calls = []

    async def fake_count(sql, *args):
        calls.append(("count", sql, args))
        return 4

    async def fake_all(sql, *args):
        calls.append(("all", sql, args))
        return [{"id": "a"}]

    monkeypatch.setattr(db, "fetch_count", fake_count)
    monkeypatch.setattr(db, "fetch_all", fake_all)

    filters = Filters()
    filters.add(f"c.id = {filters.param('x')}")
    rows, total = await listing.fetch_page(
        select="c.id",
        source="communities c",
        filters=filters,
        order="c.id ASC",
        params=PageParams(page=2, page_size=3),
    )

    assert (rows, total) == ([{"id": "a"}], 4)
    _, page_sql, page_args = calls[1]
    assert "LIMIT $2" in page_sql and "OFFSET $3" in page_sql
    assert page_args == ("x", 3, 3)


def test_relation_ids_are_normalized():
    value = {"connect": [{"id": 4}, {"id": "4"}, {"id": None}, "b"], "disconnect": [{"id": "c"}]}

    assert connect_ids(value) == ["4", "b"]
    assert disconnect_ids(value) == ["c"]
    assert first_connect_id(value) == "4"
    assert first_connect_id(None) is None


def test_present_treats_blank_as_missing():
    data = {"name": "  ", "count": 0, "bio": " hi "}
    assert present(data, "name") is None
    assert present(data, "count") is None
    assert present(data, "bio") == " hi "
    assert present(data, "missing") is None
