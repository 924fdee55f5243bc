"""
Shared list/detail plumbing for the content-manager routes.

The admin UI expects one envelope for lists:

    {"results": [...], "pagination": {"page", "pageSize", "pageCount", "total"}}

and another for single entities:

    {"data": {...}, "meta": {...}}

Repositories build their WHERE clauses with `Filters` so positional
placeholders ($1, $2, ...) stay in sync with the argument list.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from fastapi import Query

from . import db

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str | None = None
    query: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def page_params(
    page: int = Query(1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    sort: str | None = Query(None, max_length=200),
    q: str | None = Query(None, alias="_q", max_length=500),
) -> PageParams:
    """
    FastAPI dependency: normalize the admin list query string.
    """
    query = unquote(q).strip() if q else None
    return PageParams(
        page=max(page, 1),
        page_size=max(1, min(page_size, MAX_PAGE_SIZE)),
        sort=(sort or "").strip() or None,
        query=query or None,
    )


def order_by(sort: str | None, columns: dict[str, str], default: str) -> str:
    """
    Turn `field:ASC` into an ORDER BY body using a column whitelist.

    Unknown fields fall back to `default`; the raw value never reaches SQL.
    """
    if not sort:
        return default

    field, _, direction = sort.partition(":")
    column = columns.get(field.strip())
    if column is None:
        logger.warning("unsupported_sort field=%s", field)
        return default

    direction = direction.strip().upper() or "ASC"
    if direction not in {"ASC", "DESC"}:
        direction = "ASC"
    return f"{column} {direction}"


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class Filters:
    """
    Accumulates SQL conditions and their positional arguments.
    """

    def __init__(self) -> None:
        self.conditions: list[str] = []
        self.args: list[Any] = []

    def param(self, value: Any) -> str:
        self.args.append(value)
        return f"${len(self.args)}"

    def add(self, condition: str) -> None:
        self.conditions.append(condition)

    def search(self, query: str | None, columns: list[str]) -> None:
        """
        Case-insensitive substring match on any of `columns`.
        """
        if not query:
            return
        placeholder = self.param(_like_pattern(query))
        self.add("(" + " OR ".join(f"{col} ILIKE {placeholder}" for col in columns) + ")")

    def where(self) -> str:
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)


async def fetch_page(
    *,
    select: str,
    source: str,
    filters: Filters,
    order: str,
    params: PageParams,
) -> tuple[list[dict[str, Any]], int]:
    """
    Run the count query and the page query for one list request.

    `source` is the FROM/JOIN part, shared by both queries.
    """
    where = filters.where()
    args = list(filters.args)
    total = await db.fetch_count(f"SELECT count(*) AS n FROM {source} {where}", *args)

    limit_index = len(args) + 1
    rows = await db.fetch_all(
        f"""
        SELECT {select}
        FROM {source}
        {where}
        ORDER BY {order}
        LIMIT ${limit_index}
        OFFSET ${limit_index + 1}
        """,
        *args,
        params.limit,
        params.offset,
    )
    return rows, total


def list_envelope(results: list[dict], *, total: int, params: PageParams) -> dict:
    return {
        "results": results,
        "pagination": {
            "page": params.page,
            "pageSize": params.page_size,
            "pageCount": math.ceil(total / params.page_size),
            "total": total,
        },
    }


def one_envelope(data: dict) -> dict:
    return {
        "data": data,
        "meta": {
            "availableLocales": [],
            "availableStatus": [],
        },
    }


def write_envelope(data: dict | None) -> dict:
    return {"data": data, "meta": {}}
