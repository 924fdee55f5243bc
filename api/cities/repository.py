"""
City persistence (raw SQL). Cities and states are reference data keyed by code.
"""

from __future__ import annotations

from typing import Any

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = "ci.code, ci.name, s.name AS state_name"
SOURCE = "cities ci JOIN states s ON s.code = ci.state_code"

SORT_COLUMNS = {
    "id": "ci.code",
    "documentId": "ci.code",
    "name": "ci.name",
}


async def list_cities(params: PageParams, *, place_id: str | None = None) -> tuple[list[dict[str, Any]], int]:
    filters = Filters()
    if params.query:
        filters.search(params.query, ["ci.name", "s.name"])
    elif place_id:
        filters.add(
            "EXISTS (SELECT 1 FROM places p "
            f"WHERE p.city_code = ci.code AND p.id = {filters.param(place_id)})"
        )

    return await fetch_page(
        select=COLUMNS,
        source=SOURCE,
        filters=filters,
        order=f"{order_by(params.sort, SORT_COLUMNS, 'ci.code ASC')}, ci.code ASC",
        params=params,
    )


async def get_city(code: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM {SOURCE}
        WHERE ci.code = $1
        """,
        code,
    )
