"""
City lookups. Cities are read-only in the admin.
"""

from __future__ import annotations

from typing import Any

from core import listing
from core.listing import PageParams
from core.payload import not_found

from . import repository


def to_node(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["code"],
        "documentId": row["code"],
        "name": f"{row['state_name']} {row['name']}",
    }


async def find(params: PageParams, *, place_id: str | None = None) -> dict:
    rows, total = await repository.list_cities(params, place_id=place_id)
    return listing.list_envelope([to_node(r) for r in rows], total=total, params=params)


async def find_one(code: str) -> dict:
    row = await repository.get_city(code)
    if row is None:
        raise not_found(f"City not found: {code}")
    return listing.one_envelope(to_node(row))
