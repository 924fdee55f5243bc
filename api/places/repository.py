"""
Place persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = """
    p.id, p.name, p.address, p.latitude, p.longitude, p.city_code,
    p.community_id, p.created_at, p.updated_at
"""

RETURNING = """
    id, name, address, latitude, longitude, city_code,
    community_id, created_at, updated_at
"""

SORT_COLUMNS = {
    "id": "p.id",
    "name": "p.name",
    "displayName": "p.name",
    "address": "p.address",
    "cityCode": "p.city_code",
    "createdAt": "p.created_at",
    "updatedAt": "p.updated_at",
}


async def list_places(params: PageParams, *, opportunity_id: str | None = None) -> tuple[list[dict[str, Any]], int]:
    filters = Filters()
    filters.search(params.query, ["p.name", "p.address"])
    if opportunity_id:
        filters.add(
            "EXISTS (SELECT 1 FROM opportunities o "
            f"WHERE o.place_id = p.id AND o.id = {filters.param(opportunity_id)})"
        )

    return await fetch_page(
        select=COLUMNS,
        source="places p",
        filters=filters,
        order=f"{order_by(params.sort, SORT_COLUMNS, 'p.created_at ASC')}, p.id ASC",
        params=params,
    )


async def get_place(place_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM places p
        WHERE p.id = $1
        """,
        place_id,
    )


async def create_place(
    *,
    name: str,
    address: str,
    latitude: float,
    longitude: float,
    city_code: str,
    community_id: str,
) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO places (id, name, address, latitude, longitude, city_code, community_id, is_manual)
        VALUES ($1, $2, $3, $4, $5, $6, $7, false)
        RETURNING {RETURNING}
        """,
        str(uuid4()),
        name,
        address,
        latitude,
        longitude,
        city_code,
        community_id,
    )
    if row is None:
        raise RuntimeError("Failed to create place.")
    return row


async def update_place(
    place_id: str,
    *,
    name: str | None = None,
    address: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    city_code: str | None = None,
    community_id: str | None = None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE places
        SET name = COALESCE($2, name),
            address = COALESCE($3, address),
            latitude = COALESCE($4, latitude),
            longitude = COALESCE($5, longitude),
            city_code = COALESCE($6, city_code),
            community_id = COALESCE($7, community_id),
            updated_at = now()
        WHERE id = $1
        RETURNING {RETURNING}
        """,
        place_id,
        name,
        address,
        latitude,
        longitude,
        city_code,
        community_id,
    )


async def delete_place(place_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM places
        WHERE id = $1
        RETURNING id
        """,
        place_id,
    )
    return row is not None


async def list_places_for_location_migration() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT id, name, address, latitude, longitude, map_location
        FROM places
        ORDER BY created_at ASC, id ASC
        """
    )


async def set_map_location(place_id: str, map_location_json: str) -> None:
    await db.execute(
        """
        UPDATE places
        SET map_location = $2::jsonb,
            updated_at = now()
        WHERE id = $1
        """,
        place_id,
        map_location_json,
    )
