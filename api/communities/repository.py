"""
Community persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = "c.id, c.name, c.point_name, c.created_at, c.updated_at"

SORT_COLUMNS = {
    "id": "c.id",
    "name": "c.name",
    "pointName": "c.point_name",
    "createdAt": "c.created_at",
    "updatedAt": "c.updated_at",
}


async def list_communities(
    params: PageParams,
    *,
    opportunity_id: str | None = None,
    article_id: str | None = None,
    place_id: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    filters = Filters()
    filters.search(params.query, ["c.name", "c.point_name"])
    if opportunity_id:
        filters.add(
            "EXISTS (SELECT 1 FROM opportunities o "
            f"WHERE o.community_id = c.id AND o.id = {filters.param(opportunity_id)})"
        )
    if article_id:
        filters.add(
            "EXISTS (SELECT 1 FROM articles a "
            f"WHERE a.community_id = c.id AND a.id = {filters.param(article_id)})"
        )
    if place_id:
        filters.add(
            "EXISTS (SELECT 1 FROM places p "
            f"WHERE p.community_id = c.id AND p.id = {filters.param(place_id)})"
        )

    return await fetch_page(
        select=COLUMNS,
        source="communities c",
        filters=filters,
        order=f"{order_by(params.sort, SORT_COLUMNS, 'c.created_at ASC')}, c.id ASC",
        params=params,
    )


async def get_community(community_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM communities c
        WHERE c.id = $1
        """,
        community_id,
    )


async def create_community(*, name: str, point_name: str) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO communities (id, name, point_name)
        VALUES ($1, $2, $3)
        RETURNING id, name, point_name, created_at, updated_at
        """,
        str(uuid4()),
        name,
        point_name,
    )
    if row is None:
        raise RuntimeError("Failed to create community.")
    return row


async def update_community(
    community_id: str,
    *,
    name: str | None = None,
    point_name: str | None = None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        UPDATE communities
        SET name = COALESCE($2, name),
            point_name = COALESCE($3, point_name),
            updated_at = now()
        WHERE id = $1
        RETURNING id, name, point_name, created_at, updated_at
        """,
        community_id,
        name,
        point_name,
    )


async def delete_community(community_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM communities
        WHERE id = $1
        RETURNING id
        """,
        community_id,
    )
    return row is not None
