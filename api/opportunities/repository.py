"""
Opportunity persistence (raw SQL).

Writes take an open connection so the caller can run the scalar update and
the image relation changes in one transaction.
"""

from __future__ import annotations

from typing import Any, Sequence
from uuid import uuid4

import asyncpg

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = """
    o.id, o.title, o.description, o.body, o.category, o.require_approval,
    o.community_id, o.place_id, o.created_by, o.created_at, o.updated_at
"""

RETURNING = """
    id, title, description, body, category, require_approval,
    community_id, place_id, created_by, created_at, updated_at
"""

SORT_COLUMNS = {
    "id": "o.id",
    "title": "o.title",
    "category": "o.category",
    "requireApproval": "o.require_approval",
    "createdAt": "o.created_at",
    "updatedAt": "o.updated_at",
}


async def list_opportunities(
    params: PageParams,
    *,
    article_id: str | None = None,
    slot_id: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    filters = Filters()
    filters.search(params.query, ["o.title", "o.description"])
    if article_id:
        filters.add(
            "EXISTS (SELECT 1 FROM article_opportunities ao "
            f"WHERE ao.opportunity_id = o.id AND ao.article_id = {filters.param(article_id)})"
        )
    if slot_id:
        filters.add(
            "EXISTS (SELECT 1 FROM opportunity_slots s "
            f"WHERE s.opportunity_id = o.id AND s.id = {filters.param(slot_id)})"
        )

    return await fetch_page(
        select=COLUMNS,
        source="opportunities o",
        filters=filters,
        order=f"{order_by(params.sort, SORT_COLUMNS, 'o.created_at ASC')}, o.id ASC",
        params=params,
    )


async def get_opportunity(opportunity_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM opportunities o
        WHERE o.id = $1
        """,
        opportunity_id,
    )


async def get_opportunities(opportunity_ids: Sequence[str]) -> list[dict[str, Any]]:
    if not opportunity_ids:
        return []
    return await db.fetch_all(
        f"""
        SELECT {COLUMNS}
        FROM opportunities o
        WHERE o.id = ANY($1::text[])
        """,
        list(opportunity_ids),
    )


async def create_opportunity(
    conn: asyncpg.Connection,
    *,
    title: str,
    description: str | None,
    body: str | None,
    category: str,
    require_approval: bool,
    community_id: str,
    place_id: str,
    created_by: str,
) -> dict[str, Any]:
    row = await db.conn_fetch_one(
        conn,
        f"""
        INSERT INTO opportunities (
          id, title, description, body, category, require_approval,
          community_id, place_id, created_by
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
        RETURNING {RETURNING}
        """,
        str(uuid4()),
        title,
        description,
        body,
        category,
        require_approval,
        community_id,
        place_id,
        created_by,
    )
    if row is None:
        raise RuntimeError("Failed to create opportunity.")
    return row


async def update_opportunity(
    conn: asyncpg.Connection,
    opportunity_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    body: str | None = None,
    category: str | None = None,
    require_approval: bool | None = None,
    community_id: str | None = None,
    place_id: str | None = None,
    created_by: str | None = None,
) -> dict[str, Any] | None:
    return await db.conn_fetch_one(
        conn,
        f"""
        UPDATE opportunities
        SET title = COALESCE($2, title),
            description = COALESCE($3, description),
            body = COALESCE($4, body),
            category = COALESCE($5, category),
            require_approval = COALESCE($6, require_approval),
            community_id = COALESCE($7, community_id),
            place_id = COALESCE($8, place_id),
            created_by = COALESCE($9, created_by),
            updated_at = now()
        WHERE id = $1
        RETURNING {RETURNING}
        """,
        opportunity_id,
        title,
        description,
        body,
        category,
        require_approval,
        community_id,
        place_id,
        created_by,
    )


async def delete_opportunity(opportunity_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM opportunities
        WHERE id = $1
        RETURNING id
        """,
        opportunity_id,
    )
    return row is not None
