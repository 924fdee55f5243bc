"""
Article persistence (raw SQL).

Articles link to users twice (authors, related users) and to opportunities
through join tables. Link changes arrive as connect/disconnect id lists.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence
from uuid import uuid4

import asyncpg

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = """
    a.id, a.title, a.introduction, a.body, a.category, a.publish_status,
    a.published_at, a.thumbnail_id, a.community_id, a.created_at, a.updated_at
"""

RETURNING = """
    id, title, introduction, body, category, publish_status,
    published_at, thumbnail_id, community_id, created_at, updated_at
"""

SORT_COLUMNS = {
    "id": "a.id",
    "title": "a.title",
    "category": "a.category",
    "publishStatus": "a.publish_status",
    "publishedAtOnDB": "a.published_at",
    "createdAt": "a.created_at",
    "updatedAt": "a.updated_at",
}

# relation field -> (join table, target column)
LINK_TABLES = {
    "authors": ("article_authors", "user_id"),
    "relatedUsers": ("article_related_users", "user_id"),
    "opportunities": ("article_opportunities", "opportunity_id"),
}


async def list_articles(params: PageParams) -> tuple[list[dict[str, Any]], int]:
    filters = Filters()
    filters.search(params.query, ["a.title", "a.introduction", "a.body"])
    return await fetch_page(
        select=COLUMNS,
        source="articles a",
        filters=filters,
        order=f"{order_by(params.sort, SORT_COLUMNS, 'a.created_at ASC')}, a.id ASC",
        params=params,
    )


async def get_article(article_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM articles a
        WHERE a.id = $1
        """,
        article_id,
    )


async def create_article(
    conn: asyncpg.Connection,
    *,
    title: str,
    introduction: str | None,
    body: str | None,
    category: str | None,
    publish_status: str | None,
    published_at: datetime | None,
    thumbnail_id: str | None,
    community_id: str,
) -> dict[str, Any]:
    row = await db.conn_fetch_one(
        conn,
        f"""
        INSERT INTO articles (
          id, title, introduction, body, category, publish_status,
          published_at, thumbnail_id, community_id
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
        RETURNING {RETURNING}
        """,
        str(uuid4()),
        title,
        introduction,
        body,
        category,
        publish_status,
        published_at,
        thumbnail_id,
        community_id,
    )
    if row is None:
        raise RuntimeError("Failed to create article.")
    return row


async def update_article(
    conn: asyncpg.Connection,
    article_id: str,
    *,
    title: str | None = None,
    introduction: str | None = None,
    body: str | None = None,
    category: str | None = None,
    publish_status: str | None = None,
    published_at: datetime | None = None,
    thumbnail_id: str | None = None,
    community_id: str | None = None,
) -> dict[str, Any] | None:
    return await db.conn_fetch_one(
        conn,
        f"""
        UPDATE articles
        SET title = COALESCE($2, title),
            introduction = COALESCE($3, introduction),
            body = COALESCE($4, body),
            category = COALESCE($5, category),
            publish_status = COALESCE($6, publish_status),
            published_at = COALESCE($7, published_at),
            thumbnail_id = COALESCE($8, thumbnail_id),
            community_id = COALESCE($9, community_id),
            updated_at = now()
        WHERE id = $1
        RETURNING {RETURNING}
        """,
        article_id,
        title,
        introduction,
        body,
        category,
        publish_status,
        published_at,
        thumbnail_id,
        community_id,
    )


async def update_links(
    conn: asyncpg.Connection,
    article_id: str,
    field: str,
    *,
    connect: Sequence[str] = (),
    disconnect: Sequence[str] = (),
) -> None:
    table, column = LINK_TABLES[field]
    if disconnect:
        await conn.execute(
            f"""
            DELETE FROM {table}
            WHERE article_id = $1
              AND {column} = ANY($2::text[])
            """,
            article_id,
            list(disconnect),
        )
    if connect:
        await conn.executemany(
            f"""
            INSERT INTO {table} (article_id, {column})
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
            """,
            [(article_id, target_id) for target_id in connect],
        )


async def delete_article(article_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM articles
        WHERE id = $1
        RETURNING id
        """,
        article_id,
    )
    return row is not None
