"""
User persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = "u.id, u.name, u.slug, u.current_prefecture, u.created_at, u.updated_at"

SORT_COLUMNS = {
    "id": "u.id",
    "name": "u.name",
    "slug": "u.slug",
    "currentPrefecture": "u.current_prefecture",
    "createdAt": "u.created_at",
    "updatedAt": "u.updated_at",
}


async def list_users(
    params: PageParams,
    *,
    opportunity_id: str | None = None,
    author_article_id: str | None = None,
    related_article_id: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    filters = Filters()
    filters.search(params.query, ["u.name", "u.slug"])
    if opportunity_id:
        filters.add(
            "EXISTS (SELECT 1 FROM opportunities o "
            f"WHERE o.created_by = u.id AND o.id = {filters.param(opportunity_id)})"
        )
    if author_article_id:
        filters.add(
            "EXISTS (SELECT 1 FROM article_authors aa "
            f"WHERE aa.user_id = u.id AND aa.article_id = {filters.param(author_article_id)})"
        )
    if related_article_id:
        filters.add(
            "EXISTS (SELECT 1 FROM article_related_users ar "
            f"WHERE ar.user_id = u.id AND ar.article_id = {filters.param(related_article_id)})"
        )

    return await fetch_page(
        select=COLUMNS,
        source="users u",
        filters=filters,
        order=f"{order_by(params.sort, SORT_COLUMNS, 'u.created_at ASC')}, u.id ASC",
        params=params,
    )


async def get_user(user_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM users u
        WHERE u.id = $1
        """,
        user_id,
    )


async def create_user(*, name: str, slug: str, current_prefecture: str) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO users (id, name, slug, current_prefecture)
        VALUES ($1, $2, $3, $4)
        RETURNING id, name, slug, current_prefecture, created_at, updated_at
        """,
        str(uuid4()),
        name,
        slug,
        current_prefecture,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def update_user(
    user_id: str,
    *,
    name: str | None = None,
    slug: str | None = None,
    current_prefecture: str | None = None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        UPDATE users
        SET name = COALESCE($2, name),
            slug = COALESCE($3, slug),
            current_prefecture = COALESCE($4, current_prefecture),
            updated_at = now()
        WHERE id = $1
        RETURNING id, name, slug, current_prefecture, created_at, updated_at
        """,
        user_id,
        name,
        slug,
        current_prefecture,
    )


async def delete_user(user_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM users
        WHERE id = $1
        RETURNING id
        """,
        user_id,
    )
    return row is not None
