"""
Image persistence (raw SQL).

Tables:
- images(id text, strapi_id int, url, bucket, folder_path, filename, size,
  width, height, mime, ext, alt, caption, is_public, created_at)
- opportunity_images(opportunity_id text, image_id text)
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Sequence
from uuid import uuid4

import asyncpg

from core import db

from .reconciler import ExistingImage, ReconciliationPlan
from .transformer import ImageRecord

IMAGE_COLUMNS = """
    i.id, i.strapi_id, i.url, i.bucket, i.folder_path, i.filename, i.size,
    i.width, i.height, i.mime, i.ext, i.alt, i.caption, i.is_public, i.created_at
"""


async def get_images(image_ids: Sequence[str]) -> dict[str, dict[str, Any]]:
    ids = [i for i in dict.fromkeys(image_ids) if i]
    if not ids:
        return {}
    rows = await db.fetch_all(
        f"""
        SELECT {IMAGE_COLUMNS}
        FROM images i
        WHERE i.id = ANY($1::text[])
        """,
        ids,
    )
    return {str(row["id"]): row for row in rows}


async def existing_ids(ids: Sequence[str]) -> dict[str, str]:
    """
    Resolve candidate ids against both the primary key and the legacy media id.

    A primary-key match wins over a legacy-id match for the same candidate.
    """
    if not ids:
        return {}
    rows = await db.fetch_all(
        """
        SELECT id, strapi_id
        FROM images
        WHERE id = ANY($1::text[])
           OR strapi_id::text = ANY($1::text[])
        ORDER BY created_at ASC, id ASC
        """,
        list(ids),
    )
    by_id = {str(row["id"]): str(row["id"]) for row in rows}
    by_legacy: dict[str, str] = {}
    for row in rows:
        if row["strapi_id"] is not None:
            by_legacy.setdefault(str(row["strapi_id"]), str(row["id"]))

    resolved: dict[str, str] = {}
    for candidate in ids:
        store_id = by_id.get(candidate) or by_legacy.get(candidate)
        if store_id is not None:
            resolved[candidate] = store_id
    return resolved


async def ids_by_url(urls: Sequence[str]) -> dict[str, str]:
    if not urls:
        return {}
    rows = await db.fetch_all(
        """
        SELECT id, url
        FROM images
        WHERE url = ANY($1::text[])
        ORDER BY created_at ASC, id ASC
        """,
        list(urls),
    )
    resolved: dict[str, str] = {}
    for row in rows:
        resolved.setdefault(str(row["url"]), str(row["id"]))
    return resolved


class SqlImageStore:
    """
    `ImageStore` backed by the `images` table.
    """

    async def existing_ids(self, ids: Sequence[str]) -> dict[str, str]:
        return await existing_ids(ids)

    async def ids_by_url(self, urls: Sequence[str]) -> dict[str, str]:
        return await ids_by_url(urls)


async def list_for_opportunities(opportunity_ids: Sequence[str]) -> dict[str, list[dict[str, Any]]]:
    if not opportunity_ids:
        return {}
    rows = await db.fetch_all(
        f"""
        SELECT oi.opportunity_id, {IMAGE_COLUMNS}
        FROM opportunity_images oi
        JOIN images i ON i.id = oi.image_id
        WHERE oi.opportunity_id = ANY($1::text[])
        ORDER BY i.created_at ASC, i.id ASC
        """,
        list(opportunity_ids),
    )
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[str(row.pop("opportunity_id"))].append(row)
    return dict(grouped)


async def list_for_opportunity(opportunity_id: str) -> list[dict[str, Any]]:
    grouped = await list_for_opportunities([opportunity_id])
    return grouped.get(opportunity_id, [])


async def existing_for_opportunity(opportunity_id: str) -> list[ExistingImage]:
    rows = await db.fetch_all(
        """
        SELECT i.id, i.url
        FROM opportunity_images oi
        JOIN images i ON i.id = oi.image_id
        WHERE oi.opportunity_id = $1
        """,
        opportunity_id,
    )
    return [ExistingImage(id=str(row["id"]), url=row["url"]) for row in rows]


async def insert_image(conn: asyncpg.Connection, record: ImageRecord) -> str:
    image_id = str(uuid4())
    await conn.execute(
        """
        INSERT INTO images (
          id, strapi_id, url, bucket, folder_path, filename, size,
          width, height, mime, ext, alt, caption, is_public
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
        """,
        image_id,
        record.strapi_id,
        record.url,
        record.bucket,
        record.folder_path,
        record.filename,
        record.size,
        record.width,
        record.height,
        record.mime,
        record.ext,
        record.alt,
        record.caption,
        record.is_public,
    )
    return image_id


async def apply_opportunity_plan(
    conn: asyncpg.Connection,
    opportunity_id: str,
    plan: ReconciliationPlan,
) -> list[str]:
    """
    Apply a plan to `opportunity_images` on an open transaction.

    Order: create new rows, detach everything listed, attach the desired set.
    Returns the ids attached.
    """
    created_ids = [await insert_image(conn, record) for record in plan.to_create]

    if plan.to_disconnect:
        await conn.execute(
            """
            DELETE FROM opportunity_images
            WHERE opportunity_id = $1
              AND image_id = ANY($2::text[])
            """,
            opportunity_id,
            plan.to_disconnect,
        )

    attach = list(dict.fromkeys([*plan.to_connect, *created_ids]))
    if attach:
        await conn.executemany(
            """
            INSERT INTO opportunity_images (opportunity_id, image_id)
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
            """,
            [(opportunity_id, image_id) for image_id in attach],
        )
    return attach
