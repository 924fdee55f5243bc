"""
Article business logic.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from core import db, listing, relations
from core.listing import PageParams
from core.payload import (
    CREATE_FAILED,
    DELETE_FAILED,
    UPDATE_FAILED,
    bad_request,
    not_found,
    present,
    require_body,
)
from images import repository as image_repository
from images import transformer
from images.reconciler import ImageReference

from . import repository

_DATETIME = TypeAdapter(datetime)

logger = logging.getLogger(__name__)


def _not_found(article_id: str):
    return not_found(f"Article not found: {article_id}")


def to_node(row: dict[str, Any], thumbnail: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "id": row["id"],
        "documentId": row["id"],
        "title": row["title"],
        "introduction": row["introduction"],
        "body": row["body"],
        "category": row["category"],
        "publishStatus": row["publish_status"],
        "thumbnail": transformer.to_admin(thumbnail) if thumbnail else None,
        "communityId": row["community_id"],
        "publishedAtOnDB": row["published_at"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def _published_at(data: dict[str, Any]) -> datetime | None:
    value = present(data, "publishedAtOnDB")
    if value is None:
        return None
    try:
        return _DATETIME.validate_python(value)
    except ValidationError as exc:
        raise bad_request("publishedAtOnDB must be a date-time.") from exc


async def _thumbnail(payload: Any) -> str | transformer.ImageRecord | None:
    """
    Resolve an inline thumbnail to an existing image id or a new record.

    Raises ImageTransformError when a new record cannot be built.
    """
    if not isinstance(payload, dict):
        return None
    ref = ImageReference.from_payload(payload)
    if ref.url:
        found = await image_repository.ids_by_url([ref.url])
        if ref.url in found:
            return found[ref.url]
    return transformer.from_admin(ref)


async def _store_thumbnail(conn, thumbnail: str | transformer.ImageRecord | None) -> str | None:
    if isinstance(thumbnail, transformer.ImageRecord):
        return await image_repository.insert_image(conn, thumbnail)
    return thumbnail


async def _update_links(conn, article_id: str, data: dict[str, Any]) -> None:
    for field in repository.LINK_TABLES:
        if field not in data:
            continue
        await repository.update_links(
            conn,
            article_id,
            field,
            connect=relations.connect_ids(data[field]),
            disconnect=relations.disconnect_ids(data[field]),
        )


async def _with_thumbnails(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    thumbnails = await image_repository.get_images([row["thumbnail_id"] for row in rows if row["thumbnail_id"]])
    return [to_node(row, thumbnails.get(row["thumbnail_id"])) for row in rows]


async def find(params: PageParams) -> dict:
    rows, total = await repository.list_articles(params)
    return listing.list_envelope(await _with_thumbnails(rows), total=total, params=params)


async def find_one(article_id: str) -> dict:
    row = await repository.get_article(article_id)
    if row is None:
        raise _not_found(article_id)
    (node,) = await _with_thumbnails([row])
    return listing.one_envelope(node)


async def create(data: Any) -> dict:
    data = require_body(data)
    title = present(data, "title")
    community_id = relations.first_connect_id(data.get("community"))
    if not title:
        raise bad_request("title is required.")
    if community_id is None:
        raise bad_request("community is required.")
    published_at = _published_at(data)

    try:
        thumbnail = await _thumbnail(data.get("thumbnail"))
        async with db.transaction() as conn:
            row = await repository.create_article(
                conn,
                title=title,
                introduction=data.get("introduction"),
                body=data.get("body"),
                category=data.get("category"),
                publish_status=data.get("publishStatus"),
                published_at=published_at,
                thumbnail_id=await _store_thumbnail(conn, thumbnail),
                community_id=community_id,
            )
            await _update_links(conn, row["id"], data)
    except transformer.ImageTransformError as exc:
        raise bad_request(f"Invalid thumbnail: {exc}") from exc
    except Exception as exc:
        logger.exception("article_create_failed")
        raise bad_request(CREATE_FAILED) from exc

    (node,) = await _with_thumbnails([row])
    return listing.write_envelope(node)


async def update(article_id: str, data: Any) -> dict:
    data = require_body(data)
    if await repository.get_article(article_id) is None:
        raise _not_found(article_id)
    published_at = _published_at(data)

    try:
        thumbnail = await _thumbnail(data.get("thumbnail"))
        async with db.transaction() as conn:
            row = await repository.update_article(
                conn,
                article_id,
                title=present(data, "title"),
                introduction=present(data, "introduction"),
                body=present(data, "body"),
                category=present(data, "category"),
                publish_status=present(data, "publishStatus"),
                published_at=published_at,
                thumbnail_id=await _store_thumbnail(conn, thumbnail),
                community_id=relations.first_connect_id(data.get("community")),
            )
            if row is not None:
                await _update_links(conn, article_id, data)
    except transformer.ImageTransformError as exc:
        raise bad_request(f"Invalid thumbnail: {exc}") from exc
    except Exception as exc:
        logger.exception("article_update_failed id=%s", article_id)
        raise bad_request(UPDATE_FAILED) from exc

    if row is None:
        raise _not_found(article_id)
    (node,) = await _with_thumbnails([row])
    return listing.write_envelope(node)


async def delete(article_id: str) -> dict:
    if await repository.get_article(article_id) is None:
        raise _not_found(article_id)
    try:
        await repository.delete_article(article_id)
    except Exception as exc:
        logger.exception("article_delete_failed id=%s", article_id)
        raise bad_request(DELETE_FAILED) from exc
    return listing.write_envelope(None)
