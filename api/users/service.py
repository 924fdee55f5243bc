"""
User business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from core import listing
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

from . import repository

DEFAULT_PREFECTURE = "OUTSIDE_SHIKOKU"

logger = logging.getLogger(__name__)


def _not_found(user_id: str):
    return not_found(f"User not found: {user_id}")


def to_node(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "documentId": row["id"],
        "name": row["name"],
        "slug": row["slug"],
        "currentPrefecture": row["current_prefecture"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


async def find(
    params: PageParams,
    *,
    opportunity_id: str | None = None,
    author_article_id: str | None = None,
    related_article_id: str | None = None,
) -> dict:
    rows, total = await repository.list_users(
        params,
        opportunity_id=opportunity_id,
        author_article_id=author_article_id,
        related_article_id=related_article_id,
    )
    return listing.list_envelope([to_node(r) for r in rows], total=total, params=params)


async def find_one(user_id: str) -> dict:
    row = await repository.get_user(user_id)
    if row is None:
        raise _not_found(user_id)
    return listing.one_envelope(to_node(row))


async def create(data: Any) -> dict:
    data = require_body(data)
    name = present(data, "name")
    if not name:
        raise bad_request("name is required.")
    try:
        row = await repository.create_user(
            name=name,
            slug=data.get("slug") or "",
            current_prefecture=data.get("currentPrefecture") or DEFAULT_PREFECTURE,
        )
    except Exception as exc:
        logger.exception("user_create_failed")
        raise bad_request(CREATE_FAILED) from exc
    return listing.write_envelope(to_node(row))


async def update(user_id: str, data: Any) -> dict:
    data = require_body(data)
    if await repository.get_user(user_id) is None:
        raise _not_found(user_id)
    try:
        row = await repository.update_user(
            user_id,
            name=present(data, "name"),
            slug=present(data, "slug"),
            current_prefecture=present(data, "currentPrefecture"),
        )
    except Exception as exc:
        logger.exception("user_update_failed id=%s", user_id)
        raise bad_request(UPDATE_FAILED) from exc
    if row is None:
        raise _not_found(user_id)
    return listing.write_envelope(to_node(row))


async def delete(user_id: str) -> dict:
    if await repository.get_user(user_id) is None:
        raise _not_found(user_id)
    try:
        await repository.delete_user(user_id)
    except Exception as exc:
        logger.exception("user_delete_failed id=%s", user_id)
        raise bad_request(DELETE_FAILED) from exc
    return listing.write_envelope(None)
