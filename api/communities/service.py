"""
Community business logic: row mapping and write rules.
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

logger = logging.getLogger(__name__)


def _not_found(community_id: str):
    return not_found(f"Community not found: {community_id}")


def to_node(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "documentId": row["id"],
        "name": row["name"],
        "pointName": row["point_name"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


async def find(
    params: PageParams,
    *,
    opportunity_id: str | None = None,
    article_id: str | None = None,
    place_id: str | None = None,
) -> dict:
    rows, total = await repository.list_communities(
        params,
        opportunity_id=opportunity_id,
        article_id=article_id,
        place_id=place_id,
    )
    return listing.list_envelope([to_node(r) for r in rows], total=total, params=params)


async def find_one(community_id: str) -> dict:
    row = await repository.get_community(community_id)
    if row is None:
        raise _not_found(community_id)
    return listing.one_envelope(to_node(row))


async def create(data: Any) -> dict:
    data = require_body(data)
    name = present(data, "name")
    point_name = present(data, "pointName")
    if not name or not point_name:
        raise bad_request("name and pointName are required.")
    try:
        row = await repository.create_community(name=name, point_name=point_name)
    except Exception as exc:
        logger.exception("community_create_failed")
        raise bad_request(CREATE_FAILED) from exc
    return listing.write_envelope(to_node(row))


async def update(community_id: str, data: Any) -> dict:
    data = require_body(data)
    if await repository.get_community(community_id) is None:
        raise _not_found(community_id)
    try:
        row = await repository.update_community(
            community_id,
            name=present(data, "name"),
            point_name=present(data, "pointName"),
        )
    except Exception as exc:
        logger.exception("community_update_failed id=%s", community_id)
        raise bad_request(UPDATE_FAILED) from exc
    if row is None:
        raise _not_found(community_id)
    return listing.write_envelope(to_node(row))


async def delete(community_id: str) -> dict:
    if await repository.get_community(community_id) is None:
        raise _not_found(community_id)
    try:
        await repository.delete_community(community_id)
    except Exception as exc:
        logger.exception("community_delete_failed id=%s", community_id)
        raise bad_request(DELETE_FAILED) from exc
    return listing.write_envelope(None)
