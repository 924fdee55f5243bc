"""
Place business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from core import listing, relations
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


def _not_found(place_id: str):
    return not_found(f"Place not found: {place_id}")


def _coordinate(location: Any, key: str) -> float | None:
    if not isinstance(location, dict):
        return None
    value = location.get(key)
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise bad_request(f"location.{key} must be a number.") from exc


def to_node(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "documentId": row["id"],
        "name": row["name"],
        "displayName": row["name"],
        "cityCode": row["city_code"],
        "address": row["address"],
        "location": {
            "lat": float(row["latitude"]),
            "lng": float(row["longitude"]),
        },
        "communityId": row["community_id"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


async def find(params: PageParams, *, opportunity_id: str | None = None) -> dict:
    rows, total = await repository.list_places(params, opportunity_id=opportunity_id)
    return listing.list_envelope([to_node(r) for r in rows], total=total, params=params)


async def find_one(place_id: str) -> dict:
    row = await repository.get_place(place_id)
    if row is None:
        raise _not_found(place_id)
    return listing.one_envelope(to_node(row))


async def create(data: Any) -> dict:
    data = require_body(data)
    location = data.get("location")
    latitude = _coordinate(location, "lat")
    longitude = _coordinate(location, "lng")
    city_code = relations.first_connect_id(data.get("city"))
    community_id = relations.first_connect_id(data.get("community"))
    name = present(data, "name")
    address = present(data, "address")
    if not name or not address or latitude is None or longitude is None:
        raise bad_request("name, address and location are required.")
    if city_code is None or community_id is None:
        raise bad_request("city and community are required.")

    try:
        row = await repository.create_place(
            name=name,
            address=address,
            latitude=latitude,
            longitude=longitude,
            city_code=city_code,
            community_id=community_id,
        )
    except Exception as exc:
        logger.exception("place_create_failed")
        raise bad_request(CREATE_FAILED) from exc
    return listing.write_envelope(to_node(row))


async def update(place_id: str, data: Any) -> dict:
    data = require_body(data)
    if await repository.get_place(place_id) is None:
        raise _not_found(place_id)

    location = data.get("location")
    # Zero coordinates count as "unchanged", matching the other fields.
    latitude = _coordinate(location, "lat") or None
    longitude = _coordinate(location, "lng") or None
    try:
        row = await repository.update_place(
            place_id,
            name=present(data, "name"),
            address=present(data, "address"),
            latitude=latitude,
            longitude=longitude,
            city_code=relations.first_connect_id(data.get("city")),
            community_id=relations.first_connect_id(data.get("community")),
        )
    except Exception as exc:
        logger.exception("place_update_failed id=%s", place_id)
        raise bad_request(UPDATE_FAILED) from exc
    if row is None:
        raise _not_found(place_id)
    return listing.write_envelope(to_node(row))


async def delete(place_id: str) -> dict:
    if await repository.get_place(place_id) is None:
        raise _not_found(place_id)
    try:
        await repository.delete_place(place_id)
    except Exception as exc:
        logger.exception("place_delete_failed id=%s", place_id)
        raise bad_request(DELETE_FAILED) from exc
    return listing.write_envelope(None)
