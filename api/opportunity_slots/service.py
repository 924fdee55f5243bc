"""
Opportunity-slot business logic.

A slot must start before it ends; that rule is checked against the stored
values when an update only changes one side.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from core import listing, relations
from core.listing import PageParams
from core.payload import (
    CREATE_FAILED,
    DELETE_FAILED,
    UPDATE_FAILED,
    bad_request,
    not_found,
    require_body,
)
from opportunities import repository as opportunity_repository

from . import repository, schemas

INVALID_RANGE = "startsAt must be earlier than endsAt."

logger = logging.getLogger(__name__)


def _not_found(slot_id: str):
    return not_found(f"Opportunity slot not found: {slot_id}")


def _parse(data: dict[str, Any]) -> schemas.SlotPayload:
    try:
        return schemas.SlotPayload.model_validate(data)
    except ValidationError as exc:
        raise bad_request(f"Invalid opportunity slot: {exc.errors()[0]['msg']}") from exc


def _check_range(starts_at: datetime | None, ends_at: datetime | None) -> None:
    if starts_at is None or ends_at is None or not starts_at < ends_at:
        raise bad_request(INVALID_RANGE)


def opportunity_summary(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return {
        "id": row["id"],
        "documentId": row["id"],
        "title": row["title"],
        "description": row["description"],
        "body": row["body"],
        "category": row["category"],
        "requireApproval": row["require_approval"],
        "communityId": row["community_id"],
        "placeId": row["place_id"],
        "createdByOnDB": row["created_by"],
        "images": [],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def to_node(row: dict[str, Any], opportunity: dict[str, Any] | None = None) -> dict[str, Any]:
    node = {
        "id": row["id"],
        "documentId": row["id"],
        "startsAt": row["starts_at"],
        "endsAt": row["ends_at"],
        "capacity": row["capacity"],
        "opportunityId": row["opportunity_id"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }
    if opportunity is not None:
        node["opportunity"] = opportunity_summary(opportunity)
    return node


async def find(params: PageParams) -> dict:
    rows, total = await repository.list_slots(params)
    opportunity_ids = list({row["opportunity_id"] for row in rows})
    opportunities = {
        row["id"]: row for row in await opportunity_repository.get_opportunities(opportunity_ids)
    }
    results = [to_node(row, opportunities.get(row["opportunity_id"])) for row in rows]
    return listing.list_envelope(results, total=total, params=params)


async def find_one(slot_id: str) -> dict:
    row = await repository.get_slot(slot_id)
    if row is None:
        raise _not_found(slot_id)
    opportunity = await opportunity_repository.get_opportunity(row["opportunity_id"])
    return listing.one_envelope(to_node(row, opportunity))


async def create(data: Any) -> dict:
    payload = _parse(require_body(data))
    _check_range(payload.starts_at, payload.ends_at)
    opportunity_id = relations.first_connect_id(payload.opportunity)
    if opportunity_id is None:
        raise bad_request("opportunity is required.")

    try:
        row = await repository.create_slot(
            opportunity_id=opportunity_id,
            starts_at=payload.starts_at,
            ends_at=payload.ends_at,
            capacity=payload.capacity,
        )
    except Exception as exc:
        logger.exception("slot_create_failed opportunity_id=%s", opportunity_id)
        raise bad_request(CREATE_FAILED) from exc
    return listing.write_envelope(to_node(row))


async def update(slot_id: str, data: Any) -> dict:
    payload = _parse(require_body(data))
    existing = await repository.get_slot(slot_id)
    if existing is None:
        raise _not_found(slot_id)
    _check_range(
        payload.starts_at or existing["starts_at"],
        payload.ends_at or existing["ends_at"],
    )

    try:
        row = await repository.update_slot(
            slot_id,
            starts_at=payload.starts_at,
            ends_at=payload.ends_at,
            capacity=payload.capacity,
            opportunity_id=relations.first_connect_id(payload.opportunity),
        )
    except Exception as exc:
        logger.exception("slot_update_failed id=%s", slot_id)
        raise bad_request(UPDATE_FAILED) from exc
    if row is None:
        raise _not_found(slot_id)
    return listing.write_envelope(to_node(row))


async def delete(slot_id: str) -> dict:
    if await repository.get_slot(slot_id) is None:
        raise _not_found(slot_id)
    try:
        await repository.delete_slot(slot_id)
    except Exception as exc:
        logger.exception("slot_delete_failed id=%s", slot_id)
        raise bad_request(DELETE_FAILED) from exc
    return listing.write_envelope(None)
