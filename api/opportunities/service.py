"""
Opportunity business logic.

Images are a many-to-many relation. On create and update the submitted image
list is the complete desired set; `images.reconciler` turns it into a plan
that is applied in the same transaction as the opportunity row itself.
Write responses leave `images` empty; the admin refetches the entity.
"""

from __future__ import annotations

import logging
from typing import Any

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
from images import reconciler
from images import repository as image_repository
from images import transformer

from . import repository

logger = logging.getLogger(__name__)


def _not_found(opportunity_id: str):
    return not_found(f"Opportunity not found: {opportunity_id}")


def to_node(row: dict[str, Any], images: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "id": row["id"],
        "documentId": row["id"],
        "title": row["title"],
        "description": row["description"],
        "body": row["body"],
        "category": row["category"],
        "images": [transformer.to_admin(image) for image in images or []],
        "communityId": row["community_id"],
        "placeId": row["place_id"],
        "requireApproval": row["require_approval"],
        "createdByOnDB": row["created_by"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


async def find(
    params: PageParams,
    *,
    article_id: str | None = None,
    slot_id: str | None = None,
) -> dict:
    rows, total = await repository.list_opportunities(params, article_id=article_id, slot_id=slot_id)
    images = await image_repository.list_for_opportunities([row["id"] for row in rows])
    results = [to_node(row, images.get(row["id"], [])) for row in rows]
    return listing.list_envelope(results, total=total, params=params)


async def find_one(opportunity_id: str) -> dict:
    row = await repository.get_opportunity(opportunity_id)
    if row is None:
        raise _not_found(opportunity_id)
    images = await image_repository.list_for_opportunity(opportunity_id)
    return listing.one_envelope(to_node(row, images))


async def plan_images(
    opportunity_id: str | None,
    images_payload: Any,
    existing: list[reconciler.ExistingImage],
) -> reconciler.ReconciliationPlan:
    """
    Build the image plan and log the references that had to be skipped.
    """
    plan = await reconciler.reconcile(
        reconciler.parse_image_payload(images_payload),
        existing,
        image_repository.SqlImageStore(),
    )
    for failure in plan.failures:
        logger.warning(
            "image_skipped opportunity_id=%s url=%s id=%s reason=%s",
            opportunity_id,
            failure.reference.url,
            failure.reference.id,
            failure.reason,
        )
    return plan


def _require_approval(data: dict[str, Any]) -> bool | None:
    value = data.get("requireApproval")
    if value is None:
        return None
    return bool(value)


async def create(data: Any) -> dict:
    data = require_body(data)
    title = present(data, "title")
    category = present(data, "category")
    community_id = relations.first_connect_id(data.get("community"))
    place_id = relations.first_connect_id(data.get("place"))
    created_by = relations.first_connect_id(data.get("createdByUserOnDB"))
    if not title or not category:
        raise bad_request("title and category are required.")
    if community_id is None or place_id is None or created_by is None:
        raise bad_request("community, place and createdByUserOnDB are required.")

    try:
        plan = None
        if data.get("images") is not None:
            plan = await plan_images(None, data["images"], [])

        async with db.transaction() as conn:
            row = await repository.create_opportunity(
                conn,
                title=title,
                description=data.get("description"),
                body=data.get("body"),
                category=category,
                require_approval=bool(_require_approval(data)),
                community_id=community_id,
                place_id=place_id,
                created_by=created_by,
            )
            if plan is not None and not plan.is_empty:
                await image_repository.apply_opportunity_plan(conn, row["id"], plan)
    except Exception as exc:
        logger.exception("opportunity_create_failed")
        raise bad_request(CREATE_FAILED) from exc

    return listing.write_envelope(to_node(row))


async def update(opportunity_id: str, data: Any) -> dict:
    data = require_body(data)
    if await repository.get_opportunity(opportunity_id) is None:
        raise _not_found(opportunity_id)

    try:
        plan = None
        if "images" in data:
            existing = await image_repository.existing_for_opportunity(opportunity_id)
            plan = await plan_images(opportunity_id, data["images"], existing)

        async with db.transaction() as conn:
            row = await repository.update_opportunity(
                conn,
                opportunity_id,
                title=present(data, "title"),
                description=present(data, "description"),
                body=present(data, "body"),
                category=present(data, "category"),
                require_approval=_require_approval(data),
                community_id=relations.first_connect_id(data.get("community")),
                place_id=relations.first_connect_id(data.get("place")),
                created_by=relations.first_connect_id(data.get("createdByUserOnDB")),
            )
            if row is not None and plan is not None and not plan.is_empty:
                await image_repository.apply_opportunity_plan(conn, opportunity_id, plan)
    except Exception as exc:
        logger.exception("opportunity_update_failed id=%s", opportunity_id)
        raise bad_request(UPDATE_FAILED) from exc

    if row is None:
        raise _not_found(opportunity_id)
    return listing.write_envelope(to_node(row))


async def delete(opportunity_id: str) -> dict:
    if await repository.get_opportunity(opportunity_id) is None:
        raise _not_found(opportunity_id)
    try:
        await repository.delete_opportunity(opportunity_id)
    except Exception as exc:
        logger.exception("opportunity_delete_failed id=%s", opportunity_id)
        raise bad_request(DELETE_FAILED) from exc
    return listing.write_envelope(None)
