"""
Opportunity-slot persistence (raw SQL).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from core import db
from core.listing import Filters, PageParams, fetch_page, order_by

COLUMNS = "s.id, s.opportunity_id, s.starts_at, s.ends_at, s.capacity, s.created_at, s.updated_at"
RETURNING = "id, opportunity_id, starts_at, ends_at, capacity, created_at, updated_at"

SORT_COLUMNS = {
    "id": "s.id",
    "startsAt": "s.starts_at",
    "endsAt": "s.ends_at",
    "capacity": "s.capacity",
    "createdAt": "s.created_at",
    "updatedAt": "s.updated_at",
}


async def list_slots(params: PageParams) -> tuple[list[dict[str, Any]], int]:
    return await fetch_page(
        select=COLUMNS,
        source="opportunity_slots s",
        filters=Filters(),
        order=f"{order_by(params.sort, SORT_COLUMNS, 's.created_at ASC')}, s.id ASC",
        params=params,
    )


async def get_slot(slot_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM opportunity_slots s
        WHERE s.id = $1
        """,
        slot_id,
    )


async def create_slot(
    *,
    opportunity_id: str,
    starts_at: datetime,
    ends_at: datetime,
    capacity: int | None,
) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO opportunity_slots (id, opportunity_id, starts_at, ends_at, capacity)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {RETURNING}
        """,
        str(uuid4()),
        opportunity_id,
        starts_at,
        ends_at,
        capacity,
    )
    if row is None:
        raise RuntimeError("Failed to create opportunity slot.")
    return row


async def update_slot(
    slot_id: str,
    *,
    starts_at: datetime | None = None,
    ends_at: datetime | None = None,
    capacity: int | None = None,
    opportunity_id: str | None = None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE opportunity_slots
        SET starts_at = COALESCE($2, starts_at),
            ends_at = COALESCE($3, ends_at),
            capacity = COALESCE($4, capacity),
            opportunity_id = COALESCE($5, opportunity_id),
            updated_at = now()
        WHERE id = $1
        RETURNING {RETURNING}
        """,
        slot_id,
        starts_at,
        ends_at,
        capacity,
        opportunity_id,
    )


async def delete_slot(slot_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM opportunity_slots
        WHERE id = $1
        RETURNING id
        """,
        slot_id,
    )
    return row is not None
