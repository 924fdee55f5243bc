"""
Content-manager routes for opportunity slots.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from core.listing import PageParams, page_params
from opportunities import service as opportunity_service

from . import service

UID = "api::opportunity-slot.opportunity-slot"

router = APIRouter()


@router.get(f"/collection-types/{UID}")
async def find(params: PageParams = Depends(page_params)) -> dict:
    return await service.find(params)


@router.get(f"/collection-types/{UID}/{{slot_id}}")
async def find_one(slot_id: str) -> dict:
    return await service.find_one(slot_id)


@router.post(f"/collection-types/{UID}")
async def create(payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.create(payload)


@router.put(f"/collection-types/{UID}/{{slot_id}}")
async def update(slot_id: str, payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.update(slot_id, payload)


@router.delete(f"/collection-types/{UID}/{{slot_id}}")
async def delete(slot_id: str) -> dict:
    return await service.delete(slot_id)


@router.get(f"/relations/{UID}/opportunity")
@router.get(f"/relations/{UID}/{{slot_id}}/opportunity")
async def find_opportunity_relations(
    slot_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await opportunity_service.find(params, slot_id=slot_id)
