"""
Content-manager routes for opportunities, plus the form's relation pickers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from communities import service as community_service
from core.listing import PageParams, page_params
from places import service as place_service
from users import service as user_service

from . import service

UID = "api::opportunity.opportunity"

router = APIRouter()


@router.get(f"/collection-types/{UID}")
async def find(params: PageParams = Depends(page_params)) -> dict:
    return await service.find(params)


@router.get(f"/collection-types/{UID}/{{opportunity_id}}")
async def find_one(opportunity_id: str) -> dict:
    return await service.find_one(opportunity_id)


@router.post(f"/collection-types/{UID}")
async def create(payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.create(payload)


@router.put(f"/collection-types/{UID}/{{opportunity_id}}")
async def update(opportunity_id: str, payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.update(opportunity_id, payload)


@router.delete(f"/collection-types/{UID}/{{opportunity_id}}")
async def delete(opportunity_id: str) -> dict:
    return await service.delete(opportunity_id)


@router.get(f"/relations/{UID}/community")
@router.get(f"/relations/{UID}/{{opportunity_id}}/community")
async def find_community_relations(
    opportunity_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await community_service.find(params, opportunity_id=opportunity_id)


@router.get(f"/relations/{UID}/createdByOnDB")
@router.get(f"/relations/{UID}/{{opportunity_id}}/createdByOnDB")
async def find_user_relations(
    opportunity_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await user_service.find(params, opportunity_id=opportunity_id)


@router.get(f"/relations/{UID}/place")
@router.get(f"/relations/{UID}/{{opportunity_id}}/place")
async def find_place_relations(
    opportunity_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await place_service.find(params, opportunity_id=opportunity_id)
