"""
Content-manager routes for places, plus the place form's relation pickers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from cities import service as city_service
from communities import service as community_service
from core.listing import PageParams, page_params

from . import service

UID = "api::place.place"

router = APIRouter()


@router.get(f"/collection-types/{UID}")
async def find(params: PageParams = Depends(page_params)) -> dict:
    return await service.find(params)


@router.get(f"/collection-types/{UID}/{{place_id}}")
async def find_one(place_id: str) -> dict:
    return await service.find_one(place_id)


@router.post(f"/collection-types/{UID}")
async def create(payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.create(payload)


@router.put(f"/collection-types/{UID}/{{place_id}}")
async def update(place_id: str, payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.update(place_id, payload)


@router.delete(f"/collection-types/{UID}/{{place_id}}")
async def delete(place_id: str) -> dict:
    return await service.delete(place_id)


@router.get(f"/relations/{UID}/community")
@router.get(f"/relations/{UID}/{{place_id}}/community")
async def find_community_relations(
    place_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await community_service.find(params, place_id=place_id)


@router.get(f"/relations/{UID}/city")
@router.get(f"/relations/{UID}/{{place_id}}/city")
async def find_city_relations(
    place_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await city_service.find(params, place_id=place_id)
