"""
Content-manager routes for users.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from core.listing import PageParams, page_params

from . import service

UID = "api::user.user"

router = APIRouter()


@router.get(f"/collection-types/{UID}")
async def find(params: PageParams = Depends(page_params)) -> dict:
    return await service.find(params)


@router.get(f"/collection-types/{UID}/{{user_id}}")
async def find_one(user_id: str) -> dict:
    return await service.find_one(user_id)


@router.post(f"/collection-types/{UID}")
async def create(payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.create(payload)


@router.put(f"/collection-types/{UID}/{{user_id}}")
async def update(user_id: str, payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.update(user_id, payload)


@router.delete(f"/collection-types/{UID}/{{user_id}}")
async def delete(user_id: str) -> dict:
    return await service.delete(user_id)
