"""
Content-manager routes for cities (read-only).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from core.listing import PageParams, page_params

from . import service

UID = "api::city.city"

logger = logging.getLogger(__name__)

router = APIRouter()


def _read_only(action: str) -> HTTPException:
    logger.warning("city_write_rejected action=%s", action)
    return HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail=f"Cities cannot be {action}.",
    )


@router.get(f"/collection-types/{UID}")
async def find(params: PageParams = Depends(page_params)) -> dict:
    return await service.find(params)


@router.get(f"/collection-types/{UID}/{{code}}")
async def find_one(code: str) -> dict:
    return await service.find_one(code)


@router.post(f"/collection-types/{UID}")
async def create() -> dict:
    raise _read_only("created")


@router.put(f"/collection-types/{UID}/{{code}}")
async def update(code: str) -> dict:
    raise _read_only("edited")


@router.delete(f"/collection-types/{UID}/{{code}}")
async def delete(code: str) -> dict:
    raise _read_only("deleted")
