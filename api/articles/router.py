"""
Content-manager routes for articles, plus the article form's relation pickers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from communities import service as community_service
from core.listing import PageParams, page_params
from opportunities import service as opportunity_service
from users import service as user_service

from . import service

UID = "api::article.article"

router = APIRouter()


@router.get(f"/collection-types/{UID}")
async def find(params: PageParams = Depends(page_params)) -> dict:
    return await service.find(params)


@router.get(f"/collection-types/{UID}/{{article_id}}")
async def find_one(article_id: str) -> dict:
    return await service.find_one(article_id)


@router.post(f"/collection-types/{UID}")
async def create(payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.create(payload)


@router.put(f"/collection-types/{UID}/{{article_id}}")
async def update(article_id: str, payload: dict[str, Any] | None = Body(default=None)) -> dict:
    return await service.update(article_id, payload)


@router.delete(f"/collection-types/{UID}/{{article_id}}")
async def delete(article_id: str) -> dict:
    return await service.delete(article_id)


@router.get(f"/relations/{UID}/community")
@router.get(f"/relations/{UID}/{{article_id}}/community")
async def find_community_relations(
    article_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await community_service.find(params, article_id=article_id)


@router.get(f"/relations/{UID}/authors")
@router.get(f"/relations/{UID}/{{article_id}}/authors")
async def find_author_relations(
    article_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await user_service.find(params, author_article_id=article_id)


@router.get(f"/relations/{UID}/relatedUsers")
@router.get(f"/relations/{UID}/{{article_id}}/relatedUsers")
async def find_related_user_relations(
    article_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await user_service.find(params, related_article_id=article_id)


@router.get(f"/relations/{UID}/opportunities")
@router.get(f"/relations/{UID}/{{article_id}}/opportunities")
async def find_opportunity_relations(
    article_id: str | None = None,
    params: PageParams = Depends(page_params),
) -> dict:
    return await opportunity_service.find(params, article_id=article_id)
