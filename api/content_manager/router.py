"""
The content-manager route table.

Every content type's router is mounted here so `main.py` only has to include
this one. Routes shared by all types live here too.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from articles import router as article_router
from cities import router as city_router
from communities import router as community_router
from opportunities import router as opportunity_router
from opportunity_slots import router as slot_router
from places import router as place_router
from users import router as user_router

CONTENT_ROUTERS = (
    article_router,
    city_router,
    community_router,
    opportunity_router,
    slot_router,
    place_router,
    user_router,
)

CONTENT_TYPE_UIDS = frozenset(module.UID for module in CONTENT_ROUTERS)

router = APIRouter()


@router.get("/collection-types/{uid}/{entry_id}/actions/countDraftRelations")
async def count_draft_relations(uid: str, entry_id: str) -> dict:
    """
    These types have no draft/publish workflow, so there is never a draft
    relation to warn about.
    """
    if uid not in CONTENT_TYPE_UIDS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown content type: {uid}")
    return {"data": 0}


for module in CONTENT_ROUTERS:
    router.include_router(module.router)
