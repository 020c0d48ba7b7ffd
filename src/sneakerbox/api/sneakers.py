"""Sneaker API routes.

Learn: every route takes the gate's CurrentUser and builds a
SneakerService scoped to that user, so ownership filtering happens in
one place. Responses are marked no-store: a collection is personal and
changes often.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sneakerbox.auth.dependencies import get_current_user
from sneakerbox.auth.gate import CurrentUser
from sneakerbox.db.engine import get_db
from sneakerbox.schemas.sneaker import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    SneakerCreate,
    SneakerDeleteResponse,
    SneakerList,
    SneakerRead,
    SneakerUpdate,
    SneakerUpdateWithId,
)
from sneakerbox.services.sneaker_service import SneakerIdsNotFound, SneakerService

router = APIRouter(prefix="/sneakers")

NOT_FOUND = "Sneaker not found or unauthorized"


def _svc(
    response: Response,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SneakerService:
    response.headers["Cache-Control"] = "no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    return SneakerService(db, owner_id=user.id)


# ─── Collection ─────────────────────────────────────────

@router.get("", response_model=SneakerList)
async def list_sneakers(svc: SneakerService = Depends(_svc)):
    """The caller's sneakers, newest first."""
    return {"sneakers": await svc.list_sneakers()}


@router.post("", response_model=SneakerRead, status_code=201)
async def create_sneaker(body: SneakerCreate, svc: SneakerService = Depends(_svc)):
    return await svc.create_sneaker(body.model_dump())


@router.put("", response_model=SneakerRead)
async def update_sneaker_by_body(
    body: SneakerUpdateWithId, svc: SneakerService = Depends(_svc)
):
    """Update with the id in the body (used by the edit form)."""
    sneaker = await svc.update_sneaker(body.id, body.changes())
    if not sneaker:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return sneaker


@router.delete("", response_model=BulkDeleteResponse)
async def delete_sneakers(body: BulkDeleteRequest, svc: SneakerService = Depends(_svc)):
    """Delete several sneakers at once. All ids must be the caller's."""
    try:
        deleted = await svc.delete_many(body.ids)
    except SneakerIdsNotFound as e:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Some sneaker IDs were not found",
                "found_count": len(e.found),
                "requested_count": e.requested,
            },
        )
    return {
        "message": "Sneakers deleted successfully",
        "count": len(deleted),
        "deleted_sneakers": deleted,
    }


# ─── Single sneaker ─────────────────────────────────────

@router.get("/{sneaker_id}", response_model=SneakerRead)
async def get_sneaker(sneaker_id: uuid.UUID, svc: SneakerService = Depends(_svc)):
    sneaker = await svc.get_sneaker(sneaker_id)
    if not sneaker:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return sneaker


@router.put("/{sneaker_id}", response_model=SneakerRead)
async def update_sneaker(
    sneaker_id: uuid.UUID,
    body: SneakerUpdate,
    svc: SneakerService = Depends(_svc),
):
    sneaker = await svc.update_sneaker(sneaker_id, body.changes())
    if not sneaker:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return sneaker


@router.delete("/{sneaker_id}", response_model=SneakerDeleteResponse)
async def delete_sneaker(sneaker_id: uuid.UUID, svc: SneakerService = Depends(_svc)):
    sneaker = await svc.delete_sneaker(sneaker_id)
    if not sneaker:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"message": "Sneaker deleted successfully", "deleted_sneaker": sneaker}
