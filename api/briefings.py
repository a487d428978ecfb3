"""Briefing REST endpoints.

Authentication happens upstream; the gateway forwards the authenticated user
id in the ``X-User-Id`` header.
"""

import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from newsbrief.core.schemas import (
    BriefingListResponse,
    BriefingResponse,
    BriefingStatusResponse,
    GenerateRequest,
    GenerateResponse,
)
from newsbrief.orchestrators.briefing import BriefingService

router = APIRouter(prefix="/api/briefings", tags=["briefings"])


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> uuid.UUID:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user id")
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id") from None


def get_briefing_service(request: Request) -> BriefingService:
    return request.app.state.briefing_service


@router.post("/generate", response_model=GenerateResponse, status_code=202)
async def generate_briefing(
    body: GenerateRequest | None = None,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: BriefingService = Depends(get_briefing_service),
):
    """Queue a new briefing; poll its status with the returned id."""
    return await service.generate(user_id, body or GenerateRequest())


@router.get("/{briefing_id}/status", response_model=BriefingStatusResponse)
async def briefing_status(
    briefing_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: BriefingService = Depends(get_briefing_service),
):
    return await service.get_status(briefing_id, user_id)


@router.get("/{briefing_id}", response_model=BriefingResponse)
async def get_briefing(
    briefing_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: BriefingService = Depends(get_briefing_service),
):
    return await service.get(briefing_id, user_id)


@router.get("", response_model=BriefingListResponse)
async def list_briefings(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: BriefingService = Depends(get_briefing_service),
):
    return await service.list_for_user(user_id, limit=limit, offset=offset)
