# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Participant change request endpoints"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.auth.dependencies import User, get_current_user
from teammove.config import settings
from teammove.database import get_db
from teammove.middleware.rate_limit import limiter
from teammove.models.change_request import ChangeRequestStatus
from teammove.schemas.change_request import (
    ChangeRequestCreate,
    ChangeRequestDecision,
    ChangeRequestResponse,
)
from teammove.services.change_request_service import ChangeRequestService

router = APIRouter(tags=["change-requests"])


@router.post(
    "/participants/{participant_id}/change-request",
    response_model=ChangeRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.rate_limit_public)
async def submit_change_request(
    request: Request,
    participant_id: UUID,
    payload: ChangeRequestCreate,
    db: AsyncSession = Depends(get_db),
):
    """Public endpoint: the participant proves their identity with the registered email."""
    change_request = await ChangeRequestService(db).submit(participant_id, payload)
    return ChangeRequestResponse.model_validate(change_request)


@router.get("/events/{event_id}/change-requests", response_model=List[ChangeRequestResponse])
async def list_change_requests(
    event_id: UUID,
    status_filter: Optional[ChangeRequestStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await ChangeRequestService(db).list_for_event(
        event_id,
        user.organization_id,
        status=status_filter.value if status_filter else None,
    )
    return [ChangeRequestResponse.model_validate(r) for r in requests]


@router.put("/change-requests/{request_id}", response_model=ChangeRequestResponse)
async def decide_change_request(
    request_id: UUID,
    payload: ChangeRequestDecision,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending request. Approvals are applied immediately."""
    change_request = await ChangeRequestService(db).decide(request_id, user.organization_id, payload)
    return ChangeRequestResponse.model_validate(change_request)
