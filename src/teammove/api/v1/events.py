# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Event endpoints. Creation and deletion are gated by the organization's plan"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.api.v1.deps import load_owned_event, total_pages
from teammove.auth.dependencies import User, get_current_user
from teammove.database import get_db
from teammove.errors import OrganizationNotFoundError, TeamMoveError, TeamMoveErrorCode
from teammove.logging_config import get_logger
from teammove.models.event import Event, EventStatus
from teammove.repositories.event import EventRepository
from teammove.repositories.organization import OrganizationRepository
from teammove.schemas.event import (
    EventCreate,
    EventListResponse,
    EventReminderResponse,
    EventResponse,
    EventUpdate,
)
from teammove.services.event_reminders import send_event_reminders
from teammove.services.subscription_service import SubscriptionService

logger = get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=EventListResponse)
async def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    repo = EventRepository(db)
    events, total = await repo.list_by_organization(
        user.organization_id,
        status=status_filter.value if status_filter else None,
        page=page,
        page_size=page_size,
    )
    return EventListResponse(
        items=[EventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an event.

    Denied with 403 when the plan has no event left; on success the event
    counter is incremented and, for event packs, one package event is used.
    """
    service = SubscriptionService(db)
    await service.require_create_event(user.organization_id)

    repo = EventRepository(db)
    data = payload.model_dump()
    data["status"] = payload.status.value
    event = await repo.create(Event(organization_id=user.organization_id, **data))
    await service.record_event_created(user.organization_id)

    logger.info("event_created", event_id=str(event.id), sport=event.sport)
    return EventResponse.model_validate(event)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await load_owned_event(EventRepository(db), event_id, user)
    return EventResponse.model_validate(event)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    repo = EventRepository(db)
    event = await load_owned_event(repo, event_id, user)

    fields = payload.model_dump(exclude_unset=True)
    if fields.get("status") is not None:
        fields["status"] = fields["status"].value
    event = await repo.update(event, **fields)
    return EventResponse.model_validate(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event. Not available on the Découverte plan."""
    repo = EventRepository(db)
    event = await load_owned_event(repo, event_id, user)
    await SubscriptionService(db).require_delete_event(user.organization_id)
    await repo.delete(event)
    logger.info("event_deleted", event_id=str(event_id))


@router.post("/{event_id}/send-reminders", response_model=EventReminderResponse)
async def send_reminders(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Email a reminder to every participant who has not declined."""
    event = await load_owned_event(EventRepository(db), event_id, user)
    if event.status == EventStatus.CANCELLED.value:
        raise TeamMoveError(
            TeamMoveErrorCode.VALIDATION_ERROR,
            "Reminders cannot be sent for a cancelled event",
            {"event_id": str(event_id)},
        )
    organization = await OrganizationRepository(db).get_by_id(user.organization_id)
    if not organization:
        raise OrganizationNotFoundError(user.organization_id)

    report = await send_event_reminders(db, event, organization)
    return EventReminderResponse(recipients=report.recipients, sent=report.sent, failed=report.failed)
