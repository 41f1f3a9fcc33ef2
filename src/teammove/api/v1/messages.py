# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Event message board endpoints"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.api.v1.deps import load_owned_event
from teammove.auth.dependencies import User, get_current_user
from teammove.config import settings
from teammove.database import get_db
from teammove.errors import OrganizationNotFoundError, ResourceNotFoundError
from teammove.logging_config import get_logger
from teammove.middleware.rate_limit import limiter
from teammove.models.message import Message
from teammove.repositories.event import EventRepository
from teammove.repositories.message import MessageRepository
from teammove.repositories.organization import OrganizationRepository
from teammove.repositories.participant import ParticipantRepository
from teammove.schemas.message import MessageCreate, MessageResponse, ParticipantMessageCreate
from teammove.services.email import email_service

logger = get_logger(__name__)

router = APIRouter(prefix="/events/{event_id}/messages", tags=["messages"])


@router.get("", response_model=List[MessageResponse])
async def list_messages(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await load_owned_event(EventRepository(db), event_id, user)
    messages = await MessageRepository(db).list_by_event(event_id)
    return [MessageResponse.model_validate(m) for m in messages]


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    event_id: UUID,
    payload: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post as the organizer. Broadcast messages are also emailed to every participant."""
    event = await load_owned_event(EventRepository(db), event_id, user)
    organization = await OrganizationRepository(db).get_by_id(user.organization_id)
    if not organization:
        raise OrganizationNotFoundError(user.organization_id)

    message = await MessageRepository(db).create(
        Message(
            event_id=event_id,
            sender_name=organization.name,
            sender_email=organization.email,
            content=payload.content,
            is_from_organizer=True,
            is_broadcast=payload.is_broadcast,
            reply_to_id=payload.reply_to_id,
        )
    )

    if payload.is_broadcast:
        participants = await ParticipantRepository(db).list_by_event(event_id)
        delivered = 0
        for participant in participants:
            if await email_service.send_broadcast(
                participant.email, event.name, organization.name, payload.content
            ):
                delivered += 1
        logger.info(
            "broadcast_sent",
            event_id=str(event_id),
            recipients=len(participants),
            delivered=delivered,
        )

    return MessageResponse.model_validate(message)


@router.post(
    "/participant",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.rate_limit_public)
async def post_participant_message(
    request: Request,
    event_id: UUID,
    payload: ParticipantMessageCreate,
    db: AsyncSession = Depends(get_db),
):
    """Public endpoint: only emails registered on the event may post."""
    event = await EventRepository(db).get_by_id(event_id)
    if not event:
        raise ResourceNotFoundError("event", event_id)

    participant = await ParticipantRepository(db).get_by_event_and_email(
        event_id, payload.sender_email
    )
    if not participant:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only participants of this event can post messages",
        )

    message = await MessageRepository(db).create(
        Message(
            event_id=event_id,
            sender_name=payload.sender_name,
            sender_email=participant.email,
            content=payload.content,
            is_from_organizer=False,
            is_broadcast=False,
            reply_to_id=payload.reply_to_id,
        )
    )
    return MessageResponse.model_validate(message)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    event_id: UUID,
    message_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await load_owned_event(EventRepository(db), event_id, user)
    repo = MessageRepository(db)
    message = await repo.get_for_event(message_id, event_id)
    if not message:
        raise ResourceNotFoundError("message", message_id)
    await repo.delete(message)
