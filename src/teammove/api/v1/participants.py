# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Participant endpoints: public join form plus organizer management"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.api.v1.deps import load_owned_event
from teammove.auth.dependencies import User, get_current_user
from teammove.config import settings
from teammove.database import get_db
from teammove.errors import ResourceNotFoundError
from teammove.logging_config import get_logger
from teammove.middleware.rate_limit import limiter
from teammove.models.event import EventStatus
from teammove.models.participant import EventParticipant, ParticipantRole, ParticipantStatus
from teammove.repositories.event import EventRepository
from teammove.repositories.participant import ParticipantRepository
from teammove.schemas.participant import ParticipantJoin, ParticipantResponse, ParticipantUpdate

logger = get_logger(__name__)

router = APIRouter(tags=["participants"])


@router.get("/events/{event_id}/participants", response_model=List[ParticipantResponse])
async def list_participants(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await load_owned_event(EventRepository(db), event_id, user)
    participants = await ParticipantRepository(db).list_by_event(event_id)
    return [ParticipantResponse.model_validate(p) for p in participants]


@router.post(
    "/events/{event_id}/join",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.rate_limit_public)
async def join_event(
    request: Request,
    event_id: UUID,
    payload: ParticipantJoin,
    db: AsyncSession = Depends(get_db),
):
    """Public endpoint used from an invitation link to register as driver or passenger."""
    event = await EventRepository(db).get_by_id(event_id)
    if not event:
        raise ResourceNotFoundError("event", event_id)
    if event.status == EventStatus.CANCELLED.value:
        raise HTTPException(status_code=400, detail="This event has been cancelled")

    repo = ParticipantRepository(db)
    if await repo.get_by_event_and_email(event_id, payload.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This email is already registered for the event",
        )

    participant = await repo.create(
        EventParticipant(
            event_id=event_id,
            name=payload.name,
            email=payload.email.lower(),
            role=payload.role.value,
            available_seats=payload.available_seats,
            comment=payload.comment,
            status=ParticipantStatus.CONFIRMED.value,
        )
    )
    logger.info("participant_joined", event_id=str(event_id), role=participant.role)
    return ParticipantResponse.model_validate(participant)


async def _load_owned_participant(
    db: AsyncSession, participant_id: UUID, user: User
) -> EventParticipant:
    participant = await ParticipantRepository(db).get_by_id(participant_id)
    if not participant:
        raise ResourceNotFoundError("participant", participant_id)
    await load_owned_event(EventRepository(db), participant.event_id, user)
    return participant


@router.put("/participants/{participant_id}", response_model=ParticipantResponse)
async def update_participant(
    participant_id: UUID,
    payload: ParticipantUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    participant = await _load_owned_participant(db, participant_id, user)

    fields = payload.model_dump(exclude_unset=True)
    for key in ("role", "status"):
        if fields.get(key) is not None:
            fields[key] = fields[key].value
    if fields.get("role") == ParticipantRole.PASSENGER.value:
        fields["available_seats"] = None

    participant = await ParticipantRepository(db).update(participant, **fields)
    return ParticipantResponse.model_validate(participant)


@router.delete("/participants/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_participant(
    participant_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    participant = await _load_owned_participant(db, participant_id, user)
    await ParticipantRepository(db).delete(participant)
