# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for event participants"""
from typing import List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.event import Event
from teammove.models.participant import EventParticipant, ParticipantRole, ParticipantStatus


class SeatTotals(NamedTuple):
    participants: int
    drivers: int
    seats: int
    passengers: int


class ParticipantRepository:
    """Repository for participant database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, participant: EventParticipant) -> EventParticipant:
        self.session.add(participant)
        await self.session.flush()
        await self.session.refresh(participant)
        return participant

    async def get_by_id(self, participant_id: UUID) -> Optional[EventParticipant]:
        result = await self.session.execute(
            select(EventParticipant).where(EventParticipant.id == participant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_event_and_email(self, event_id: UUID, email: str) -> Optional[EventParticipant]:
        result = await self.session.execute(
            select(EventParticipant).where(
                EventParticipant.event_id == event_id,
                func.lower(EventParticipant.email) == email.lower(),
            )
        )
        return result.scalar_one_or_none()

    async def list_by_event(self, event_id: UUID) -> List[EventParticipant]:
        result = await self.session.execute(
            select(EventParticipant)
            .where(EventParticipant.event_id == event_id)
            .order_by(EventParticipant.created_at.asc())
        )
        return list(result.scalars().all())

    async def update(self, participant: EventParticipant, **fields) -> EventParticipant:
        for key, value in fields.items():
            setattr(participant, key, value)
        await self.session.flush()
        await self.session.refresh(participant)
        return participant

    async def delete(self, participant: EventParticipant) -> None:
        await self.session.delete(participant)
        await self.session.flush()

    async def seat_totals_for_organization(self, organization_id: UUID) -> SeatTotals:
        """Aggregate non-declined participants over every event of an organization."""
        is_driver = EventParticipant.role == ParticipantRole.DRIVER.value
        result = await self.session.execute(
            select(
                func.count(EventParticipant.id),
                func.count(EventParticipant.id).filter(is_driver),
                func.coalesce(func.sum(EventParticipant.available_seats).filter(is_driver), 0),
                func.count(EventParticipant.id).filter(
                    EventParticipant.role == ParticipantRole.PASSENGER.value
                ),
            )
            .select_from(EventParticipant)
            .join(Event, Event.id == EventParticipant.event_id)
            .where(
                Event.organization_id == organization_id,
                EventParticipant.status != ParticipantStatus.DECLINED.value,
            )
        )
        return SeatTotals(*result.one())
