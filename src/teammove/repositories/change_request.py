# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for participant change requests"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.change_request import ChangeRequestStatus, ParticipantChangeRequest
from teammove.models.event import Event


class ChangeRequestRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, request: ParticipantChangeRequest) -> ParticipantChangeRequest:
        self.session.add(request)
        await self.session.flush()
        await self.session.refresh(request)
        return request

    async def get_by_id(self, request_id: UUID) -> Optional[ParticipantChangeRequest]:
        result = await self.session.execute(
            select(ParticipantChangeRequest).where(ParticipantChangeRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def list_by_event(
        self, event_id: UUID, status: Optional[str] = None
    ) -> List[ParticipantChangeRequest]:
        query = select(ParticipantChangeRequest).where(ParticipantChangeRequest.event_id == event_id)
        if status:
            query = query.where(ParticipantChangeRequest.status == status)
        result = await self.session.execute(query.order_by(ParticipantChangeRequest.created_at.desc()))
        return list(result.scalars().all())

    async def save(self, request: ParticipantChangeRequest) -> ParticipantChangeRequest:
        await self.session.flush()
        await self.session.refresh(request)
        return request

    async def get_pending_for_participant(
        self, participant_id: UUID, request_type: str
    ) -> Optional[ParticipantChangeRequest]:
        result = await self.session.execute(
            select(ParticipantChangeRequest).where(
                ParticipantChangeRequest.participant_id == participant_id,
                ParticipantChangeRequest.request_type == request_type,
                ParticipantChangeRequest.status == ChangeRequestStatus.PENDING.value,
            )
        )
        return result.scalars().first()

    async def count_pending_for_organization(self, organization_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(ParticipantChangeRequest.id))
            .join(Event, Event.id == ParticipantChangeRequest.event_id)
            .where(
                Event.organization_id == organization_id,
                ParticipantChangeRequest.status == ChangeRequestStatus.PENDING.value,
            )
        )
        return result.scalar_one()
