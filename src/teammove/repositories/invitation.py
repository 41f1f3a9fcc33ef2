# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for event invitations"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.invitation import EventInvitation


class InvitationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invitation: EventInvitation) -> EventInvitation:
        self.session.add(invitation)
        await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def get_by_token(self, token: str) -> Optional[EventInvitation]:
        result = await self.session.execute(
            select(EventInvitation).where(EventInvitation.token == token)
        )
        return result.scalar_one_or_none()

    async def list_by_event(self, event_id: UUID) -> List[EventInvitation]:
        result = await self.session.execute(
            select(EventInvitation)
            .where(EventInvitation.event_id == event_id)
            .order_by(EventInvitation.sent_at.desc())
        )
        return list(result.scalars().all())

    async def save(self, invitation: EventInvitation) -> EventInvitation:
        await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(EventInvitation.id)))
        return result.scalar_one()

    async def delete(self, invitation: EventInvitation) -> None:
        await self.session.delete(invitation)
        await self.session.flush()
