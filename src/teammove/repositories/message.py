# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for event messages"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.message import Message


class MessageRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, message: Message) -> Message:
        self.session.add(message)
        await self.session.flush()
        await self.session.refresh(message)
        return message

    async def get_for_event(self, message_id: UUID, event_id: UUID) -> Optional[Message]:
        result = await self.session.execute(
            select(Message).where(Message.id == message_id, Message.event_id == event_id)
        )
        return result.scalar_one_or_none()

    async def list_by_event(self, event_id: UUID) -> List[Message]:
        result = await self.session.execute(
            select(Message).where(Message.event_id == event_id).order_by(Message.created_at.asc())
        )
        return list(result.scalars().all())

    async def delete(self, message: Message) -> None:
        await self.session.delete(message)
        await self.session.flush()
