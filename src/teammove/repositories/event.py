# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for event CRUD operations"""
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.event import Event, EventStatus


class EventRepository:
    """Repository for event database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: Event) -> Event:
        self.session.add(event)
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def get_by_id(self, event_id: UUID) -> Optional[Event]:
        result = await self.session.execute(select(Event).where(Event.id == event_id))
        return result.scalar_one_or_none()

    async def get_for_organization(self, event_id: UUID, organization_id: UUID) -> Optional[Event]:
        """Get an event only if it belongs to the organization"""
        result = await self.session.execute(
            select(Event).where(Event.id == event_id, Event.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def list_by_organization(
        self,
        organization_id: UUID,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Event], int]:
        query = select(Event).where(Event.organization_id == organization_id)
        if status:
            query = query.where(Event.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.execute(count_query)
        total = total_result.scalar_one()

        query = query.order_by(Event.date.asc())
        query = query.offset((page - 1) * page_size).limit(page_size)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def update(self, event: Event, **fields) -> Event:
        for key, value in fields.items():
            setattr(event, key, value)
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def delete(self, event: Event) -> None:
        await self.session.delete(event)
        await self.session.flush()

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(Event.id)))
        return result.scalar_one()

    async def list_due_for_reminder(self, now: datetime, window: timedelta) -> List[Event]:
        """Confirmed events starting within the window that were not reminded inside it."""
        result = await self.session.execute(
            select(Event)
            .where(
                Event.status == EventStatus.CONFIRMED.value,
                Event.date > now,
                Event.date <= now + window,
                or_(Event.reminder_sent_at.is_(None), Event.reminder_sent_at < now - window),
            )
            .order_by(Event.date.asc())
        )
        return list(result.scalars().all())

    async def count_by_organization(self, organization_id: UUID, now: datetime) -> Tuple[int, int]:
        """Return (total, upcoming) event counts for an organization."""
        result = await self.session.execute(
            select(
                func.count(Event.id),
                func.count(Event.id).filter(Event.date >= now),
            ).where(Event.organization_id == organization_id)
        )
        total, upcoming = result.one()
        return total, upcoming
