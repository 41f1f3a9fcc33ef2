# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repositories for dashboard notifications and reminder logs"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.notification import Notification, SubscriptionReminderLog


class NotificationRepository:
    """Repository for notification database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def get_for_organization(
        self, notification_id: UUID, organization_id: UUID
    ) -> Optional[Notification]:
        result = await self.session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_organization(
        self, organization_id: UUID, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        query = select(Notification).where(Notification.organization_id == organization_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_unread(self, organization_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.organization_id == organization_id,
                Notification.read.is_(False),
            )
        )
        return result.scalar_one()

    async def mark_read(self, notification: Notification) -> Notification:
        notification.read = True
        await self.session.flush()
        return notification

    async def mark_all_read(self, organization_id: UUID) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.organization_id == organization_id, Notification.read.is_(False))
            .values(read=True)
        )
        return result.rowcount or 0

    async def delete(self, notification: Notification) -> None:
        await self.session.delete(notification)
        await self.session.flush()


class ReminderLogRepository:
    """Tracks which subscription reminders were already sent"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists_since(
        self,
        organization_id: UUID,
        reminder_type: str,
        days_before_expiry: int,
        since: datetime,
    ) -> bool:
        result = await self.session.execute(
            select(func.count(SubscriptionReminderLog.id)).where(
                SubscriptionReminderLog.organization_id == organization_id,
                SubscriptionReminderLog.reminder_type == reminder_type,
                SubscriptionReminderLog.days_before_expiry == days_before_expiry,
                SubscriptionReminderLog.sent_at >= since,
            )
        )
        return result.scalar_one() > 0

    async def create(
        self, organization_id: UUID, reminder_type: str, days_before_expiry: int, sent_at: datetime
    ) -> SubscriptionReminderLog:
        log = SubscriptionReminderLog(
            organization_id=organization_id,
            reminder_type=reminder_type,
            days_before_expiry=days_before_expiry,
            sent_at=sent_at,
        )
        self.session.add(log)
        await self.session.flush()
        return log
