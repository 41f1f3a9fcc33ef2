# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Dashboard notification and subscription reminder log models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from teammove.models.base import Base, TimestampMixin, UUIDMixin, utcnow


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ReminderType(str, Enum):
    EXPIRY_WARNING = "expiry_warning"
    LOW_EVENTS = "low_events"


class Notification(Base, UUIDMixin, TimestampMixin):
    """A message shown in the organization's dashboard notification center."""

    __tablename__ = "notifications"

    organization_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(20), default=NotificationType.INFO.value, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    action_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    event_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("idx_notifications_organization", "organization_id"),
        Index("idx_notifications_unread", "organization_id", "read"),
    )


class SubscriptionReminderLog(Base, UUIDMixin):
    """Record of a reminder already sent, used to avoid duplicates."""

    __tablename__ = "subscription_reminder_logs"

    organization_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    reminder_type: Mapped[str] = mapped_column(String(30), nullable=False)
    # Days before expiry for expiry warnings, remaining events for low-events warnings
    days_before_expiry: Mapped[int] = mapped_column(Integer, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_reminder_logs_lookup", "organization_id", "reminder_type", "days_before_expiry"),
    )
