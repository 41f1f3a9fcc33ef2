# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Event participant model."""

from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from teammove.models.base import Base, TimestampMixin, UUIDMixin


class ParticipantRole(str, Enum):
    PASSENGER = "passenger"
    DRIVER = "driver"


class ParticipantStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class EventParticipant(Base, UUIDMixin, TimestampMixin):
    """Someone taking part in an event, either driving or riding."""

    __tablename__ = "event_participants"

    event_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    # Only meaningful for drivers
    available_seats: Mapped[int | None] = mapped_column(Integer, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ParticipantStatus.CONFIRMED.value, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("event_id", "email", name="uq_event_participants_event_email"),
        Index("idx_event_participants_event", "event_id"),
    )
