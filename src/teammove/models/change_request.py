# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Participant change request model."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from teammove.models.base import Base, TimestampMixin, UUIDMixin


class ChangeRequestType(str, Enum):
    ROLE_CHANGE = "role_change"
    SEAT_CHANGE = "seat_change"
    WITHDRAWAL = "withdrawal"


class ChangeRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ParticipantChangeRequest(Base, UUIDMixin, TimestampMixin):
    """A participant asking the organizer to change their registration."""

    __tablename__ = "participant_change_requests"

    # SET NULL so an approved withdrawal keeps its request history
    participant_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("event_participants.id", ondelete="SET NULL"),
        nullable=True,
    )
    event_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    participant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    participant_email: Mapped[str] = mapped_column(String(255), nullable=False)
    request_type: Mapped[str] = mapped_column(String(20), nullable=False)
    current_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    requested_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ChangeRequestStatus.PENDING.value, nullable=False
    )
    organizer_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_participant_change_requests_event", "event_id", "status"),
    )
