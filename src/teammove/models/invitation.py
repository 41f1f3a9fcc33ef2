# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Event invitation model."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from teammove.models.base import Base, UUIDMixin, utcnow


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class EventInvitation(Base, UUIDMixin):
    """An invitation to join an event.

    Shareable links are stored with an empty email: anyone holding the token
    can open the event page.
    """

    __tablename__ = "event_invitations"

    event_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=InvitationStatus.PENDING.value, nullable=False
    )
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_event_invitations_event", "event_id"),)

    @property
    def is_link(self) -> bool:
        return not self.email

    def respond(self, accepted: bool) -> None:
        self.status = (InvitationStatus.ACCEPTED if accepted else InvitationStatus.DECLINED).value
        self.responded_at = utcnow()
