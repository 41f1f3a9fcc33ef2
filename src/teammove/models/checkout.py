# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Ledger of checkout sessions that already activated a plan."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from teammove.models.base import Base, UUIDMixin, utcnow


class ProcessedCheckoutSession(Base, UUIDMixin):
    """A payment provider checkout session that has been applied.

    A session id is accepted once for the lifetime of the database, whatever
    happened to the organization's plan afterwards.
    """

    __tablename__ = "processed_checkout_sessions"

    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    plan_id: Mapped[str] = mapped_column(String(50), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("session_id", name="uq_processed_checkout_sessions_session_id"),
        Index("idx_processed_checkout_sessions_organization", "organization_id"),
    )
