# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Organization model with its subscription state."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from teammove.models.base import Base, TimestampMixin, UpdatedAtMixin, UUIDMixin
from teammove.plans import PlanType


class OrganizationType(str, Enum):
    CLUB = "club"
    ASSOCIATION = "association"
    COMPANY = "company"


class OrganizationRole(str, Enum):
    ORGANIZATION = "organization"
    ADMIN = "admin"


class SubscriptionStatus(str, Enum):
    """Billing status of the organization's current plan."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class Organization(Base, UUIDMixin, TimestampMixin, UpdatedAtMixin):
    """An organizing club, association or company.

    The subscription columns are denormalized on the organization row: the
    entitlement checks read a single row and the counters are updated in
    place on each event creation or invitation batch.
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=OrganizationType.CLUB.value, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sports: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    contact_first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), default=OrganizationRole.ORGANIZATION.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Subscription
    subscription_type: Mapped[str] = mapped_column(
        String(30), default=PlanType.DECOUVERTE.value, nullable=False
    )
    subscription_plan_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subscription_status: Mapped[str] = mapped_column(
        String(20), default=SubscriptionStatus.ACTIVE.value, nullable=False
    )
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subscription_start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    subscription_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    package_remaining_events: Mapped[int | None] = mapped_column(Integer, nullable=True)
    package_expiry_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Usage counters, reset on every plan change
    event_created_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    invitations_sent_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_reset_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_organizations_subscription_type", "subscription_type"),
        Index("idx_organizations_stripe_customer", "stripe_customer_id"),
        Index("idx_organizations_stripe_subscription", "stripe_subscription_id"),
        Index("idx_organizations_package_expiry", "package_expiry_date"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == OrganizationRole.ADMIN.value

    def reset_usage(self, now: datetime) -> None:
        """Zero the usage counters."""
        self.event_created_count = 0
        self.invitations_sent_count = 0
        self.last_reset_date = now

    def downgrade_to_free(self, now: datetime) -> None:
        """Return to the Découverte plan, clearing all paid-plan fields."""
        self.subscription_type = PlanType.DECOUVERTE.value
        self.subscription_plan_id = None
        self.subscription_status = SubscriptionStatus.ACTIVE.value
        self.payment_method = None
        self.stripe_subscription_id = None
        self.payment_session_id = None
        self.subscription_start_date = None
        self.subscription_end_date = None
        self.package_remaining_events = None
        self.package_expiry_date = None
        self.reset_usage(now)
