# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Database models."""

from teammove.models.base import Base
from teammove.models.change_request import (
    ChangeRequestStatus,
    ChangeRequestType,
    ParticipantChangeRequest,
)
from teammove.models.checkout import ProcessedCheckoutSession
from teammove.models.event import Event, EventStatus
from teammove.models.invitation import EventInvitation, InvitationStatus
from teammove.models.message import Message
from teammove.models.notification import (
    Notification,
    NotificationType,
    ReminderType,
    SubscriptionReminderLog,
)
from teammove.models.organization import (
    Organization,
    OrganizationRole,
    OrganizationType,
    SubscriptionStatus,
)
from teammove.models.participant import EventParticipant, ParticipantRole, ParticipantStatus

__all__ = [
    "Base",
    "ChangeRequestStatus",
    "ChangeRequestType",
    "ParticipantChangeRequest",
    "ProcessedCheckoutSession",
    "Event",
    "EventStatus",
    "EventInvitation",
    "InvitationStatus",
    "Message",
    "Notification",
    "NotificationType",
    "ReminderType",
    "SubscriptionReminderLog",
    "Organization",
    "OrganizationRole",
    "OrganizationType",
    "SubscriptionStatus",
    "EventParticipant",
    "ParticipantRole",
    "ParticipantStatus",
]
