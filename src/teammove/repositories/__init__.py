# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository layer for database operations"""
from teammove.repositories.change_request import ChangeRequestRepository
from teammove.repositories.checkout import CheckoutSessionRepository
from teammove.repositories.event import EventRepository
from teammove.repositories.invitation import InvitationRepository
from teammove.repositories.message import MessageRepository
from teammove.repositories.notification import NotificationRepository, ReminderLogRepository
from teammove.repositories.organization import OrganizationRepository
from teammove.repositories.participant import ParticipantRepository

__all__ = [
    "ChangeRequestRepository",
    "CheckoutSessionRepository",
    "EventRepository",
    "InvitationRepository",
    "MessageRepository",
    "NotificationRepository",
    "ReminderLogRepository",
    "OrganizationRepository",
    "ParticipantRepository",
]
