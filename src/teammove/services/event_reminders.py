# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Participant reminders before an event.

Organizers can send them by hand; the maintenance worker sends them
automatically for confirmed events starting within
``event_reminder_hours_before`` hours. Either path stamps
``Event.reminder_sent_at`` so the scheduler does not repeat a recent
manual reminder.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from teammove.config import settings
from teammove.logging_config import get_logger
from teammove.models.event import Event
from teammove.models.organization import Organization
from teammove.models.participant import ParticipantStatus
from teammove.repositories.event import EventRepository
from teammove.repositories.organization import OrganizationRepository
from teammove.repositories.participant import ParticipantRepository
from teammove.services.email import EmailService, email_service

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReminderReport:
    recipients: int
    sent: int

    @property
    def failed(self) -> int:
        return self.recipients - self.sent


async def send_event_reminders(
    db: AsyncSession,
    event: Event,
    organization: Organization,
    email: EmailService | None = None,
    now: datetime | None = None,
) -> ReminderReport:
    """Email every participant who has not declined the event."""
    email = email or email_service
    participants = await ParticipantRepository(db).list_by_event(event.id)
    recipients = [p for p in participants if p.status != ParticipantStatus.DECLINED.value]

    sent = 0
    for participant in recipients:
        if await email.send_event_reminder(
            participant.email,
            participant.name,
            event.name,
            organization.name,
            event.date,
            event.meeting_point,
            event.destination,
        ):
            sent += 1

    await EventRepository(db).update(event, reminder_sent_at=now or datetime.now(timezone.utc))
    logger.info(
        "event_reminders_sent",
        event_id=str(event.id),
        recipients=len(recipients),
        sent=sent,
    )
    return ReminderReport(recipients=len(recipients), sent=sent)


async def send_upcoming_event_reminders(
    db: AsyncSession,
    now: datetime | None = None,
    hours: int | None = None,
    email: EmailService | None = None,
) -> int:
    """Remind participants of every confirmed event starting soon.

    Each event runs in its own savepoint; a failure is logged and the
    sweep moves on to the next event.

    Returns:
        Number of events whose participants were reminded
    """
    now = now or datetime.now(timezone.utc)
    window = timedelta(hours=hours or settings.event_reminder_hours_before)
    events = await EventRepository(db).list_due_for_reminder(now, window)
    organizations = OrganizationRepository(db)

    reminded = 0
    for event in events:
        event_id = event.id
        try:
            async with db.begin_nested():
                organization = await organizations.get_by_id(event.organization_id)
                if organization is None or not organization.is_active:
                    continue
                await send_event_reminders(db, event, organization, email=email, now=now)
            reminded += 1
        except Exception as e:
            logger.error("event_reminder_failed", event_id=str(event_id), error=str(e))
    return reminded
