# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Invitation service with business logic."""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from teammove.config import settings
from teammove.logging_config import get_logger
from teammove.models.event import Event
from teammove.models.invitation import EventInvitation, InvitationStatus
from teammove.models.organization import Organization
from teammove.repositories.invitation import InvitationRepository
from teammove.services.email import EmailService, email_service

logger = get_logger(__name__)


def generate_invitation_token() -> str:
    """Generate a cryptographically secure invitation token.

    secrets.token_urlsafe(32) gives 256 bits of entropy as 43 URL-safe characters.
    """
    return secrets.token_urlsafe(32)


def build_invitation_link(token: str) -> str:
    """Build the public URL of an invitation."""
    return f"{settings.app_url.rstrip('/')}/invitation/{token}"


async def create_share_link(db: AsyncSession, event: Event) -> EventInvitation:
    """Create a shareable (email-less) invitation for an event."""
    invitation = EventInvitation(
        event_id=event.id,
        email="",
        token=generate_invitation_token(),
        status=InvitationStatus.PENDING.value,
    )
    return await InvitationRepository(db).create(invitation)


async def invite_by_email(
    db: AsyncSession,
    event: Event,
    organization: Organization,
    emails: list[str],
    email: EmailService | None = None,
) -> tuple[list[EventInvitation], list[str]]:
    """Create one invitation per address and email it.

    Returns:
        Tuple of (sent invitations, addresses that could not be emailed)
    """
    email = email or email_service
    repo = InvitationRepository(db)
    sent: list[EventInvitation] = []
    failed: list[str] = []

    for address in dict.fromkeys(e.strip().lower() for e in emails):
        invitation = await repo.create(
            EventInvitation(
                event_id=event.id,
                email=address,
                token=generate_invitation_token(),
                status=InvitationStatus.PENDING.value,
            )
        )
        delivered = await email.send_event_invitation(
            address,
            event.name,
            event.date,
            organization.name,
            build_invitation_link(invitation.token),
        )
        if delivered:
            sent.append(invitation)
        else:
            # An unsent invitation must not stay redeemable
            await repo.delete(invitation)
            logger.warning("invitation_email_failed", event_id=str(event.id), email=address)
            failed.append(address)

    logger.info(
        "invitations_sent",
        event_id=str(event.id),
        sent=len(sent),
        failed=len(failed),
    )
    return sent, failed
