# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Invitation API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.api.v1.deps import load_owned_event
from teammove.auth.dependencies import User, get_current_user
from teammove.config import settings
from teammove.database import get_db
from teammove.errors import OrganizationNotFoundError, ResourceNotFoundError
from teammove.middleware.rate_limit import limiter
from teammove.models.invitation import EventInvitation, InvitationStatus
from teammove.repositories.event import EventRepository
from teammove.repositories.invitation import InvitationRepository
from teammove.repositories.organization import OrganizationRepository
from teammove.schemas.event import PublicEventResponse
from teammove.schemas.invitation import (
    InvitationLookupResponse,
    InvitationRespondRequest,
    InvitationResponse,
    InvitationSendRequest,
    InvitationSendResponse,
)
from teammove.services import invitation_service
from teammove.services.subscription_service import SubscriptionService

router = APIRouter(tags=["invitations"])


def _build_response(invitation: EventInvitation) -> InvitationResponse:
    """Build InvitationResponse from EventInvitation model."""
    return InvitationResponse(
        id=invitation.id,
        event_id=invitation.event_id,
        email=invitation.email,
        token=invitation.token,
        status=InvitationStatus(invitation.status),
        invitation_link=invitation_service.build_invitation_link(invitation.token),
        sent_at=invitation.sent_at,
        responded_at=invitation.responded_at,
    )


@router.post(
    "/events/{event_id}/invitations",
    response_model=InvitationSendResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Email invitations",
    description="Email an invitation to each address. Counted against the plan's invitation quota.",
)
async def send_invitations(
    event_id: UUID,
    payload: InvitationSendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> InvitationSendResponse:
    """Send invitations for an event.

    The whole batch is refused when it exceeds the remaining quota. Only
    invitations that were actually emailed are counted.
    """
    event = await load_owned_event(EventRepository(db), event_id, user)
    emails = list(dict.fromkeys(str(e).lower() for e in payload.emails))

    service = SubscriptionService(db)
    permission = await service.require_send_invitations(user.organization_id, len(emails))

    organization = await OrganizationRepository(db).get_by_id(user.organization_id)
    if not organization:
        raise OrganizationNotFoundError(user.organization_id)

    sent, failed = await invitation_service.invite_by_email(db, event, organization, emails)
    if sent:
        await service.record_invitations_sent(user.organization_id, len(sent))

    remaining = permission.remaining_invitations
    if remaining is not None:
        remaining -= len(sent)

    return InvitationSendResponse(
        sent=[_build_response(inv) for inv in sent],
        failed=failed,
        remaining_invitations=remaining,
    )


@router.post(
    "/events/{event_id}/invitations/link",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a shareable link",
)
async def create_share_link(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> InvitationResponse:
    """Shareable links are not emailed, so they do not use the invitation quota."""
    event = await load_owned_event(EventRepository(db), event_id, user)
    invitation = await invitation_service.create_share_link(db, event)
    return _build_response(invitation)


@router.get("/events/{event_id}/invitations", response_model=list[InvitationResponse])
async def list_invitations(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[InvitationResponse]:
    await load_owned_event(EventRepository(db), event_id, user)
    invitations = await InvitationRepository(db).list_by_event(event_id)
    return [_build_response(inv) for inv in invitations]


@router.get(
    "/invitations/{token}",
    response_model=InvitationLookupResponse,
    summary="Resolve an invitation",
    description="Public lookup of an invitation token, returning the event it points to.",
)
@limiter.limit(settings.rate_limit_public)
async def get_invitation(
    request: Request,
    token: str,
    db: AsyncSession = Depends(get_db),
) -> InvitationLookupResponse:
    invitation = await InvitationRepository(db).get_by_token(token)
    if not invitation:
        raise ResourceNotFoundError("invitation", token)

    event = await EventRepository(db).get_by_id(invitation.event_id)
    if not event:
        raise ResourceNotFoundError("event", invitation.event_id)
    organization = await OrganizationRepository(db).get_by_id(event.organization_id)

    return InvitationLookupResponse(
        invitation_id=invitation.id,
        event_id=event.id,
        email=invitation.email or None,
        status=InvitationStatus(invitation.status),
        organization_name=organization.name if organization else "",
        event=PublicEventResponse.model_validate(event),
    )


@router.post("/invitations/{token}/respond", response_model=InvitationResponse)
@limiter.limit(settings.rate_limit_public)
async def respond_to_invitation(
    request: Request,
    token: str,
    payload: InvitationRespondRequest,
    db: AsyncSession = Depends(get_db),
) -> InvitationResponse:
    repo = InvitationRepository(db)
    invitation = await repo.get_by_token(token)
    if not invitation:
        raise ResourceNotFoundError("invitation", token)

    invitation.respond(payload.accept)
    invitation = await repo.save(invitation)
    return _build_response(invitation)
