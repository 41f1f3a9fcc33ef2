# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for invitation endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from teammove.models.invitation import InvitationStatus
from teammove.schemas.event import PublicEventResponse


class InvitationSendRequest(BaseModel):
    """Request schema for emailing invitations."""

    emails: list[EmailStr] = Field(..., min_length=1, max_length=100)


class InvitationResponse(BaseModel):
    id: UUID
    event_id: UUID
    email: str
    token: str
    status: InvitationStatus
    invitation_link: str = Field(..., description="Public URL of the invitation")
    sent_at: datetime
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}


class InvitationSendResponse(BaseModel):
    sent: list[InvitationResponse]
    failed: list[str]
    remaining_invitations: int | None = None


class InvitationLookupResponse(BaseModel):
    """What an invitee sees when opening an invitation link."""

    invitation_id: UUID
    event_id: UUID
    email: str | None
    status: InvitationStatus
    organization_name: str
    event: PublicEventResponse


class InvitationRespondRequest(BaseModel):
    accept: bool
