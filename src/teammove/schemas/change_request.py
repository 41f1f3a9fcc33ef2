# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for participant change requests"""
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from teammove.models.change_request import ChangeRequestType
from teammove.models.participant import ParticipantRole


class ChangeRequestCreate(BaseModel):
    """Submitted from the public event page by a registered participant.

    ``email`` must match the registration; it is the only proof of identity
    a participant has.
    """
    email: EmailStr
    request_type: ChangeRequestType
    requested_value: Optional[str] = Field(None, max_length=50)
    reason: str = Field(..., min_length=1, max_length=1000)

    @model_validator(mode="after")
    def check_requested_value(self):
        if self.request_type == ChangeRequestType.ROLE_CHANGE:
            if self.requested_value not in {r.value for r in ParticipantRole}:
                raise ValueError("requested_value must be 'driver' or 'passenger'")
        elif self.request_type == ChangeRequestType.SEAT_CHANGE:
            if not (self.requested_value or "").isdigit() or not 1 <= int(self.requested_value) <= 8:
                raise ValueError("requested_value must be a number of seats between 1 and 8")
        else:
            self.requested_value = None
        return self


class ChangeRequestDecision(BaseModel):
    status: Literal["approved", "rejected"]
    organizer_comment: Optional[str] = Field(None, max_length=1000)


class ChangeRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    participant_id: Optional[UUID] = None
    event_id: UUID
    participant_name: str
    participant_email: str
    request_type: str
    current_value: Optional[str] = None
    requested_value: Optional[str] = None
    reason: str
    status: str
    organizer_comment: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime
