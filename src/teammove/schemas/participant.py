# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for event participants"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from teammove.models.participant import ParticipantRole, ParticipantStatus


class ParticipantJoin(BaseModel):
    """Public form used by an invitee to join an event"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: ParticipantRole
    available_seats: Optional[int] = Field(None, ge=1, le=8)
    comment: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_seats(self):
        if self.role == ParticipantRole.DRIVER and not self.available_seats:
            raise ValueError("Drivers must offer at least one seat")
        if self.role == ParticipantRole.PASSENGER:
            self.available_seats = None
        return self


class ParticipantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[ParticipantRole] = None
    available_seats: Optional[int] = Field(None, ge=0, le=8)
    comment: Optional[str] = Field(None, max_length=1000)
    status: Optional[ParticipantStatus] = None


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    name: str
    email: str
    role: str
    available_seats: Optional[int] = None
    comment: Optional[str] = None
    status: str
    created_at: datetime
