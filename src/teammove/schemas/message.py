# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for event messages"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class MessageCreate(BaseModel):
    """Message posted by the organizer"""
    content: str = Field(..., min_length=1, max_length=5000)
    is_broadcast: bool = False
    reply_to_id: Optional[UUID] = None


class ParticipantMessageCreate(BaseModel):
    """Message posted by a registered participant"""
    sender_name: str = Field(..., min_length=1, max_length=255)
    sender_email: EmailStr
    content: str = Field(..., min_length=1, max_length=5000)
    reply_to_id: Optional[UUID] = None


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    sender_name: str
    sender_email: str
    content: str
    is_from_organizer: bool
    is_broadcast: bool
    reply_to_id: Optional[UUID] = None
    created_at: datetime
