# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for events"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from teammove.models.event import EventStatus


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sport: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    date: datetime
    duration: Optional[int] = Field(None, ge=0, description="Duration in minutes")
    meeting_point: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = Field(None, max_length=50)
    status: EventStatus = EventStatus.CONFIRMED


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sport: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    meeting_point: Optional[str] = Field(None, min_length=1)
    destination: Optional[str] = Field(None, min_length=1)
    is_recurring: Optional[bool] = None
    recurrence_pattern: Optional[str] = Field(None, max_length=50)
    status: Optional[EventStatus] = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    sport: str
    description: Optional[str] = None
    date: datetime
    duration: Optional[int] = None
    meeting_point: str
    destination: str
    is_recurring: bool
    recurrence_pattern: Optional[str] = None
    status: str
    reminder_sent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PublicEventResponse(BaseModel):
    """Event fields visible to invitees"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    sport: str
    description: Optional[str] = None
    date: datetime
    duration: Optional[int] = None
    meeting_point: str
    destination: str
    status: str


class EventListResponse(BaseModel):
    items: List[EventResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class EventReminderResponse(BaseModel):
    recipients: int
    sent: int
    failed: int
