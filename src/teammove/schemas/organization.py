# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for organizations"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from teammove.models.organization import OrganizationType


class OrganizationCreate(BaseModel):
    """Public registration of a new organization"""
    name: str = Field(..., min_length=1, max_length=255)
    type: OrganizationType = OrganizationType.CLUB
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    description: Optional[str] = None
    sports: List[str] = Field(default_factory=list)
    contact_first_name: Optional[str] = Field(None, max_length=100)
    contact_last_name: Optional[str] = Field(None, max_length=100)


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[OrganizationType] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    description: Optional[str] = None
    sports: Optional[List[str]] = None
    contact_first_name: Optional[str] = Field(None, max_length=100)
    contact_last_name: Optional[str] = Field(None, max_length=100)


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    sports: List[str] = []
    contact_first_name: Optional[str] = None
    contact_last_name: Optional[str] = None
    role: str
    is_active: bool
    subscription_type: str
    subscription_status: str
    created_at: datetime


class AdminOrganizationResponse(OrganizationResponse):
    """Organization with billing and usage fields, for the admin console"""
    subscription_plan_id: Optional[str] = None
    payment_method: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    subscription_end_date: Optional[datetime] = None
    package_remaining_events: Optional[int] = None
    package_expiry_date: Optional[datetime] = None
    event_created_count: int = 0
    invitations_sent_count: int = 0


class AdminOrganizationListResponse(BaseModel):
    items: List[AdminOrganizationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class OrganizationStatusUpdate(BaseModel):
    is_active: bool
