# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for subscription endpoints"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from teammove.schemas.plan import PlanLimitsResponse


class SubscriptionInfoResponse(BaseModel):
    """Current plan, validity and usage of the organization"""
    model_config = ConfigDict(from_attributes=True)

    organization_id: UUID
    subscription_type: str
    plan_id: str
    plan_name: str
    status: str
    payment_method: Optional[str] = None
    limits: PlanLimitsResponse
    is_valid: bool
    reason: Optional[str] = None
    needs_renewal: bool
    days_until_expiry: Optional[int] = None
    subscription_start_date: Optional[datetime] = None
    subscription_end_date: Optional[datetime] = None
    package_remaining_events: Optional[int] = None
    package_expiry_date: Optional[datetime] = None
    event_created_count: int
    invitations_sent_count: int
    remaining_events: Optional[int] = None
    remaining_invitations: Optional[int] = None


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    allowed: bool
    reason: Optional[str] = None
    remaining_events: Optional[int] = None
    remaining_invitations: Optional[int] = None


class PermissionsResponse(BaseModel):
    create_event: PermissionResponse
    send_invitations: PermissionResponse
    delete_event: PermissionResponse


class CheckoutRequest(BaseModel):
    plan_id: str = Field(..., min_length=1, max_length=50)
    success_url: Optional[str] = Field(None, max_length=500)
    cancel_url: Optional[str] = Field(None, max_length=500)


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    requires_payment: bool
    plan_id: str
    session_id: Optional[str] = None
    url: Optional[str] = None
    mode: Optional[str] = None
    message: Optional[str] = None


class ConfirmPaymentRequest(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=255)


class WebhookAck(BaseModel):
    received: bool = True
    action: str
