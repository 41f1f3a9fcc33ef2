# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Test data builders shared by the test modules."""

import hashlib
import hmac
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from uuid import UUID

from teammove.models.organization import Organization, OrganizationRole, SubscriptionStatus
from teammove.plans import PlanType

WEBHOOK_SECRET = "whsec_test_teammove"

ORG_ID = UUID("11111111-1111-4111-8111-111111111111")
ADMIN_ORG_ID = UUID("22222222-2222-4222-8222-222222222222")

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_org(**overrides) -> Organization:
    """Build a real Organization row with every subscription column set."""
    fields = {
        "id": ORG_ID,
        "name": "FC Covoit",
        "type": "club",
        "email": "contact@fccovoit.fr",
        "phone": None,
        "address": None,
        "description": None,
        "sports": ["football"],
        "contact_first_name": "Alex",
        "contact_last_name": "Martin",
        "role": OrganizationRole.ORGANIZATION.value,
        "is_active": True,
        "subscription_type": PlanType.DECOUVERTE.value,
        "subscription_plan_id": None,
        "subscription_status": SubscriptionStatus.ACTIVE.value,
        "payment_method": None,
        "stripe_customer_id": None,
        "stripe_subscription_id": None,
        "payment_session_id": None,
        "subscription_start_date": None,
        "subscription_end_date": None,
        "package_remaining_events": None,
        "package_expiry_date": None,
        "event_created_count": 0,
        "invitations_sent_count": 0,
        "last_reset_date": None,
        "created_at": NOW - timedelta(days=30),
        "updated_at": NOW - timedelta(days=30),
    }
    fields.update(overrides)
    return Organization(**fields)


def make_pack_org(remaining: int = 5, expires_in_days: int = 200, **overrides) -> Organization:
    fields = {
        "subscription_type": PlanType.EVENEMENTIELLE.value,
        "subscription_plan_id": "evenementielle-pack10",
        "payment_method": "pack_10",
        "subscription_start_date": NOW - timedelta(days=30),
        "package_remaining_events": remaining,
        "package_expiry_date": NOW + timedelta(days=expires_in_days),
    }
    fields.update(overrides)
    return make_org(**fields)


def make_pro_org(ends_in_days: int = 20, **overrides) -> Organization:
    fields = {
        "subscription_type": PlanType.PRO_CLUB.value,
        "subscription_plan_id": "pro-club",
        "payment_method": "monthly",
        "stripe_customer_id": "cus_123",
        "stripe_subscription_id": "sub_123",
        "subscription_start_date": NOW - timedelta(days=10),
        "subscription_end_date": NOW + timedelta(days=ends_in_days),
    }
    fields.update(overrides)
    return make_org(**fields)


def create_mock(data: dict) -> MagicMock:
    """Create a mock ORM object from a data dict."""
    mock = MagicMock()
    for key, value in data.items():
        setattr(mock, key, value)
    return mock




def sign_webhook_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a ``Stripe-Signature`` header (``t=<ts>,v1=<hmac-sha256>``)."""
    ts = timestamp if timestamp is not None else int(time.time())
    signature = hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"
