# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""
Pytest configuration and fixtures for TeamMove API tests.
"""

import os

# Set environment variables before any teammove import (settings are cached)
os.environ["TEAMMOVE_SUBSCRIPTION_WORKER_ENABLED"] = "false"
os.environ["TEAMMOVE_EMAIL_ENABLED"] = "false"
os.environ["TEAMMOVE_STRIPE_SECRET_KEY"] = "sk_test_teammove"
os.environ["TEAMMOVE_STRIPE_WEBHOOK_SECRET"] = "whsec_test_teammove"
os.environ["TEAMMOVE_LOG_FORMAT"] = "text"

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from factories import ADMIN_ORG_ID, NOW, ORG_ID
from teammove.auth.dependencies import User
from teammove.models.organization import OrganizationRole

# ============== User Fixtures ==============

@pytest.fixture
def mock_user_org():
    """Authenticated organizer of ORG_ID."""
    return User(
        id=str(ORG_ID),
        email="contact@fccovoit.fr",
        organization_id=ORG_ID,
        role=OrganizationRole.ORGANIZATION.value,
    )


@pytest.fixture
def mock_user_admin():
    """Platform administrator."""
    return User(
        id=str(ADMIN_ORG_ID),
        email="admin@teammove.fr",
        organization_id=ADMIN_ORG_ID,
        role=OrganizationRole.ADMIN.value,
    )


# ============== Database Mock Fixtures ==============

@pytest.fixture
def mock_db_session():
    """Create a mock AsyncSession for database operations."""
    from sqlalchemy.ext.asyncio import AsyncSession
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    # begin_nested() is a sync call returning an async context manager;
    # __aexit__ returns False so exceptions still propagate
    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=savepoint)
    return session


# ============== Service Mock Fixtures ==============

@pytest.fixture
def mock_email():
    email = MagicMock()
    email.send_subscription_email = AsyncMock(return_value=True)
    email.send_renewal_reminder = AsyncMock(return_value=True)
    email.send_low_events_warning = AsyncMock(return_value=True)
    email.send_event_invitation = AsyncMock(return_value=True)
    email.send_broadcast = AsyncMock(return_value=True)
    email.send_event_reminder = AsyncMock(return_value=True)
    email.send_change_request_received = AsyncMock(return_value=True)
    email.send_change_request_decision = AsyncMock(return_value=True)
    return email


@pytest.fixture
def mock_payments():
    payments = MagicMock()
    payments.create_checkout_session = AsyncMock(
        return_value={"id": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}
    )
    payments.retrieve_checkout_session = AsyncMock()
    payments.cancel_subscription = AsyncMock(return_value={"id": "sub_123", "status": "canceled"})
    return payments


# ============== App Fixtures ==============

@pytest.fixture
def app():
    from teammove.main import app
    return app


@pytest.fixture
def app_with_org(app, mock_user_org, mock_db_session):
    """App with organizer auth and db overrides."""
    from teammove.auth.dependencies import get_current_user
    from teammove.database import get_db

    async def override_get_current_user():
        return mock_user_org

    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def app_with_admin(app, mock_user_admin, mock_db_session):
    """App with admin auth and db overrides."""
    from teammove.auth.dependencies import get_current_user
    from teammove.database import get_db

    async def override_get_current_user():
        return mock_user_admin

    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def app_public(app, mock_db_session):
    """App with only the db overridden (public endpoints)."""
    from teammove.database import get_db

    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_app_state():
    """Clear dependency overrides and rate limit counters after each test."""
    yield
    from teammove.main import app
    from teammove.middleware.rate_limit import limiter

    app.dependency_overrides.clear()
    limiter.reset()


@pytest.fixture
def sample_event_data():
    return {
        "id": uuid4(),
        "organization_id": ORG_ID,
        "name": "Match contre Lyon",
        "sport": "football",
        "description": "Déplacement en car ou covoiturage",
        "date": NOW + timedelta(days=7),
        "duration": 90,
        "meeting_point": "Stade municipal",
        "destination": "Stade de Gerland",
        "is_recurring": False,
        "recurrence_pattern": None,
        "status": "confirmed",
        "reminder_sent_at": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
