# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""API v1 router assembly."""

from fastapi import APIRouter

from teammove.api.v1 import (
    admin,
    change_requests,
    dashboard,
    events,
    invitations,
    messages,
    notifications,
    organizations,
    participants,
    plans,
    subscription,
)

router = APIRouter(prefix="/v1")

router.include_router(plans.router)
router.include_router(organizations.router)
router.include_router(subscription.router)
router.include_router(subscription.webhook_router)
router.include_router(events.router)
router.include_router(participants.router)
router.include_router(change_requests.router)
router.include_router(invitations.router)
router.include_router(messages.router)
router.include_router(notifications.router)
router.include_router(dashboard.router)
router.include_router(admin.router)
