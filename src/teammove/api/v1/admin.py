# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Platform administration endpoints (admin role only)"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.api.v1.deps import total_pages
from teammove.auth.dependencies import User, require_admin
from teammove.database import get_db
from teammove.errors import OrganizationNotFoundError
from teammove.logging_config import get_logger
from teammove.plans import PlanType
from teammove.repositories.event import EventRepository
from teammove.repositories.invitation import InvitationRepository
from teammove.repositories.organization import OrganizationRepository
from teammove.schemas.admin import AdminStatsResponse, MaintenanceRunResponse
from teammove.schemas.organization import (
    AdminOrganizationListResponse,
    AdminOrganizationResponse,
    OrganizationStatusUpdate,
)
from teammove.services.event_reminders import send_upcoming_event_reminders
from teammove.services.subscription_service import SubscriptionService

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/organizations", response_model=AdminOrganizationListResponse)
async def list_organizations(
    subscription_type: Optional[PlanType] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    organizations, total = await OrganizationRepository(db).list_all(
        subscription_type=subscription_type.value if subscription_type else None,
        search=search,
        page=page,
        page_size=page_size,
    )
    return AdminOrganizationListResponse(
        items=[AdminOrganizationResponse.model_validate(o) for o in organizations],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.patch("/organizations/{organization_id}/status", response_model=AdminOrganizationResponse)
async def update_organization_status(
    organization_id: UUID,
    payload: OrganizationStatusUpdate,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    repo = OrganizationRepository(db)
    organization = await repo.get_by_id(organization_id)
    if not organization:
        raise OrganizationNotFoundError(organization_id)

    organization = await repo.update_status(organization, payload.is_active)
    logger.info(
        "organization_status_changed",
        target_organization_id=str(organization_id),
        is_active=payload.is_active,
        admin_id=user.id,
    )
    return AdminOrganizationResponse.model_validate(organization)


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    by_type = await OrganizationRepository(db).count_by_subscription_type()
    return AdminStatsResponse(
        total_organizations=sum(by_type.values()),
        organizations_by_subscription=by_type,
        total_events=await EventRepository(db).count(),
        total_invitations=await InvitationRepository(db).count(),
    )


@router.post("/subscriptions/run-maintenance", response_model=MaintenanceRunResponse)
async def run_maintenance(
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Run the maintenance cycle now instead of waiting for the worker."""
    service = SubscriptionService(db)
    report = await service.process_expired_subscriptions()
    reminders = await service.send_renewal_reminders()
    event_reminders = await send_upcoming_event_reminders(db)
    logger.info("maintenance_triggered", admin_id=user.id, expired=report.processed)
    return MaintenanceRunResponse(
        expired=report.processed,
        errors=report.errors,
        reminders_sent=reminders,
        event_reminders_sent=event_reminders,
    )
