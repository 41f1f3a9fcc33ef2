# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Organization registration and profile endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.auth.dependencies import User, get_current_user
from teammove.config import settings
from teammove.database import get_db
from teammove.errors import OrganizationNotFoundError
from teammove.logging_config import get_logger
from teammove.middleware.rate_limit import limiter
from teammove.models.organization import Organization, OrganizationRole, SubscriptionStatus
from teammove.plans import PlanType
from teammove.repositories.organization import OrganizationRepository
from teammove.schemas.organization import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_registration)
async def register_organization(
    request: Request,
    payload: OrganizationCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new organization.

    New organizations start on the free Découverte plan.
    """
    repo = OrganizationRepository(db)

    if await repo.get_by_email(payload.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An organization with this email already exists",
        )

    organization = Organization(
        name=payload.name,
        type=payload.type.value,
        email=payload.email.lower(),
        phone=payload.phone,
        address=payload.address,
        description=payload.description,
        sports=payload.sports,
        contact_first_name=payload.contact_first_name,
        contact_last_name=payload.contact_last_name,
        role=OrganizationRole.ORGANIZATION.value,
        is_active=True,
        subscription_type=PlanType.DECOUVERTE.value,
        subscription_status=SubscriptionStatus.ACTIVE.value,
        event_created_count=0,
        invitations_sent_count=0,
    )
    organization = await repo.create(organization)
    logger.info("organization_registered", organization_id=str(organization.id))
    return OrganizationResponse.model_validate(organization)


@router.get("/me", response_model=OrganizationResponse)
async def get_my_organization(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    organization = await OrganizationRepository(db).get_by_id(user.organization_id)
    if not organization:
        raise OrganizationNotFoundError(user.organization_id)
    return OrganizationResponse.model_validate(organization)


@router.put("/me", response_model=OrganizationResponse)
async def update_my_organization(
    payload: OrganizationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    repo = OrganizationRepository(db)
    organization = await repo.get_by_id(user.organization_id)
    if not organization:
        raise OrganizationNotFoundError(user.organization_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "type" and value is not None:
            value = value.value
        setattr(organization, field, value)

    organization = await repo.save(organization)
    return OrganizationResponse.model_validate(organization)
