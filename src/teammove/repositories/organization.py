# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for organization CRUD operations"""
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.organization import Organization, OrganizationRole
from teammove.plans import PlanType


class OrganizationRepository:
    """Repository for organization database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization"""
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def get_by_id(
        self, organization_id: UUID, for_update: bool = False
    ) -> Optional[Organization]:
        """Get organization by ID, optionally locking the row for counter updates"""
        query = select(Organization).where(Organization.id == organization_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[Organization]:
        result = await self.session.execute(
            select(Organization).where(func.lower(Organization.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_subscription(self, subscription_id: str) -> Optional[Organization]:
        result = await self.session.execute(
            select(Organization).where(Organization.stripe_subscription_id == subscription_id)
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_customer(self, customer_id: str) -> Optional[Organization]:
        result = await self.session.execute(
            select(Organization).where(Organization.stripe_customer_id == customer_id)
        )
        return result.scalars().first()

    async def save(self, organization: Organization) -> Organization:
        """Flush pending changes on an already-tracked organization"""
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def list_all(
        self,
        subscription_type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Organization], int]:
        """List organizations with pagination (admin view)"""
        query = select(Organization)

        if subscription_type:
            query = query.where(Organization.subscription_type == subscription_type)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                Organization.name.ilike(pattern) | Organization.email.ilike(pattern)
            )

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.execute(count_query)
        total = total_result.scalar_one()

        query = query.order_by(Organization.created_at.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def list_paid(self) -> List[Organization]:
        """Non-admin organizations on any plan other than Découverte"""
        result = await self.session.execute(
            select(Organization).where(
                Organization.role != OrganizationRole.ADMIN.value,
                Organization.subscription_type != PlanType.DECOUVERTE.value,
            )
        )
        return list(result.scalars().all())

    async def update_status(self, organization: Organization, is_active: bool) -> Organization:
        organization.is_active = is_active
        return await self.save(organization)

    async def count_by_subscription_type(self) -> dict:
        """Organization counts keyed by subscription type"""
        result = await self.session.execute(
            select(Organization.subscription_type, func.count(Organization.id))
            .group_by(Organization.subscription_type)
        )
        return {row[0]: row[1] for row in result.all()}
