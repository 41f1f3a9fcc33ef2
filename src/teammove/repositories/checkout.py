# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Repository for the processed checkout session ledger"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.models.checkout import ProcessedCheckoutSession


class CheckoutSessionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, session_id: str) -> Optional[ProcessedCheckoutSession]:
        result = await self.session.execute(
            select(ProcessedCheckoutSession).where(
                ProcessedCheckoutSession.session_id == session_id
            )
        )
        return result.scalar_one_or_none()

    async def record(
        self, session_id: str, organization_id: UUID, plan_id: str, processed_at: datetime
    ) -> ProcessedCheckoutSession:
        """Insert the session id; the unique constraint rejects a concurrent duplicate."""
        entry = ProcessedCheckoutSession(
            session_id=session_id,
            organization_id=organization_id,
            plan_id=plan_id,
            processed_at=processed_at,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry
