# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Organizer dashboard endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.auth.dependencies import User, get_current_user
from teammove.database import get_db
from teammove.models.base import utcnow
from teammove.repositories.change_request import ChangeRequestRepository
from teammove.repositories.event import EventRepository
from teammove.repositories.participant import ParticipantRepository
from teammove.schemas.dashboard import DashboardStats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Carpool totals across every event of the organization.

    Active events are those not yet started. Seats count what drivers offer;
    each non-declined passenger occupies one.
    """
    total, active = await EventRepository(db).count_by_organization(user.organization_id, utcnow())
    seats = await ParticipantRepository(db).seat_totals_for_organization(user.organization_id)
    pending = await ChangeRequestRepository(db).count_pending_for_organization(user.organization_id)

    return DashboardStats(
        total_events=total,
        active_events=active,
        completed_events=total - active,
        total_participants=seats.participants,
        total_drivers=seats.drivers,
        total_seats=seats.seats,
        occupied_seats=seats.passengers,
        available_seats_remaining=max(0, seats.seats - seats.passengers),
        pending_change_requests=pending,
    )
