# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for the organizer dashboard"""
from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_events: int
    active_events: int
    completed_events: int
    total_participants: int
    total_drivers: int
    total_seats: int
    occupied_seats: int
    available_seats_remaining: int
    pending_change_requests: int
