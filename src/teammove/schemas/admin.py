# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for the admin console"""
from typing import Dict

from pydantic import BaseModel


class AdminStatsResponse(BaseModel):
    total_organizations: int
    organizations_by_subscription: Dict[str, int]
    total_events: int
    total_invitations: int


class MaintenanceRunResponse(BaseModel):
    expired: int
    errors: int
    reminders_sent: int
    event_reminders_sent: int
