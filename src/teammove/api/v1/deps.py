# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Shared helpers for v1 endpoints."""

import math
from uuid import UUID

from teammove.auth.dependencies import User
from teammove.errors import ResourceNotFoundError
from teammove.models.event import Event
from teammove.repositories.event import EventRepository


async def load_owned_event(repo: EventRepository, event_id: UUID, user: User) -> Event:
    """Fetch an event of the caller's organization, or raise a 404.

    Events of other organizations are reported as missing rather than
    forbidden so their ids cannot be enumerated.
    """
    event = await repo.get_for_organization(event_id, user.organization_id)
    if event is None:
        raise ResourceNotFoundError("event", event_id)
    return event


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0
