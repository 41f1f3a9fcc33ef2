# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Subscription maintenance background worker.

Each cycle runs three jobs in one transaction:
1. Expiry sweep: downgrade lapsed packs and subscriptions to Découverte
2. Renewal reminders: warn organizations 7, 3 and 1 day(s) before expiry
3. Event reminders: email participants of confirmed events starting soon
"""

import asyncio
from dataclasses import dataclass

from ..config import settings
from ..database import session_scope
from ..logging_config import get_logger
from ..middleware.metrics import MAINTENANCE_RUNS_TOTAL
from ..services.event_reminders import send_upcoming_event_reminders
from ..services.subscription_service import SubscriptionService

logger = get_logger(__name__)


@dataclass(frozen=True)
class MaintenanceResult:
    expired: int
    errors: int
    reminders_sent: int
    event_reminders_sent: int = 0


class SubscriptionMaintenanceWorker:
    """Background asyncio task for subscription expiry and reminders."""

    def __init__(self, interval_seconds: int | None = None) -> None:
        self._interval = interval_seconds or settings.subscription_worker_interval_seconds
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the maintenance loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("subscription_worker_started", interval=self._interval)

    async def stop(self) -> None:
        """Stop the maintenance loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("subscription_worker_stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                MAINTENANCE_RUNS_TOTAL.labels(result="error").inc()
                logger.error("subscription_worker_error", error=str(e))
            await asyncio.sleep(self._interval)

    async def run_once(self) -> MaintenanceResult:
        """Execute one maintenance cycle."""
        async with session_scope() as session:
            service = SubscriptionService(session)
            report = await service.process_expired_subscriptions()
            reminders = await service.send_renewal_reminders()
            event_reminders = await send_upcoming_event_reminders(session)

        MAINTENANCE_RUNS_TOTAL.labels(result="ok").inc()
        logger.info(
            "subscription_worker_cycle",
            expired=report.processed,
            errors=report.errors,
            reminders_sent=reminders,
            event_reminders_sent=event_reminders,
        )
        return MaintenanceResult(
            expired=report.processed,
            errors=report.errors,
            reminders_sent=reminders,
            event_reminders_sent=event_reminders,
        )


# Singleton instance (started/stopped in main.py lifespan)
subscription_worker = SubscriptionMaintenanceWorker()
