# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the maintenance worker, invitation service and email service."""

import asyncio
import smtplib
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from factories import create_mock, make_org
from teammove.services import invitation_service
from teammove.services.email import EmailService
from teammove.services.subscription_service import ExpiryReport
from teammove.workers.subscription_worker import SubscriptionMaintenanceWorker


class TestSubscriptionWorker:
    @pytest.mark.asyncio
    async def test_run_once(self, mock_db_session):
        @asynccontextmanager
        async def fake_scope():
            yield mock_db_session

        with patch("teammove.workers.subscription_worker.session_scope", fake_scope), \
             patch("teammove.workers.subscription_worker.SubscriptionService") as MockService, \
             patch(
                 "teammove.workers.subscription_worker.send_upcoming_event_reminders",
                 AsyncMock(return_value=2),
             ) as mock_event_reminders:
            MockService.return_value.process_expired_subscriptions = AsyncMock(
                return_value=ExpiryReport(processed=3, errors=0)
            )
            MockService.return_value.send_renewal_reminders = AsyncMock(return_value=5)

            result = await SubscriptionMaintenanceWorker(interval_seconds=60).run_once()

        assert result.expired == 3
        assert result.errors == 0
        assert result.reminders_sent == 5
        assert result.event_reminders_sent == 2
        MockService.assert_called_once_with(mock_db_session)
        mock_event_reminders.assert_awaited_once_with(mock_db_session)

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        worker = SubscriptionMaintenanceWorker(interval_seconds=3600)
        worker.run_once = AsyncMock()

        await worker.start()
        await asyncio.sleep(0)
        assert worker.running
        await worker.stop()

        assert not worker.running
        worker.run_once.assert_awaited()

    @pytest.mark.asyncio
    async def test_loop_survives_errors(self):
        worker = SubscriptionMaintenanceWorker(interval_seconds=3600)
        worker.run_once = AsyncMock(side_effect=RuntimeError("db down"))

        await worker.start()
        await asyncio.sleep(0)
        await worker.stop()

        assert not worker.running


class TestInvitationService:
    def test_tokens_are_unique_and_url_safe(self):
        tokens = {invitation_service.generate_invitation_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(len(t) == 43 for t in tokens)

    def test_invitation_link(self):
        assert invitation_service.build_invitation_link("abc").endswith("/invitation/abc")

    @pytest.mark.asyncio
    async def test_invite_by_email_splits_failures(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        mock_email.send_event_invitation = AsyncMock(side_effect=[True, False])

        with patch("teammove.services.invitation_service.InvitationRepository") as MockRepo:
            MockRepo.return_value.create = AsyncMock(side_effect=lambda inv: inv)
            MockRepo.return_value.delete = AsyncMock()

            sent, failed = await invitation_service.invite_by_email(
                mock_db_session,
                event,
                make_org(),
                ["a@example.com", " A@example.com ", "b@example.com"],
                email=mock_email,
            )

        assert [inv.email for inv in sent] == ["a@example.com"]
        assert failed == ["b@example.com"]
        assert MockRepo.return_value.create.await_count == 2
        MockRepo.return_value.delete.assert_awaited_once()
        deleted = MockRepo.return_value.delete.await_args.args[0]
        assert deleted.email == "b@example.com"

    @pytest.mark.asyncio
    async def test_share_link_has_no_email(self, mock_db_session, sample_event_data):
        event = create_mock(sample_event_data)

        with patch("teammove.services.invitation_service.InvitationRepository") as MockRepo:
            MockRepo.return_value.create = AsyncMock(side_effect=lambda inv: inv)

            invitation = await invitation_service.create_share_link(mock_db_session, event)

        assert invitation.email == ""
        assert invitation.event_id == event.id
        assert invitation.status == "pending"


class TestEmailService:
    @pytest.mark.asyncio
    async def test_disabled_service_skips_smtp(self):
        service = EmailService()
        service.enabled = False
        service._deliver = MagicMock()

        assert await service.send_email("a@example.com", "Hello", "<p>Hi</p>")
        service._deliver.assert_not_called()

    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self):
        service = EmailService()
        service.enabled = True
        service._deliver = MagicMock(side_effect=smtplib.SMTPException("refused"))

        assert await service.send_email("a@example.com", "Hello", "<p>Hi</p>") is False

    @pytest.mark.asyncio
    async def test_renewal_reminder_content(self):
        service = EmailService()
        service.send_email = AsyncMock(return_value=True)

        await service.send_renewal_reminder("a@example.com", "FC Covoit", "PME", 3, None)

        args = service.send_email.call_args
        assert args.args[1] == "Votre abonnement expire dans 3 jours"
        assert args.kwargs.get("kind") == "renewal_reminder"
