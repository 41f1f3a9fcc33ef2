# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the admin endpoints (admin role required)."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from factories import ORG_ID, make_org, make_pro_org
from teammove.services.subscription_service import ExpiryReport


class TestAdminRouter:
    def test_non_admin_forbidden(self, app_with_org):
        with TestClient(app_with_org) as client:
            response = client.get("/v1/admin/stats")

        assert response.status_code == 403

    def test_list_organizations(self, app_with_admin):
        with patch("teammove.api.v1.admin.OrganizationRepository") as MockRepo:
            MockRepo.return_value.list_all = AsyncMock(return_value=([make_pro_org()], 1))

            with TestClient(app_with_admin) as client:
                response = client.get(
                    "/v1/admin/organizations", params={"subscription_type": "pro_club", "search": "covoit"}
                )

            assert response.status_code == 200
            data = response.json()
            assert data["total"] == 1
            assert data["items"][0]["stripe_customer_id"] == "cus_123"
            kwargs = MockRepo.return_value.list_all.call_args.kwargs
            assert kwargs["subscription_type"] == "pro_club"
            assert kwargs["search"] == "covoit"

    def test_update_status(self, app_with_admin):
        org = make_org()

        async def update_status(o, is_active):
            o.is_active = is_active
            return o

        with patch("teammove.api.v1.admin.OrganizationRepository") as MockRepo:
            MockRepo.return_value.get_by_id = AsyncMock(return_value=org)
            MockRepo.return_value.update_status = AsyncMock(side_effect=update_status)

            with TestClient(app_with_admin) as client:
                response = client.patch(
                    f"/v1/admin/organizations/{ORG_ID}/status", json={"is_active": False}
                )

            assert response.status_code == 200
            assert response.json()["is_active"] is False

    def test_stats(self, app_with_admin):
        with patch("teammove.api.v1.admin.OrganizationRepository") as MockOrgs, \
             patch("teammove.api.v1.admin.EventRepository") as MockEvents, \
             patch("teammove.api.v1.admin.InvitationRepository") as MockInvites:
            MockOrgs.return_value.count_by_subscription_type = AsyncMock(
                return_value={"decouverte": 12, "pro_club": 3}
            )
            MockEvents.return_value.count = AsyncMock(return_value=40)
            MockInvites.return_value.count = AsyncMock(return_value=310)

            with TestClient(app_with_admin) as client:
                response = client.get("/v1/admin/stats")

            assert response.status_code == 200
            assert response.json() == {
                "total_organizations": 15,
                "organizations_by_subscription": {"decouverte": 12, "pro_club": 3},
                "total_events": 40,
                "total_invitations": 310,
            }

    def test_run_maintenance(self, app_with_admin):
        with patch("teammove.api.v1.admin.SubscriptionService") as MockService, \
             patch(
                 "teammove.api.v1.admin.send_upcoming_event_reminders", AsyncMock(return_value=3)
             ):
            MockService.return_value.process_expired_subscriptions = AsyncMock(
                return_value=ExpiryReport(processed=2, errors=1)
            )
            MockService.return_value.send_renewal_reminders = AsyncMock(return_value=4)

            with TestClient(app_with_admin) as client:
                response = client.post("/v1/admin/subscriptions/run-maintenance")

            assert response.status_code == 200
            assert response.json() == {
                "expired": 2,
                "errors": 1,
                "reminders_sent": 4,
                "event_reminders_sent": 3,
            }
