# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""
Tests for Events Router

Event creation and deletion are gated by the organization's plan.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

from fastapi.testclient import TestClient

from factories import ORG_ID, create_mock
from teammove.errors import EntitlementDeniedError
from teammove.services.subscription_service import PermissionResult

EVENT_PAYLOAD = {
    "name": "Match contre Lyon",
    "sport": "football",
    "date": "2026-03-22T15:00:00Z",
    "duration": 90,
    "meeting_point": "Stade municipal",
    "destination": "Stade de Gerland",
}


class TestEventsRouter:
    """Test suite for Events Router endpoints."""

    # ============== Create Event Tests ==============

    def test_create_event_success(self, app_with_org, sample_event_data):
        mock_event = create_mock(sample_event_data)

        with patch("teammove.api.v1.events.EventRepository") as MockRepo, \
             patch("teammove.api.v1.events.SubscriptionService") as MockService:
            MockRepo.return_value.create = AsyncMock(return_value=mock_event)
            service = MockService.return_value
            service.require_create_event = AsyncMock(
                return_value=PermissionResult(allowed=True, remaining_events=1)
            )
            service.record_event_created = AsyncMock()

            with TestClient(app_with_org) as client:
                response = client.post("/v1/events", json=EVENT_PAYLOAD)

            assert response.status_code == 201
            data = response.json()
            assert data["name"] == "Match contre Lyon"
            assert data["organization_id"] == str(ORG_ID)
            service.require_create_event.assert_awaited_once_with(ORG_ID)
            service.record_event_created.assert_awaited_once_with(ORG_ID)

            created = MockRepo.return_value.create.call_args.args[0]
            assert created.organization_id == ORG_ID
            assert created.status == "confirmed"

    def test_create_event_quota_exhausted_403(self, app_with_org):
        with patch("teammove.api.v1.events.EventRepository") as MockRepo, \
             patch("teammove.api.v1.events.SubscriptionService") as MockService:
            MockRepo.return_value.create = AsyncMock()
            service = MockService.return_value
            service.require_create_event = AsyncMock(
                side_effect=EntitlementDeniedError(
                    "create_event", "Event limit reached (1) for your plan", remaining_events=0
                )
            )
            service.record_event_created = AsyncMock()

            with TestClient(app_with_org) as client:
                response = client.post("/v1/events", json=EVENT_PAYLOAD)

            assert response.status_code == 403
            error = response.json()["error"]
            assert error["code"] == "ENTITLEMENT_DENIED"
            assert error["details"]["remaining_events"] == 0
            assert error["details"]["upgrade_url"]
            MockRepo.return_value.create.assert_not_awaited()
            service.record_event_created.assert_not_awaited()

    def test_create_event_validation_error(self, app_with_org):
        with TestClient(app_with_org) as client:
            response = client.post("/v1/events", json={"name": "No date"})

        assert response.status_code == 422

    # ============== Read / Update Tests ==============

    def test_list_events(self, app_with_org, sample_event_data):
        mock_event = create_mock(sample_event_data)

        with patch("teammove.api.v1.events.EventRepository") as MockRepo:
            MockRepo.return_value.list_by_organization = AsyncMock(return_value=([mock_event], 1))

            with TestClient(app_with_org) as client:
                response = client.get("/v1/events", params={"status": "confirmed"})

            assert response.status_code == 200
            data = response.json()
            assert data["total"] == 1
            assert data["total_pages"] == 1
            assert len(data["items"]) == 1
            kwargs = MockRepo.return_value.list_by_organization.call_args.kwargs
            assert kwargs["status"] == "confirmed"

    def test_get_event_of_other_organization_404(self, app_with_org):
        with patch("teammove.api.v1.events.EventRepository") as MockRepo:
            MockRepo.return_value.get_for_organization = AsyncMock(return_value=None)

            with TestClient(app_with_org) as client:
                response = client.get(f"/v1/events/{uuid4()}")

            assert response.status_code == 404
            assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    def test_update_event(self, app_with_org, sample_event_data):
        mock_event = create_mock(sample_event_data)
        updated = create_mock({**sample_event_data, "status": "cancelled"})

        with patch("teammove.api.v1.events.EventRepository") as MockRepo:
            MockRepo.return_value.get_for_organization = AsyncMock(return_value=mock_event)
            MockRepo.return_value.update = AsyncMock(return_value=updated)

            with TestClient(app_with_org) as client:
                response = client.put(
                    f"/v1/events/{sample_event_data['id']}", json={"status": "cancelled"}
                )

            assert response.status_code == 200
            assert response.json()["status"] == "cancelled"
            MockRepo.return_value.update.assert_awaited_once_with(mock_event, status="cancelled")

    # ============== Delete Event Tests ==============

    def test_delete_event_success(self, app_with_org, sample_event_data):
        mock_event = create_mock(sample_event_data)

        with patch("teammove.api.v1.events.EventRepository") as MockRepo, \
             patch("teammove.api.v1.events.SubscriptionService") as MockService:
            MockRepo.return_value.get_for_organization = AsyncMock(return_value=mock_event)
            MockRepo.return_value.delete = AsyncMock()
            MockService.return_value.require_delete_event = AsyncMock(
                return_value=PermissionResult(allowed=True)
            )

            with TestClient(app_with_org) as client:
                response = client.delete(f"/v1/events/{sample_event_data['id']}")

            assert response.status_code == 204
            MockRepo.return_value.delete.assert_awaited_once_with(mock_event)

    def test_delete_event_on_free_plan_403(self, app_with_org, sample_event_data):
        mock_event = create_mock(sample_event_data)

        with patch("teammove.api.v1.events.EventRepository") as MockRepo, \
             patch("teammove.api.v1.events.SubscriptionService") as MockService:
            MockRepo.return_value.get_for_organization = AsyncMock(return_value=mock_event)
            MockRepo.return_value.delete = AsyncMock()
            MockService.return_value.require_delete_event = AsyncMock(
                side_effect=EntitlementDeniedError(
                    "delete_event", "Deleting events is not available on your plan"
                )
            )

            with TestClient(app_with_org) as client:
                response = client.delete(f"/v1/events/{sample_event_data['id']}")

            assert response.status_code == 403
            assert response.json()["error"]["details"]["operation"] == "delete_event"
            MockRepo.return_value.delete.assert_not_awaited()

    def test_requires_authentication(self, app):
        with TestClient(app) as client:
            response = client.get("/v1/events")

        assert response.status_code in (401, 403)
