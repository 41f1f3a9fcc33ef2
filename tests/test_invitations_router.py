# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for Invitations Router (quota-gated email invitations and public lookup)."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from fastapi.testclient import TestClient

from factories import NOW, ORG_ID, create_mock, make_org
from teammove.errors import EntitlementDeniedError
from teammove.services.subscription_service import PermissionResult


def _invitation(event_id, email="a@example.com", token=None, status="pending"):
    return create_mock(
        {
            "id": uuid4(),
            "event_id": event_id,
            "email": email,
            "token": token or f"tok-{uuid4().hex}",
            "status": status,
            "sent_at": NOW,
            "responded_at": None,
        }
    )


class TestSendInvitations:
    def test_send_invitations_counts_delivered_only(self, app_with_org, sample_event_data):
        event = create_mock(sample_event_data)
        sent = [_invitation(event.id, "a@example.com")]

        with patch("teammove.api.v1.invitations.EventRepository") as MockEvents, \
             patch("teammove.api.v1.invitations.OrganizationRepository") as MockOrgs, \
             patch("teammove.api.v1.invitations.SubscriptionService") as MockService, \
             patch("teammove.api.v1.invitations.invitation_service") as mock_invites:
            MockEvents.return_value.get_for_organization = AsyncMock(return_value=event)
            MockOrgs.return_value.get_by_id = AsyncMock(return_value=make_org())
            service = MockService.return_value
            service.require_send_invitations = AsyncMock(
                return_value=PermissionResult(allowed=True, remaining_invitations=20)
            )
            service.record_invitations_sent = AsyncMock()
            mock_invites.invite_by_email = AsyncMock(return_value=(sent, ["b@example.com"]))
            mock_invites.build_invitation_link = lambda token: f"http://app/invitation/{token}"

            with TestClient(app_with_org) as client:
                response = client.post(
                    f"/v1/events/{event.id}/invitations",
                    json={"emails": ["A@example.com", "a@example.com", "b@example.com"]},
                )

            assert response.status_code == 201
            data = response.json()
            assert len(data["sent"]) == 1
            assert data["failed"] == ["b@example.com"]
            assert data["remaining_invitations"] == 19
            assert data["sent"][0]["invitation_link"].startswith("http://app/invitation/")
            # duplicates are collapsed before the quota check
            service.require_send_invitations.assert_awaited_once_with(ORG_ID, 2)
            service.record_invitations_sent.assert_awaited_once_with(ORG_ID, 1)

    def test_send_invitations_over_quota_403(self, app_with_org, sample_event_data):
        event = create_mock(sample_event_data)

        with patch("teammove.api.v1.invitations.EventRepository") as MockEvents, \
             patch("teammove.api.v1.invitations.SubscriptionService") as MockService, \
             patch("teammove.api.v1.invitations.invitation_service") as mock_invites:
            MockEvents.return_value.get_for_organization = AsyncMock(return_value=event)
            MockService.return_value.require_send_invitations = AsyncMock(
                side_effect=EntitlementDeniedError(
                    "send_invitations",
                    "Invitation limit reached: 2 remaining out of 20",
                    remaining_invitations=2,
                )
            )
            mock_invites.invite_by_email = AsyncMock()

            with TestClient(app_with_org) as client:
                response = client.post(
                    f"/v1/events/{event.id}/invitations",
                    json={"emails": ["a@example.com", "b@example.com", "c@example.com"]},
                )

            assert response.status_code == 403
            assert response.json()["error"]["details"]["remaining_invitations"] == 2
            mock_invites.invite_by_email.assert_not_awaited()

    def test_send_invitations_empty_list_422(self, app_with_org):
        with TestClient(app_with_org) as client:
            response = client.post(f"/v1/events/{uuid4()}/invitations", json={"emails": []})

        assert response.status_code == 422

    def test_share_link_does_not_use_quota(self, app_with_org, sample_event_data):
        event = create_mock(sample_event_data)
        link = _invitation(event.id, email="")

        with patch("teammove.api.v1.invitations.EventRepository") as MockEvents, \
             patch("teammove.api.v1.invitations.SubscriptionService") as MockService, \
             patch("teammove.api.v1.invitations.invitation_service") as mock_invites:
            MockEvents.return_value.get_for_organization = AsyncMock(return_value=event)
            mock_invites.create_share_link = AsyncMock(return_value=link)
            mock_invites.build_invitation_link = lambda token: f"http://app/invitation/{token}"

            with TestClient(app_with_org) as client:
                response = client.post(f"/v1/events/{event.id}/invitations/link")

            assert response.status_code == 201
            assert response.json()["email"] == ""
            MockService.assert_not_called()


class TestPublicInvitation:
    def test_lookup_invitation(self, app_public, sample_event_data):
        event = create_mock(sample_event_data)
        invitation = _invitation(event.id, token="public-token")

        with patch("teammove.api.v1.invitations.InvitationRepository") as MockInvites, \
             patch("teammove.api.v1.invitations.EventRepository") as MockEvents, \
             patch("teammove.api.v1.invitations.OrganizationRepository") as MockOrgs:
            MockInvites.return_value.get_by_token = AsyncMock(return_value=invitation)
            MockEvents.return_value.get_by_id = AsyncMock(return_value=event)
            MockOrgs.return_value.get_by_id = AsyncMock(return_value=make_org())

            with TestClient(app_public) as client:
                response = client.get("/v1/invitations/public-token")

            assert response.status_code == 200
            data = response.json()
            assert data["organization_name"] == "FC Covoit"
            assert data["event"]["name"] == "Match contre Lyon"
            assert data["email"] == "a@example.com"

    def test_lookup_unknown_token_404(self, app_public):
        with patch("teammove.api.v1.invitations.InvitationRepository") as MockInvites:
            MockInvites.return_value.get_by_token = AsyncMock(return_value=None)

            with TestClient(app_public) as client:
                response = client.get("/v1/invitations/nope")

            assert response.status_code == 404

    def test_respond_to_invitation(self, app_public, sample_event_data):
        invitation = _invitation(sample_event_data["id"], token="tok")

        def respond(accept):
            invitation.status = "accepted" if accept else "declined"
            invitation.responded_at = NOW + timedelta(minutes=5)

        invitation.respond = respond

        with patch("teammove.api.v1.invitations.InvitationRepository") as MockInvites:
            MockInvites.return_value.get_by_token = AsyncMock(return_value=invitation)
            MockInvites.return_value.save = AsyncMock(return_value=invitation)

            with TestClient(app_public) as client:
                response = client.post("/v1/invitations/tok/respond", json={"accept": True})

            assert response.status_code == 200
            assert response.json()["status"] == "accepted"
