# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for participant change requests (service and endpoints)."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from factories import NOW, ORG_ID, create_mock, make_org
from teammove.errors import ResourceNotFoundError, TeamMoveError, TeamMoveErrorCode
from teammove.schemas.change_request import ChangeRequestCreate, ChangeRequestDecision
from teammove.services.change_request_service import ChangeRequestService


def _participant(event_id, **overrides):
    data = {
        "id": uuid4(),
        "event_id": event_id,
        "name": "Sam",
        "email": "sam@example.com",
        "role": "driver",
        "available_seats": 3,
        "status": "confirmed",
    }
    data.update(overrides)
    return create_mock(data)


def _change_request(event_id, **overrides):
    data = {
        "id": uuid4(),
        "participant_id": uuid4(),
        "event_id": event_id,
        "participant_name": "Sam",
        "participant_email": "sam@example.com",
        "request_type": "seat_change",
        "current_value": "3",
        "requested_value": "5",
        "reason": "Ma femme vient aussi",
        "status": "pending",
        "organizer_comment": None,
        "processed_at": None,
        "created_at": NOW,
    }
    data.update(overrides)
    return create_mock(data)


def _build_service(mock_db_session, mock_email, event, participant=None):
    service = ChangeRequestService(mock_db_session, email=mock_email, clock=lambda: NOW)
    service.participants = MagicMock()
    service.participants.get_by_id = AsyncMock(return_value=participant)
    service.participants.update = AsyncMock()
    service.participants.delete = AsyncMock()
    service.events = MagicMock()
    service.events.get_by_id = AsyncMock(return_value=event)
    service.events.get_for_organization = AsyncMock(return_value=event)
    service.organizations = MagicMock()
    service.organizations.get_by_id = AsyncMock(return_value=make_org())
    service.notifications = MagicMock()
    service.notifications.create = AsyncMock()
    service.requests = MagicMock()
    service.requests.create = AsyncMock(side_effect=lambda r: r)
    service.requests.save = AsyncMock(side_effect=lambda r: r)
    service.requests.get_pending_for_participant = AsyncMock(return_value=None)
    return service


class TestSubmit:
    @pytest.mark.asyncio
    async def test_role_change_is_recorded_and_organizer_told(
        self, mock_db_session, mock_email, sample_event_data
    ):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        service = _build_service(mock_db_session, mock_email, event, participant)

        request = await service.submit(
            participant.id,
            ChangeRequestCreate(
                email="SAM@example.com",
                request_type="role_change",
                requested_value="passenger",
                reason="Voiture en panne",
            ),
        )

        assert request.status == "pending"
        assert request.current_value == "driver"
        assert request.requested_value == "passenger"
        assert request.participant_email == "sam@example.com"
        service.notifications.create.assert_awaited_once()
        notification = service.notifications.create.await_args.args[0]
        assert notification.organization_id == ORG_ID
        assert notification.event_id == event.id
        mock_email.send_change_request_received.assert_awaited_once()
        assert mock_email.send_change_request_received.await_args.args[0] == "contact@fccovoit.fr"

    @pytest.mark.asyncio
    async def test_withdrawal_current_value_is_active(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        service = _build_service(mock_db_session, mock_email, event, participant)

        request = await service.submit(
            participant.id,
            ChangeRequestCreate(
                email="sam@example.com",
                request_type="withdrawal",
                requested_value="ignored",
                reason="Blessé",
            ),
        )

        assert request.current_value == "active"
        assert request.requested_value is None

    @pytest.mark.asyncio
    async def test_wrong_email_reports_missing_participant(
        self, mock_db_session, mock_email, sample_event_data
    ):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        service = _build_service(mock_db_session, mock_email, event, participant)

        with pytest.raises(ResourceNotFoundError):
            await service.submit(
                participant.id,
                ChangeRequestCreate(email="other@example.com", request_type="withdrawal", reason="x"),
            )
        service.requests.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_passenger_cannot_change_seats(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        participant = _participant(event.id, role="passenger", available_seats=None)
        service = _build_service(mock_db_session, mock_email, event, participant)

        with pytest.raises(TeamMoveError) as exc:
            await service.submit(
                participant.id,
                ChangeRequestCreate(
                    email="sam@example.com", request_type="seat_change", requested_value="2", reason="x"
                ),
            )
        assert exc.value.code == TeamMoveErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_duplicate_pending_request_409(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        service = _build_service(mock_db_session, mock_email, event, participant)
        service.requests.get_pending_for_participant = AsyncMock(
            return_value=_change_request(event.id)
        )

        with pytest.raises(TeamMoveError) as exc:
            await service.submit(
                participant.id,
                ChangeRequestCreate(
                    email="sam@example.com", request_type="seat_change", requested_value="4", reason="x"
                ),
            )
        assert exc.value.http_status == 409

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_request(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        service = _build_service(mock_db_session, mock_email, event, participant)
        service.notifications.create = AsyncMock(side_effect=RuntimeError("insert failed"))

        request = await service.submit(
            participant.id,
            ChangeRequestCreate(email="sam@example.com", request_type="withdrawal", reason="x"),
        )

        assert request.status == "pending"
        mock_db_session.begin_nested.assert_called_once()
        mock_email.send_change_request_received.assert_awaited_once()


class TestDecide:
    @pytest.mark.asyncio
    async def test_approved_seat_change_is_applied(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        request = _change_request(event.id, participant_id=participant.id)
        service = _build_service(mock_db_session, mock_email, event, participant)
        service.requests.get_by_id = AsyncMock(return_value=request)

        result = await service.decide(
            request.id, ORG_ID, ChangeRequestDecision(status="approved", organizer_comment="OK")
        )

        service.participants.update.assert_awaited_once_with(participant, available_seats=5)
        assert result.status == "approved"
        assert result.organizer_comment == "OK"
        assert result.processed_at == NOW
        args = mock_email.send_change_request_decision.await_args.args
        assert args[0] == "sam@example.com"
        assert args[4] is True

    @pytest.mark.asyncio
    async def test_passenger_becoming_driver_gets_a_seat(
        self, mock_db_session, mock_email, sample_event_data
    ):
        event = create_mock(sample_event_data)
        participant = _participant(event.id, role="passenger", available_seats=None)
        request = _change_request(
            event.id,
            participant_id=participant.id,
            request_type="role_change",
            current_value="passenger",
            requested_value="driver",
        )
        service = _build_service(mock_db_session, mock_email, event, participant)
        service.requests.get_by_id = AsyncMock(return_value=request)

        await service.decide(request.id, ORG_ID, ChangeRequestDecision(status="approved"))

        service.participants.update.assert_awaited_once_with(
            participant, role="driver", available_seats=1
        )

    @pytest.mark.asyncio
    async def test_approved_withdrawal_removes_participant(
        self, mock_db_session, mock_email, sample_event_data
    ):
        event = create_mock(sample_event_data)
        participant = _participant(event.id)
        request = _change_request(
            event.id, participant_id=participant.id, request_type="withdrawal", requested_value=None
        )
        service = _build_service(mock_db_session, mock_email, event, participant)
        service.requests.get_by_id = AsyncMock(return_value=request)

        result = await service.decide(request.id, ORG_ID, ChangeRequestDecision(status="approved"))

        service.participants.delete.assert_awaited_once_with(participant)
        assert result.participant_id is None
        # The decision still reaches the former participant
        assert mock_email.send_change_request_decision.await_args.args[0] == "sam@example.com"

    @pytest.mark.asyncio
    async def test_rejection_changes_nothing(self, mock_db_session, mock_email, sample_event_data):
        event = create_mock(sample_event_data)
        request = _change_request(event.id)
        service = _build_service(mock_db_session, mock_email, event)
        service.requests.get_by_id = AsyncMock(return_value=request)

        result = await service.decide(request.id, ORG_ID, ChangeRequestDecision(status="rejected"))

        assert result.status == "rejected"
        service.participants.update.assert_not_awaited()
        service.participants.delete.assert_not_awaited()
        assert mock_email.send_change_request_decision.await_args.args[4] is False

    @pytest.mark.asyncio
    async def test_processed_request_cannot_be_decided_again(
        self, mock_db_session, mock_email, sample_event_data
    ):
        event = create_mock(sample_event_data)
        request = _change_request(event.id, status="approved")
        service = _build_service(mock_db_session, mock_email, event)
        service.requests.get_by_id = AsyncMock(return_value=request)

        with pytest.raises(TeamMoveError) as exc:
            await service.decide(request.id, ORG_ID, ChangeRequestDecision(status="rejected"))

        assert exc.value.code == TeamMoveErrorCode.ALREADY_EXISTS
        service.requests.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_organizations_request_is_hidden(
        self, mock_db_session, mock_email, sample_event_data
    ):
        event = create_mock(sample_event_data)
        request = _change_request(event.id)
        service = _build_service(mock_db_session, mock_email, event)
        service.requests.get_by_id = AsyncMock(return_value=request)
        service.events.get_for_organization = AsyncMock(return_value=None)

        with pytest.raises(ResourceNotFoundError):
            await service.decide(request.id, uuid4(), ChangeRequestDecision(status="approved"))


class TestChangeRequestRouter:
    def test_submit_is_public(self, app_public):
        participant_id = uuid4()
        created = _change_request(uuid4(), participant_id=participant_id)

        with patch("teammove.api.v1.change_requests.ChangeRequestService") as MockService:
            MockService.return_value.submit = AsyncMock(return_value=created)

            with TestClient(app_public) as client:
                response = client.post(
                    f"/v1/participants/{participant_id}/change-request",
                    json={
                        "email": "sam@example.com",
                        "request_type": "seat_change",
                        "requested_value": "5",
                        "reason": "Ma femme vient aussi",
                    },
                )

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        payload = MockService.return_value.submit.await_args.args[1]
        assert payload.requested_value == "5"

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "sam@example.com", "request_type": "seat_change", "requested_value": "12", "reason": "x"},
            {"email": "sam@example.com", "request_type": "role_change", "requested_value": "pilot", "reason": "x"},
            {"email": "sam@example.com", "request_type": "withdrawal", "reason": ""},
        ],
    )
    def test_invalid_submission_422(self, app_public, body):
        with TestClient(app_public) as client:
            response = client.post(f"/v1/participants/{uuid4()}/change-request", json=body)

        assert response.status_code == 422

    def test_list_for_event(self, app_with_org):
        event_id = uuid4()

        with patch("teammove.api.v1.change_requests.ChangeRequestService") as MockService:
            MockService.return_value.list_for_event = AsyncMock(
                return_value=[_change_request(event_id), _change_request(event_id)]
            )

            with TestClient(app_with_org) as client:
                response = client.get(f"/v1/events/{event_id}/change-requests?status=pending")

        assert response.status_code == 200
        assert len(response.json()) == 2
        MockService.return_value.list_for_event.assert_awaited_once_with(
            event_id, ORG_ID, status="pending"
        )

    def test_decide(self, app_with_org):
        request_id = uuid4()
        decided = _change_request(uuid4(), id=request_id, status="rejected", processed_at=NOW)

        with patch("teammove.api.v1.change_requests.ChangeRequestService") as MockService:
            MockService.return_value.decide = AsyncMock(return_value=decided)

            with TestClient(app_with_org) as client:
                response = client.put(
                    f"/v1/change-requests/{request_id}",
                    json={"status": "rejected", "organizer_comment": "Complet"},
                )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    def test_decide_twice_409(self, app_with_org):
        with patch("teammove.api.v1.change_requests.ChangeRequestService") as MockService:
            MockService.return_value.decide = AsyncMock(
                side_effect=TeamMoveError(TeamMoveErrorCode.ALREADY_EXISTS, "already approved")
            )

            with TestClient(app_with_org) as client:
                response = client.put(f"/v1/change-requests/{uuid4()}", json={"status": "approved"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_EXISTS"

    def test_decision_status_must_be_final_422(self, app_with_org):
        with TestClient(app_with_org) as client:
            response = client.put(f"/v1/change-requests/{uuid4()}", json={"status": "pending"})

        assert response.status_code == 422
