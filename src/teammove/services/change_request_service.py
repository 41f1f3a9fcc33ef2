# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Participant change requests.

A registered participant asks to switch role, change the number of seats
offered or withdraw. The organizer approves or rejects; an approval is
applied to the participant row in the same transaction.
"""

from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ResourceNotFoundError, TeamMoveError, TeamMoveErrorCode
from ..logging_config import get_logger
from ..models.base import utcnow
from ..models.change_request import ChangeRequestStatus, ChangeRequestType, ParticipantChangeRequest
from ..models.event import Event, EventStatus
from ..models.notification import Notification, NotificationType
from ..models.participant import EventParticipant, ParticipantRole
from ..repositories.change_request import ChangeRequestRepository
from ..repositories.event import EventRepository
from ..repositories.notification import NotificationRepository
from ..repositories.organization import OrganizationRepository
from ..repositories.participant import ParticipantRepository
from ..schemas.change_request import ChangeRequestCreate, ChangeRequestDecision
from .email import EmailService, email_service

logger = get_logger(__name__)

REQUEST_LABELS = {
    ChangeRequestType.ROLE_CHANGE.value: "changement de rôle",
    ChangeRequestType.SEAT_CHANGE.value: "changement de places disponibles",
    ChangeRequestType.WITHDRAWAL.value: "retrait de l'événement",
}


def _current_value(participant: EventParticipant, request_type: ChangeRequestType) -> Optional[str]:
    if request_type == ChangeRequestType.ROLE_CHANGE:
        return participant.role
    if request_type == ChangeRequestType.SEAT_CHANGE:
        return str(participant.available_seats) if participant.available_seats is not None else None
    return "active"


class ChangeRequestService:
    def __init__(
        self,
        session: AsyncSession,
        email: Optional[EmailService] = None,
        clock: Optional[Callable] = None,
    ):
        self.session = session
        self.requests = ChangeRequestRepository(session)
        self.participants = ParticipantRepository(session)
        self.events = EventRepository(session)
        self.organizations = OrganizationRepository(session)
        self.notifications = NotificationRepository(session)
        self.email = email or email_service
        self._clock = clock or utcnow

    async def submit(
        self, participant_id: UUID, payload: ChangeRequestCreate
    ) -> ParticipantChangeRequest:
        """Create a pending request and tell the organizer.

        An email that does not match the registration is reported as a
        missing participant.
        """
        participant = await self.participants.get_by_id(participant_id)
        if participant is None or participant.email.lower() != payload.email.lower():
            raise ResourceNotFoundError("participant", participant_id)

        event = await self.events.get_by_id(participant.event_id)
        if event is None:
            raise ResourceNotFoundError("event", participant.event_id)
        if event.status == EventStatus.CANCELLED.value:
            raise TeamMoveError(
                TeamMoveErrorCode.VALIDATION_ERROR,
                "This event has been cancelled",
                {"event_id": str(event.id)},
            )
        self._check_applicable(participant, payload)

        if await self.requests.get_pending_for_participant(participant.id, payload.request_type.value):
            raise TeamMoveError(
                TeamMoveErrorCode.ALREADY_EXISTS,
                "A request of this type is already pending",
                {"participant_id": str(participant.id), "request_type": payload.request_type.value},
            )

        request = await self.requests.create(
            ParticipantChangeRequest(
                participant_id=participant.id,
                event_id=event.id,
                participant_name=participant.name,
                participant_email=participant.email,
                request_type=payload.request_type.value,
                current_value=_current_value(participant, payload.request_type),
                requested_value=payload.requested_value,
                reason=payload.reason,
                status=ChangeRequestStatus.PENDING.value,
            )
        )
        logger.info(
            "change_request_submitted",
            request_id=str(request.id),
            event_id=str(event.id),
            request_type=request.request_type,
        )
        await self._notify_organizer(event, request)
        return request

    def _check_applicable(self, participant: EventParticipant, payload: ChangeRequestCreate) -> None:
        if payload.request_type == ChangeRequestType.ROLE_CHANGE and payload.requested_value == participant.role:
            raise TeamMoveError(
                TeamMoveErrorCode.VALIDATION_ERROR,
                f"Participant is already a {participant.role}",
                {"role": participant.role},
            )
        if (
            payload.request_type == ChangeRequestType.SEAT_CHANGE
            and participant.role != ParticipantRole.DRIVER.value
        ):
            raise TeamMoveError(
                TeamMoveErrorCode.VALIDATION_ERROR,
                "Only drivers can change their available seats",
                {"role": participant.role},
            )

    async def _notify_organizer(self, event: Event, request: ParticipantChangeRequest) -> None:
        organization = await self.organizations.get_by_id(event.organization_id)
        if organization is None:
            return
        label = REQUEST_LABELS[request.request_type]
        try:
            async with self.session.begin_nested():
                await self.notifications.create(
                    Notification(
                        organization_id=organization.id,
                        type=NotificationType.INFO.value,
                        title=f"Demande de {label}",
                        message=f"{request.participant_name} ({event.name}) : {request.reason}",
                        read=False,
                        event_id=event.id,
                    )
                )
        except Exception as e:
            logger.warning("change_request_notification_failed", request_id=str(request.id), error=str(e))
        await self.email.send_change_request_received(
            organization.email,
            organization.name,
            event.name,
            request.participant_name,
            label,
            request.reason,
        )

    async def list_for_event(
        self, event_id: UUID, organization_id: UUID, status: Optional[str] = None
    ) -> list[ParticipantChangeRequest]:
        if await self.events.get_for_organization(event_id, organization_id) is None:
            raise ResourceNotFoundError("event", event_id)
        return await self.requests.list_by_event(event_id, status=status)

    async def decide(
        self, request_id: UUID, organization_id: UUID, decision: ChangeRequestDecision
    ) -> ParticipantChangeRequest:
        """Approve or reject a pending request of one of the organization's events."""
        request = await self.requests.get_by_id(request_id)
        event = (
            await self.events.get_for_organization(request.event_id, organization_id)
            if request is not None
            else None
        )
        if request is None or event is None:
            raise ResourceNotFoundError("change_request", request_id)
        if request.status != ChangeRequestStatus.PENDING.value:
            raise TeamMoveError(
                TeamMoveErrorCode.ALREADY_EXISTS,
                f"Change request has already been {request.status}",
                {"request_id": str(request_id), "status": request.status},
            )

        approved = decision.status == ChangeRequestStatus.APPROVED.value
        if approved:
            await self._apply(request)

        request.status = decision.status
        request.organizer_comment = decision.organizer_comment
        request.processed_at = self._clock()
        request = await self.requests.save(request)
        logger.info(
            "change_request_decided",
            request_id=str(request_id),
            request_type=request.request_type,
            status=request.status,
        )

        organization = await self.organizations.get_by_id(organization_id)
        await self.email.send_change_request_decision(
            request.participant_email,
            request.participant_name,
            event.name,
            organization.name if organization else "",
            approved,
            decision.organizer_comment,
        )
        return request

    async def _apply(self, request: ParticipantChangeRequest) -> None:
        participant = (
            await self.participants.get_by_id(request.participant_id)
            if request.participant_id is not None
            else None
        )
        if participant is None:
            raise ResourceNotFoundError("participant", request.participant_id)

        if request.request_type == ChangeRequestType.ROLE_CHANGE.value:
            to_driver = request.requested_value == ParticipantRole.DRIVER.value
            await self.participants.update(
                participant,
                role=request.requested_value,
                available_seats=(participant.available_seats or 1) if to_driver else None,
            )
        elif request.request_type == ChangeRequestType.SEAT_CHANGE.value:
            await self.participants.update(participant, available_seats=int(request.requested_value))
        else:
            await self.participants.delete(participant)
            request.participant_id = None
