# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Transactional email for invitations, event reminders and subscription lifecycle"""
import asyncio
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from ..config import settings
from ..logging_config import get_logger
from ..middleware.metrics import EMAILS_SENT_TOTAL

logger = get_logger(__name__)

SUBSCRIPTION_SUBJECTS = {
    "activated": "Votre abonnement TeamMove est actif",
    "cancelled": "Votre abonnement TeamMove a été annulé",
    "expired": "Votre abonnement TeamMove a expiré",
}


def _html(title: str, paragraphs: list[str], link: Optional[str] = None, link_label: str = "") -> str:
    body = "".join(f"<p>{escape(p)}</p>" for p in paragraphs)
    if link:
        body += f'<p><a href="{escape(link, quote=True)}">{escape(link_label)}</a></p>'
    return f"<html><body><h2>{escape(title)}</h2>{body}<p>L'équipe TeamMove</p></body></html>"


def _text(paragraphs: list[str], link: Optional[str] = None) -> str:
    lines = list(paragraphs)
    if link:
        lines.append(link)
    lines.append("L'équipe TeamMove")
    return "\n\n".join(lines)


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else "-"


class EmailService:
    """Service for sending email notifications.

    When disabled, messages are logged instead of sent so development and
    test environments never talk to an SMTP server.
    """

    def __init__(self):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.smtp_from = settings.smtp_from
        self.smtp_tls = settings.smtp_tls
        self.enabled = settings.email_enabled
        self.app_url = settings.app_url.rstrip("/")

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        kind: str = "generic",
    ) -> bool:
        """
        Send an email notification.

        Returns True if sent successfully, False otherwise.
        """
        if not self.enabled:
            logger.info("email_disabled", to=to_email, subject=subject, kind=kind)
            EMAILS_SENT_TOTAL.labels(kind=kind, result="skipped").inc()
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.smtp_from
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            await asyncio.to_thread(self._deliver, to_email, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_send_failed", to=to_email, subject=subject, kind=kind, error=str(e))
            EMAILS_SENT_TOTAL.labels(kind=kind, result="failed").inc()
            return False

        logger.info("email_sent", to=to_email, subject=subject, kind=kind)
        EMAILS_SENT_TOTAL.labels(kind=kind, result="sent").inc()
        return True

    def _deliver(self, to_email: str, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            if self.smtp_tls:
                server.starttls()
            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)
            server.sendmail(self.smtp_from, to_email, msg.as_string())

    async def send_event_invitation(
        self,
        to_email: str,
        event_name: str,
        event_date: datetime,
        organization_name: str,
        invitation_link: str,
    ) -> bool:
        subject = f"Invitation : {event_name}"
        paragraphs = [
            f"{organization_name} vous invite à l'événement « {event_name} » "
            f"le {_format_date(event_date)}.",
            "Indiquez si vous conduisez ou cherchez une place en suivant le lien ci-dessous.",
        ]
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs, invitation_link, "Répondre à l'invitation"),
            _text(paragraphs, invitation_link),
            kind="event_invitation",
        )

    async def send_event_reminder(
        self,
        to_email: str,
        participant_name: str,
        event_name: str,
        organization_name: str,
        event_date: datetime,
        meeting_point: str,
        destination: str,
    ) -> bool:
        subject = f"Rappel : {event_name}"
        paragraphs = [
            f"Bonjour {participant_name},",
            f"{organization_name} vous rappelle l'événement « {event_name} » "
            f"le {event_date.strftime('%d/%m/%Y à %H:%M')}.",
            f"Point de rendez-vous : {meeting_point}. Destination : {destination}.",
        ]
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs),
            _text(paragraphs),
            kind="event_reminder",
        )

    async def send_change_request_received(
        self,
        to_email: str,
        organization_name: str,
        event_name: str,
        participant_name: str,
        request_label: str,
        reason: str,
    ) -> bool:
        subject = f"[{event_name}] Demande de {request_label}"
        paragraphs = [
            f"Bonjour {organization_name},",
            f"{participant_name} demande un {request_label} pour « {event_name} ».",
            f"Motif : {reason}",
        ]
        link = f"{self.app_url}/dashboard/events"
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs, link, "Traiter la demande"),
            _text(paragraphs, link),
            kind="change_request_received",
        )

    async def send_change_request_decision(
        self,
        to_email: str,
        participant_name: str,
        event_name: str,
        organization_name: str,
        approved: bool,
        comment: Optional[str] = None,
    ) -> bool:
        verdict = "approuvée" if approved else "refusée"
        action = "approuvé" if approved else "refusé"
        subject = f"[{event_name}] Votre demande a été {verdict}"
        paragraphs = [
            f"Bonjour {participant_name},",
            f"{organization_name} a {action} votre demande pour « {event_name} ».",
        ]
        if comment:
            paragraphs.append(f"Commentaire : {comment}")
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs),
            _text(paragraphs),
            kind="change_request_decision",
        )

    async def send_subscription_email(
        self,
        to_email: str,
        organization_name: str,
        kind: str,
        plan_name: str,
        expiry_date: Optional[datetime] = None,
    ) -> bool:
        """Lifecycle email; kind is one of activated, cancelled or expired."""
        subject = SUBSCRIPTION_SUBJECTS[kind]
        paragraphs = [f"Bonjour {organization_name},"]
        if kind == "activated":
            paragraphs.append(f"Votre formule « {plan_name} » est désormais active.")
            if expiry_date:
                paragraphs.append(f"Elle est valable jusqu'au {_format_date(expiry_date)}.")
        elif kind == "cancelled":
            paragraphs.append(
                f"Votre formule « {plan_name} » a été annulée. "
                "Votre compte repasse sur la formule Découverte."
            )
        else:
            paragraphs.append(
                f"Votre formule « {plan_name} » a expiré. "
                "Votre compte repasse sur la formule Découverte."
            )
        link = f"{self.app_url}{settings.billing_path}"
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs, link, "Gérer mon abonnement"),
            _text(paragraphs, link),
            kind=f"subscription_{kind}",
        )

    async def send_renewal_reminder(
        self,
        to_email: str,
        organization_name: str,
        plan_name: str,
        days_left: int,
        expiry_date: Optional[datetime],
    ) -> bool:
        subject = f"Votre abonnement expire dans {days_left} jour{'s' if days_left > 1 else ''}"
        paragraphs = [
            f"Bonjour {organization_name},",
            f"Votre formule « {plan_name} » expire le {_format_date(expiry_date)}.",
            "Renouvelez-la pour continuer à organiser vos covoiturages sans interruption.",
        ]
        link = f"{self.app_url}{settings.billing_path}"
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs, link, "Renouveler"),
            _text(paragraphs, link),
            kind="renewal_reminder",
        )

    async def send_low_events_warning(
        self, to_email: str, organization_name: str, remaining: int
    ) -> bool:
        subject = "Il vous reste peu d'événements"
        if remaining == 0:
            status_line = "Vous avez utilisé tous les événements de votre pack."
        else:
            status_line = f"Il vous reste {remaining} événement(s) dans votre pack."
        paragraphs = [f"Bonjour {organization_name},", status_line]
        link = f"{self.app_url}{settings.billing_path}"
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs, link, "Acheter un nouveau pack"),
            _text(paragraphs, link),
            kind="low_events",
        )

    async def send_broadcast(
        self, to_email: str, event_name: str, sender_name: str, content: str
    ) -> bool:
        subject = f"[{event_name}] Message de {sender_name}"
        paragraphs = [content]
        return await self.send_email(
            to_email,
            subject,
            _html(subject, paragraphs),
            _text(paragraphs),
            kind="broadcast",
        )


# Singleton instance
email_service = EmailService()
