# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Subscription entitlements and usage counting.

Every feature gate (event creation, invitations, deletion) and every plan
transition (checkout, activation, renewal, cancellation, expiry) goes
through SubscriptionService so the counters on the organization row stay
consistent with the plan rules in ``teammove.plans``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..entitlements import SubscriptionValidation, add_months, validate_subscription
from ..errors import (
    EntitlementDeniedError,
    OrganizationNotFoundError,
    PaymentGatewayError,
    SubscriptionConflictError,
    TeamMoveError,
    TeamMoveErrorCode,
)
from ..logging_config import get_logger
from ..middleware.metrics import (
    ENTITLEMENT_CHECKS_TOTAL,
    SUBSCRIPTION_TRANSITIONS_TOTAL,
    USAGE_RECORDED_TOTAL,
)
from ..models.base import utcnow
from ..models.notification import Notification, NotificationType, ReminderType
from ..models.organization import Organization, SubscriptionStatus
from ..plans import (
    DEFAULT_PLAN_ID,
    BillingInterval,
    PlanLimits,
    PlanType,
    default_plan_for_type,
    get_plan,
    is_pro,
    limits_for,
)
from ..repositories.checkout import CheckoutSessionRepository
from ..repositories.notification import NotificationRepository, ReminderLogRepository
from ..repositories.organization import OrganizationRepository
from .email import EmailService, email_service
from .payments import StripeGateway, stripe_gateway

logger = get_logger(__name__)


class DowngradeReason(str, Enum):
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    DOWNGRADED = "downgraded"
    # Subscription already deleted on the payment provider side
    GATEWAY_DELETED = "gateway_deleted"


@dataclass(frozen=True)
class PermissionResult:
    allowed: bool
    reason: Optional[str] = None
    remaining_events: Optional[int] = None
    remaining_invitations: Optional[int] = None


@dataclass(frozen=True)
class CheckoutResult:
    requires_payment: bool
    plan_id: str
    session_id: Optional[str] = None
    url: Optional[str] = None
    mode: Optional[str] = None
    message: Optional[str] = None


@dataclass
class ExpiryReport:
    processed: int = 0
    errors: int = 0


@dataclass(frozen=True)
class SubscriptionInfo:
    organization_id: UUID
    subscription_type: str
    plan_id: str
    plan_name: str
    status: str
    payment_method: Optional[str]
    limits: PlanLimits
    is_valid: bool
    reason: Optional[str]
    needs_renewal: bool
    days_until_expiry: Optional[int]
    subscription_start_date: Optional[datetime]
    subscription_end_date: Optional[datetime]
    package_remaining_events: Optional[int]
    package_expiry_date: Optional[datetime]
    event_created_count: int
    invitations_sent_count: int
    remaining_events: Optional[int]
    remaining_invitations: Optional[int]


class SubscriptionService:
    """Entitlement checks and plan transitions for one unit of work."""

    def __init__(
        self,
        session: AsyncSession,
        payments: Optional[StripeGateway] = None,
        email: Optional[EmailService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.organizations = OrganizationRepository(session)
        self.notifications = NotificationRepository(session)
        self.reminders = ReminderLogRepository(session)
        self.checkout_sessions = CheckoutSessionRepository(session)
        self.payments = payments or stripe_gateway
        self.email = email or email_service
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    async def _get_org(self, organization_id: UUID, for_update: bool = False) -> Organization:
        org = await self.organizations.get_by_id(organization_id, for_update=for_update)
        if org is None:
            raise OrganizationNotFoundError(organization_id)
        return org

    # =========================================================================
    # Entitlement checks
    # =========================================================================

    def check_create_event(self, org: Organization) -> PermissionResult:
        if org.is_admin:
            return PermissionResult(allowed=True)

        validation = validate_subscription(org, self.now())
        if not validation.is_valid:
            return PermissionResult(allowed=False, reason=validation.reason, remaining_events=0)

        limits = limits_for(org.subscription_type)
        if limits is None:
            return PermissionResult(allowed=False, reason="Unknown subscription type")

        if org.subscription_type == PlanType.EVENEMENTIELLE.value:
            remaining = org.package_remaining_events or 0
            if remaining <= 0:
                return PermissionResult(
                    allowed=False,
                    reason="No events left in your package",
                    remaining_events=0,
                )
            return PermissionResult(allowed=True, remaining_events=remaining)

        if limits.max_events is None:
            return PermissionResult(allowed=True)

        used = org.event_created_count or 0
        if used >= limits.max_events:
            return PermissionResult(
                allowed=False,
                reason=f"Event limit reached ({limits.max_events}) for your plan",
                remaining_events=0,
            )
        return PermissionResult(allowed=True, remaining_events=limits.max_events - used)

    def check_send_invitations(self, org: Organization, count: int = 1) -> PermissionResult:
        if count < 1:
            raise TeamMoveError(
                TeamMoveErrorCode.VALIDATION_ERROR,
                "Invitation count must be at least 1",
                {"count": count},
            )
        if org.is_admin:
            return PermissionResult(allowed=True)

        validation = validate_subscription(org, self.now())
        if not validation.is_valid:
            return PermissionResult(allowed=False, reason=validation.reason, remaining_invitations=0)

        limits = limits_for(org.subscription_type)
        if limits is None:
            return PermissionResult(allowed=False, reason="Unknown subscription type")
        if limits.max_invitations is None:
            return PermissionResult(allowed=True)

        remaining = limits.max_invitations - (org.invitations_sent_count or 0)
        if remaining < count:
            return PermissionResult(
                allowed=False,
                reason=(
                    f"Invitation limit reached: {max(0, remaining)} remaining "
                    f"out of {limits.max_invitations}"
                ),
                remaining_invitations=max(0, remaining),
            )
        return PermissionResult(allowed=True, remaining_invitations=remaining)

    def check_delete_event(self, org: Organization) -> PermissionResult:
        if org.is_admin:
            return PermissionResult(allowed=True)

        validation = validate_subscription(org, self.now())
        if not validation.is_valid:
            return PermissionResult(allowed=False, reason=validation.reason)

        limits = limits_for(org.subscription_type)
        if limits is None:
            return PermissionResult(allowed=False, reason="Unknown subscription type")
        if not limits.can_delete_events:
            return PermissionResult(
                allowed=False, reason="Deleting events is not available on your plan"
            )
        return PermissionResult(allowed=True)

    async def can_create_event(
        self, organization_id: UUID, for_update: bool = False
    ) -> PermissionResult:
        org = await self._get_org(organization_id, for_update=for_update)
        result = self.check_create_event(org)
        self._count_check("create_event", result)
        return result

    async def can_send_invitations(
        self, organization_id: UUID, count: int = 1, for_update: bool = False
    ) -> PermissionResult:
        org = await self._get_org(organization_id, for_update=for_update)
        result = self.check_send_invitations(org, count)
        self._count_check("send_invitations", result)
        return result

    async def can_delete_event(
        self, organization_id: UUID, for_update: bool = False
    ) -> PermissionResult:
        org = await self._get_org(organization_id, for_update=for_update)
        result = self.check_delete_event(org)
        self._count_check("delete_event", result)
        return result

    # require_* guards hold the organization row lock until the unit of work commits.

    async def require_create_event(self, organization_id: UUID) -> PermissionResult:
        result = await self.can_create_event(organization_id, for_update=True)
        if not result.allowed:
            raise EntitlementDeniedError(
                "create_event", result.reason, remaining_events=result.remaining_events
            )
        return result

    async def require_send_invitations(self, organization_id: UUID, count: int) -> PermissionResult:
        result = await self.can_send_invitations(organization_id, count, for_update=True)
        if not result.allowed:
            raise EntitlementDeniedError(
                "send_invitations", result.reason, remaining_invitations=result.remaining_invitations
            )
        return result

    async def require_delete_event(self, organization_id: UUID) -> PermissionResult:
        result = await self.can_delete_event(organization_id, for_update=True)
        if not result.allowed:
            raise EntitlementDeniedError("delete_event", result.reason)
        return result

    def _count_check(self, operation: str, result: PermissionResult) -> None:
        ENTITLEMENT_CHECKS_TOTAL.labels(
            operation=operation, result="allowed" if result.allowed else "denied"
        ).inc()
        if not result.allowed:
            logger.info("entitlement_denied", operation=operation, reason=result.reason)

    # =========================================================================
    # Usage counting
    # =========================================================================

    async def record_event_created(self, organization_id: UUID) -> Organization:
        """Count a created event, consuming one package event where applicable."""
        org = await self._get_org(organization_id, for_update=True)
        org.event_created_count = (org.event_created_count or 0) + 1

        remaining = None
        if (
            org.subscription_type == PlanType.EVENEMENTIELLE.value
            and (org.package_remaining_events or 0) > 0
        ):
            org.package_remaining_events -= 1
            remaining = org.package_remaining_events
            logger.info(
                "event_quota_consumed",
                organization_id=str(org.id),
                remaining_events=remaining,
            )

        USAGE_RECORDED_TOTAL.labels(resource="event", subscription_type=org.subscription_type).inc()
        await self.organizations.save(org)

        if remaining is not None and remaining <= settings.low_events_threshold:
            await self._warn_low_events(org, remaining)
        return org

    async def record_invitations_sent(self, organization_id: UUID, count: int) -> Organization:
        org = await self._get_org(organization_id, for_update=True)
        org.invitations_sent_count = (org.invitations_sent_count or 0) + count
        USAGE_RECORDED_TOTAL.labels(
            resource="invitation", subscription_type=org.subscription_type
        ).inc(count)
        return await self.organizations.save(org)

    async def _warn_low_events(self, org: Organization, remaining: int) -> None:
        since = org.subscription_start_date or (self.now() - timedelta(days=1))
        if await self.reminders.exists_since(
            org.id, ReminderType.LOW_EVENTS.value, remaining, since
        ):
            return

        await self._notify(
            org,
            NotificationType.WARNING,
            "Pack bientôt épuisé",
            f"Il vous reste {remaining} événement(s) dans votre pack.",
            action_url=settings.billing_path,
        )
        try:
            await self.email.send_low_events_warning(org.email, org.name, remaining)
        except Exception as e:
            logger.warning("low_events_email_failed", organization_id=str(org.id), error=str(e))
        await self.reminders.create(org.id, ReminderType.LOW_EVENTS.value, remaining, self.now())

    # =========================================================================
    # Plan transitions
    # =========================================================================

    async def start_checkout(
        self,
        organization_id: UUID,
        plan_id: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutResult:
        """Start a plan change. The free plan is applied immediately."""
        plan = get_plan(plan_id)
        org = await self._get_org(organization_id)

        if plan.is_free:
            if org.subscription_type != PlanType.DECOUVERTE.value:
                await self._downgrade(org, DowngradeReason.DOWNGRADED)
            return CheckoutResult(
                requires_payment=False,
                plan_id=plan.id,
                message="Your organization is now on the Découverte plan",
            )

        if (
            is_pro(plan.type.value)
            and org.subscription_type == plan.type.value
            and validate_subscription(org, self.now()).is_valid
        ):
            raise SubscriptionConflictError(
                f"Your organization already has an active '{plan.name}' subscription",
                {"plan_id": plan.id},
            )

        session = await self.payments.create_checkout_session(plan, org, success_url, cancel_url)
        SUBSCRIPTION_TRANSITIONS_TOTAL.labels(transition="checkout_started").inc()
        return CheckoutResult(
            requires_payment=True,
            plan_id=plan.id,
            session_id=session.get("id"),
            url=session.get("url"),
            mode=plan.checkout_mode.value,
        )

    async def upgrade_subscription(
        self,
        organization_id: UUID,
        plan_id: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutResult:
        """Upgrade from the free plan, or from a lapsed or used-up paid plan."""
        org = await self._get_org(organization_id)
        validation = validate_subscription(org, self.now())
        used_up_package = (
            org.subscription_type == PlanType.EVENEMENTIELLE.value
            and (org.package_remaining_events or 0) <= 0
        )
        if (
            org.subscription_type != PlanType.DECOUVERTE.value
            and validation.is_valid
            and not used_up_package
        ):
            raise SubscriptionConflictError(
                "Upgrades are only available from the Découverte plan; cancel your current plan first",
                {"current_type": org.subscription_type},
            )
        return await self.start_checkout(organization_id, plan_id, success_url, cancel_url)

    async def handle_payment_success(
        self,
        session_id: str,
        organization_id: UUID,
        plan_id: str,
        stripe_customer_id: Optional[str] = None,
        stripe_subscription_id: Optional[str] = None,
    ) -> Organization:
        """Activate a paid plan.

        Each checkout session id is applied at most once, ever. Replaying an
        old session after a cancellation or a plan change leaves the
        organization untouched.
        """
        org = await self._get_org(organization_id, for_update=True)
        processed = await self.checkout_sessions.get(session_id)
        if processed is not None:
            logger.warning(
                "checkout_session_replayed",
                organization_id=str(org.id),
                session_id=session_id,
                processed_for=str(processed.organization_id),
                processed_plan_id=processed.plan_id,
            )
            return org

        plan = get_plan(plan_id)
        if plan.is_free:
            raise TeamMoveError(
                TeamMoveErrorCode.VALIDATION_ERROR,
                "The Découverte plan does not require payment",
                {"plan_id": plan_id},
            )

        now = self.now()
        previous_subscription = org.stripe_subscription_id

        if plan.is_package:
            org.subscription_type = PlanType.EVENEMENTIELLE.value
            org.package_remaining_events = plan.package_events
            org.package_expiry_date = add_months(now, plan.validity_months)
            org.subscription_end_date = None
            org.stripe_subscription_id = None
            expiry = org.package_expiry_date
        else:
            months = 12 if plan.billing_interval == BillingInterval.ANNUAL else 1
            org.subscription_type = plan.type.value
            org.subscription_end_date = add_months(now, months)
            org.package_remaining_events = None
            org.package_expiry_date = None
            org.stripe_subscription_id = stripe_subscription_id
            expiry = org.subscription_end_date

        org.subscription_plan_id = plan.id
        org.subscription_status = SubscriptionStatus.ACTIVE.value
        org.payment_method = plan.billing_interval.value
        org.subscription_start_date = now
        org.payment_session_id = session_id
        if stripe_customer_id:
            org.stripe_customer_id = stripe_customer_id
        org.reset_usage(now)
        await self.organizations.save(org)
        await self.checkout_sessions.record(session_id, org.id, plan.id, now)

        if previous_subscription and previous_subscription != org.stripe_subscription_id:
            await self._cancel_remote(org, previous_subscription)

        SUBSCRIPTION_TRANSITIONS_TOTAL.labels(transition="activated").inc()
        logger.info(
            "subscription_activated",
            organization_id=str(org.id),
            plan_id=plan.id,
            subscription_type=org.subscription_type,
            expires_at=expiry.isoformat(),
        )

        await self._notify(
            org,
            NotificationType.SUCCESS,
            "Abonnement activé",
            f"Votre formule « {plan.name} » est active.",
            action_url=settings.billing_path,
        )
        await self._send_subscription_email(org, "activated", plan.name, expiry)
        return org

    async def cancel_subscription(
        self,
        organization_id: UUID,
        reason: DowngradeReason = DowngradeReason.CANCELLED,
    ) -> Organization:
        org = await self._get_org(organization_id, for_update=True)
        if org.subscription_type == PlanType.DECOUVERTE.value:
            raise SubscriptionConflictError("There is no paid subscription to cancel")
        return await self._downgrade(org, reason)

    async def renew_subscription(
        self, organization_id: UUID, period_end: Optional[datetime] = None
    ) -> Organization:
        """Extend a recurring subscription after a paid invoice."""
        org = await self._get_org(organization_id, for_update=True)
        if not is_pro(org.subscription_type):
            logger.info(
                "renewal_ignored",
                organization_id=str(org.id),
                subscription_type=org.subscription_type,
            )
            return org

        if period_end is None:
            months = 12 if org.payment_method == BillingInterval.ANNUAL.value else 1
            period_end = add_months(max(org.subscription_end_date or self.now(), self.now()), months)
        org.subscription_end_date = period_end
        org.subscription_status = SubscriptionStatus.ACTIVE.value
        await self.organizations.save(org)

        SUBSCRIPTION_TRANSITIONS_TOTAL.labels(transition="renewed").inc()
        logger.info(
            "subscription_renewed",
            organization_id=str(org.id),
            subscription_end_date=period_end.isoformat(),
        )
        return org

    async def mark_past_due(self, organization_id: UUID) -> Organization:
        org = await self._get_org(organization_id, for_update=True)
        org.subscription_status = SubscriptionStatus.PAST_DUE.value
        await self.organizations.save(org)

        SUBSCRIPTION_TRANSITIONS_TOTAL.labels(transition="past_due").inc()
        logger.warning("subscription_past_due", organization_id=str(org.id))
        await self._notify(
            org,
            NotificationType.ERROR,
            "Échec du paiement",
            "Le paiement de votre abonnement a échoué. Mettez à jour votre moyen de paiement.",
            action_url=settings.billing_path,
        )
        return org

    async def _downgrade(self, org: Organization, reason: DowngradeReason) -> Organization:
        previous_type = org.subscription_type
        previous_plan = org.subscription_plan_id
        stripe_subscription_id = org.stripe_subscription_id

        if stripe_subscription_id and reason != DowngradeReason.GATEWAY_DELETED:
            await self._cancel_remote(org, stripe_subscription_id)

        org.downgrade_to_free(self.now())
        await self.organizations.save(org)

        SUBSCRIPTION_TRANSITIONS_TOTAL.labels(transition=reason.value).inc()
        logger.info(
            "subscription_downgraded",
            organization_id=str(org.id),
            previous_type=previous_type,
            reason=reason.value,
        )

        plan = get_plan(previous_plan) if previous_plan else default_plan_for_type(previous_type)
        plan_name = plan.name if plan else previous_type
        if reason == DowngradeReason.EXPIRED:
            await self._notify(
                org,
                NotificationType.ERROR,
                "Abonnement expiré",
                f"Votre formule « {plan_name} » a expiré. Vous êtes repassé sur la formule Découverte.",
                action_url=settings.billing_path,
            )
            await self._send_subscription_email(org, "expired", plan_name)
        else:
            await self._notify(
                org,
                NotificationType.INFO,
                "Abonnement annulé",
                f"Votre formule « {plan_name} » a été annulée.",
                action_url=settings.billing_path,
            )
            await self._send_subscription_email(org, "cancelled", plan_name)
        return org

    async def _cancel_remote(self, org: Organization, subscription_id: str) -> None:
        try:
            await self.payments.cancel_subscription(subscription_id)
        except PaymentGatewayError as e:
            logger.warning(
                "remote_cancel_failed",
                organization_id=str(org.id),
                subscription_id=subscription_id,
                error=e.message,
            )

    # =========================================================================
    # Reporting
    # =========================================================================

    async def get_subscription_info(self, organization_id: UUID) -> SubscriptionInfo:
        org = await self._get_org(organization_id)
        validation: SubscriptionValidation = validate_subscription(org, self.now())

        plan_id = org.subscription_plan_id
        if not plan_id:
            plan = default_plan_for_type(org.subscription_type)
            plan_id = plan.id if plan else DEFAULT_PLAN_ID
        plan = get_plan(plan_id)

        create = self.check_create_event(org)
        invite = self.check_send_invitations(org)

        return SubscriptionInfo(
            organization_id=org.id,
            subscription_type=org.subscription_type,
            plan_id=plan.id,
            plan_name=plan.name,
            status=org.subscription_status,
            payment_method=org.payment_method,
            limits=limits_for(org.subscription_type) or plan.limits,
            is_valid=validation.is_valid,
            reason=validation.reason,
            needs_renewal=validation.needs_renewal,
            days_until_expiry=validation.days_until_expiry,
            subscription_start_date=org.subscription_start_date,
            subscription_end_date=org.subscription_end_date,
            package_remaining_events=org.package_remaining_events,
            package_expiry_date=org.package_expiry_date,
            event_created_count=org.event_created_count or 0,
            invitations_sent_count=org.invitations_sent_count or 0,
            remaining_events=create.remaining_events,
            remaining_invitations=invite.remaining_invitations,
        )

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def process_expired_subscriptions(self) -> ExpiryReport:
        """Downgrade every paid organization whose plan lapsed.

        Each downgrade runs in its own savepoint: a failure rolls back that
        organization only and the rest of the sweep still commits.
        """
        report = ExpiryReport()
        now = self.now()
        for org in await self.organizations.list_paid():
            validation = validate_subscription(org, now)
            if validation.is_valid or not validation.needs_renewal:
                continue
            # attributes are expired when a savepoint rolls back
            org_id = str(org.id)
            try:
                async with self.session.begin_nested():
                    await self._downgrade(org, DowngradeReason.EXPIRED)
                report.processed += 1
            except Exception as e:
                report.errors += 1
                logger.error("subscription_expiry_failed", organization_id=org_id, error=str(e))
        logger.info("subscription_expiry_sweep", processed=report.processed, errors=report.errors)
        return report

    async def send_renewal_reminders(self) -> int:
        """Email and notify organizations whose plan expires in a reminder window."""
        now = self.now()
        day_start = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        reminder_days = set(settings.reminder_days_list)
        sent = 0

        for org in await self.organizations.list_paid():
            validation = validate_subscription(org, now)
            days = validation.days_until_expiry
            if not validation.is_valid or days not in reminder_days:
                continue
            org_id = str(org.id)
            try:
                async with self.session.begin_nested():
                    if await self._send_renewal_reminder(org, days, now, day_start):
                        sent += 1
            except Exception as e:
                logger.error("renewal_reminder_failed", organization_id=org_id, error=str(e))

        logger.info("renewal_reminders_sent", count=sent)
        return sent

    async def _send_renewal_reminder(
        self, org: Organization, days: int, now: datetime, day_start: datetime
    ) -> bool:
        if await self.reminders.exists_since(
            org.id, ReminderType.EXPIRY_WARNING.value, days, day_start
        ):
            return False

        plan = (
            get_plan(org.subscription_plan_id)
            if org.subscription_plan_id
            else default_plan_for_type(org.subscription_type)
        )
        plan_name = plan.name if plan else org.subscription_type
        expiry = org.package_expiry_date or org.subscription_end_date

        await self.email.send_renewal_reminder(org.email, org.name, plan_name, days, expiry)
        await self._notify(
            org,
            NotificationType.WARNING,
            "Abonnement bientôt expiré",
            f"Votre formule « {plan_name} » expire dans {days} jour(s).",
            action_url=settings.billing_path,
        )
        await self.reminders.create(org.id, ReminderType.EXPIRY_WARNING.value, days, now)
        return True

    # =========================================================================
    # Payment provider webhooks
    # =========================================================================

    async def handle_webhook_event(self, event: dict) -> str:
        """Apply a verified payment webhook. Returns the action taken."""
        event_type = event.get("type")
        obj = event.get("data", {}).get("object", {})

        if event_type == "checkout.session.completed":
            if obj.get("payment_status") not in ("paid", "no_payment_required"):
                return "ignored"
            metadata = obj.get("metadata") or {}
            org_id = metadata.get("organization_id") or obj.get("client_reference_id")
            plan_id = metadata.get("plan_id")
            if not org_id or not plan_id:
                logger.warning("webhook_missing_metadata", session_id=obj.get("id"))
                return "ignored"
            try:
                organization_id = UUID(str(org_id))
            except ValueError:
                logger.warning(
                    "webhook_invalid_organization_id",
                    session_id=obj.get("id"),
                    organization_id=str(org_id)[:64],
                )
                return "ignored"
            await self.handle_payment_success(
                obj["id"],
                organization_id,
                plan_id,
                stripe_customer_id=obj.get("customer"),
                stripe_subscription_id=obj.get("subscription"),
            )
            return "activated"

        if event_type in ("invoice.paid", "invoice.payment_failed", "customer.subscription.deleted"):
            subscription_id = obj.get("subscription") if event_type.startswith("invoice") else obj.get("id")
            org = (
                await self.organizations.get_by_stripe_subscription(subscription_id)
                if subscription_id
                else None
            )
            if org is None:
                logger.info("webhook_unknown_subscription", event_type=event_type)
                return "ignored"

            if event_type == "invoice.paid":
                await self.renew_subscription(org.id, _invoice_period_end(obj))
                return "renewed"
            if event_type == "invoice.payment_failed":
                await self.mark_past_due(org.id)
                return "past_due"
            await self.cancel_subscription(org.id, DowngradeReason.GATEWAY_DELETED)
            return "cancelled"

        return "ignored"

    # =========================================================================
    # Side effects
    # =========================================================================

    async def _notify(
        self,
        org: Organization,
        type_: NotificationType,
        title: str,
        message: str,
        action_url: Optional[str] = None,
    ) -> None:
        """Best-effort dashboard notification inside a savepoint.

        A failed insert rolls back to the savepoint, so the caller's plan
        change still commits.
        """
        org_id = org.id
        try:
            async with self.session.begin_nested():
                await self.notifications.create(
                    Notification(
                        organization_id=org_id,
                        type=type_.value,
                        title=title,
                        message=message,
                        read=False,
                        action_url=action_url,
                    )
                )
        except Exception as e:
            logger.warning("notification_failed", organization_id=str(org_id), error=str(e))

    async def _send_subscription_email(
        self, org: Organization, kind: str, plan_name: str, expiry: Optional[datetime] = None
    ) -> None:
        try:
            await self.email.send_subscription_email(org.email, org.name, kind, plan_name, expiry)
        except Exception as e:
            logger.warning(
                "subscription_email_failed", organization_id=str(org.id), kind=kind, error=str(e)
            )


def _invoice_period_end(invoice: dict) -> Optional[datetime]:
    lines = (invoice.get("lines") or {}).get("data") or []
    timestamp = None
    if lines:
        timestamp = (lines[0].get("period") or {}).get("end")
    if timestamp is None:
        timestamp = invoice.get("period_end")
    if timestamp is None:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
