# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Stripe checkout client.

Wraps the blocking ``stripe`` SDK in ``asyncio.to_thread`` so request
handlers never block the event loop. Results are returned as plain dicts
and SDK errors surface as ``PaymentGatewayError``.
"""

import asyncio
import json
from typing import Any, Callable

import stripe

from ..config import settings
from ..errors import PaymentGatewayError, WebhookSignatureError
from ..logging_config import get_logger
from ..models.organization import Organization
from ..plans import BillingInterval, CheckoutMode, Plan

logger = get_logger(__name__)

stripe.max_network_retries = settings.stripe_max_network_retries


def _line_item(plan: Plan) -> dict[str, Any]:
    price_id = settings.stripe_price_ids_dict.get(plan.id)
    if price_id:
        return {"price": price_id, "quantity": 1}

    price_data: dict[str, Any] = {
        "currency": plan.currency,
        "unit_amount": plan.price_cents,
        "product_data": {"name": f"TeamMove - {plan.name}", "description": plan.description},
    }
    if plan.checkout_mode == CheckoutMode.SUBSCRIPTION:
        interval = "year" if plan.billing_interval == BillingInterval.ANNUAL else "month"
        price_data["recurring"] = {"interval": interval}
    return {"price_data": price_data, "quantity": 1}


def _session_dict(session: Any) -> dict[str, Any]:
    metadata = session.get("metadata") or {}
    return {
        "id": session["id"],
        "url": session.get("url"),
        "payment_status": session.get("payment_status"),
        "customer": session.get("customer"),
        "subscription": session.get("subscription"),
        "metadata": {key: metadata[key] for key in metadata.keys()},
    }


class StripeGateway:
    """Stripe client for checkout, cancellation and webhooks."""

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None) -> None:
        self._secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self._webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )

    @property
    def configured(self) -> bool:
        return bool(self._secret_key)

    async def _call(self, operation: str, method: Callable[..., Any], *args: Any, **params: Any) -> Any:
        if not self.configured:
            raise PaymentGatewayError("Payment provider is not configured")
        try:
            return await asyncio.to_thread(method, *args, api_key=self._secret_key, **params)
        except stripe.StripeError as e:
            logger.error(
                "stripe_request_failed",
                operation=operation,
                error_type=type(e).__name__,
                status_code=e.http_status,
                error=e.user_message,
            )
            raise PaymentGatewayError(
                e.user_message or "Payment provider rejected the request",
                {"operation": operation, "status_code": e.http_status, "type": type(e).__name__},
            ) from e

    async def create_checkout_session(
        self,
        plan: Plan,
        organization: Organization,
        success_url: str,
        cancel_url: str,
    ) -> dict:
        """Create a hosted checkout session; returns at least ``id`` and ``url``."""
        metadata = {
            "organization_id": str(organization.id),
            "plan_id": plan.id,
            "plan_type": plan.type.value,
        }
        params: dict[str, Any] = {
            "mode": plan.checkout_mode.value,
            "line_items": [_line_item(plan)],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": str(organization.id),
            "metadata": metadata,
        }
        if organization.stripe_customer_id:
            params["customer"] = organization.stripe_customer_id
        else:
            params["customer_email"] = organization.email
        if plan.checkout_mode == CheckoutMode.SUBSCRIPTION:
            # invoice webhooks only see the subscription's metadata
            params["subscription_data"] = {"metadata": metadata}

        session = await self._call("checkout_session_create", stripe.checkout.Session.create, **params)
        logger.info(
            "checkout_session_created",
            session_id=session["id"],
            organization_id=str(organization.id),
            plan_id=plan.id,
        )
        return _session_dict(session)

    async def retrieve_checkout_session(self, session_id: str) -> dict:
        session = await self._call(
            "checkout_session_retrieve", stripe.checkout.Session.retrieve, session_id
        )
        return _session_dict(session)

    async def cancel_subscription(self, subscription_id: str) -> dict:
        result = await self._call("subscription_cancel", stripe.Subscription.cancel, subscription_id)
        logger.info("stripe_subscription_cancelled", subscription_id=subscription_id)
        return {"id": result["id"], "status": result.get("status")}

    def verify_webhook(
        self,
        payload: bytes,
        signature_header: str | None,
        tolerance: int | None = None,
    ) -> dict:
        """Verify a webhook signature and return the decoded event."""
        if not self._webhook_secret:
            raise WebhookSignatureError("Webhook secret is not configured")
        if not signature_header:
            raise WebhookSignatureError("Missing signature header")

        try:
            stripe.Webhook.construct_event(
                payload,
                signature_header,
                self._webhook_secret,
                tolerance=tolerance or settings.stripe_webhook_tolerance_seconds,
            )
        except ValueError:
            raise WebhookSignatureError("Webhook payload is not valid JSON") from None
        except stripe.SignatureVerificationError as e:
            logger.warning("stripe_webhook_rejected", reason=e.user_message)
            raise WebhookSignatureError(e.user_message or "Invalid webhook signature") from None
        return json.loads(payload)


# Singleton instance
stripe_gateway = StripeGateway()
