# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Subscription endpoints: current plan, permissions, checkout and cancellation"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.auth.dependencies import User, get_current_user
from teammove.config import settings
from teammove.database import get_db
from teammove.errors import PaymentNotCompletedError
from teammove.logging_config import get_logger
from teammove.schemas.subscription import (
    CheckoutRequest,
    CheckoutResponse,
    ConfirmPaymentRequest,
    PermissionResponse,
    PermissionsResponse,
    SubscriptionInfoResponse,
    WebhookAck,
)
from teammove.services.payments import stripe_gateway
from teammove.services.subscription_service import SubscriptionService

logger = get_logger(__name__)

router = APIRouter(prefix="/subscription", tags=["subscription"])
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _default_urls(payload: CheckoutRequest) -> tuple[str, str]:
    billing = f"{settings.app_url.rstrip('/')}{settings.billing_path}"
    success_url = payload.success_url or f"{billing}?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = payload.cancel_url or f"{billing}?cancelled=true"
    return success_url, cancel_url


@router.get("", response_model=SubscriptionInfoResponse)
async def get_subscription(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current plan, validity, limits and usage counters."""
    info = await SubscriptionService(db).get_subscription_info(user.organization_id)
    return SubscriptionInfoResponse.model_validate(info)


@router.get("/permissions", response_model=PermissionsResponse)
async def get_permissions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = SubscriptionService(db)
    create_event = await service.can_create_event(user.organization_id)
    send_invitations = await service.can_send_invitations(user.organization_id)
    delete_event = await service.can_delete_event(user.organization_id)
    return PermissionsResponse(
        create_event=PermissionResponse.model_validate(create_event),
        send_invitations=PermissionResponse.model_validate(send_invitations),
        delete_event=PermissionResponse.model_validate(delete_event),
    )


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    payload: CheckoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Start a plan change.

    Paid plans return a hosted checkout URL. Choosing Découverte downgrades
    immediately without payment.
    """
    success_url, cancel_url = _default_urls(payload)
    result = await SubscriptionService(db).start_checkout(
        user.organization_id, payload.plan_id, success_url, cancel_url
    )
    logger.info(
        "checkout_requested",
        plan_id=payload.plan_id,
        requires_payment=result.requires_payment,
    )
    return CheckoutResponse.model_validate(result)


@router.post("/upgrade", response_model=CheckoutResponse)
async def upgrade(
    payload: CheckoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upgrade from Découverte (or from a lapsed or used-up plan)."""
    success_url, cancel_url = _default_urls(payload)
    result = await SubscriptionService(db).upgrade_subscription(
        user.organization_id, payload.plan_id, success_url, cancel_url
    )
    return CheckoutResponse.model_validate(result)


@router.post("/confirm", response_model=SubscriptionInfoResponse)
async def confirm_payment(
    payload: ConfirmPaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm a checkout after the payment redirect.

    The session is re-read from the payment provider; client-supplied plan
    data is never trusted.
    """
    session = await stripe_gateway.retrieve_checkout_session(payload.session_id)
    metadata = session.get("metadata") or {}

    if metadata.get("organization_id") != str(user.organization_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Checkout session belongs to another organization",
        )
    if session.get("payment_status") not in ("paid", "no_payment_required"):
        raise PaymentNotCompletedError(payload.session_id, session.get("payment_status"))

    service = SubscriptionService(db)
    await service.handle_payment_success(
        session["id"],
        user.organization_id,
        metadata.get("plan_id", ""),
        stripe_customer_id=session.get("customer"),
        stripe_subscription_id=session.get("subscription"),
    )
    info = await service.get_subscription_info(user.organization_id)
    return SubscriptionInfoResponse.model_validate(info)


@router.post("/cancel", response_model=SubscriptionInfoResponse)
async def cancel(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel the paid plan and return to Découverte."""
    service = SubscriptionService(db)
    await service.cancel_subscription(user.organization_id)
    info = await service.get_subscription_info(user.organization_id)
    return SubscriptionInfoResponse.model_validate(info)


@webhook_router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Payment provider webhook. The signature is verified before anything else."""
    payload = await request.body()
    event = stripe_gateway.verify_webhook(payload, request.headers.get("stripe-signature"))
    action = await SubscriptionService(db).handle_webhook_event(event)
    logger.info("stripe_webhook_processed", event_type=event.get("type"), action=action)
    return WebhookAck(action=action)
