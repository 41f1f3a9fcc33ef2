# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the Stripe gateway (SDK calls mocked)."""

import json
import time
from unittest.mock import patch

import pytest
import stripe

from factories import make_org, sign_webhook_payload
from teammove.errors import PaymentGatewayError, WebhookSignatureError
from teammove.plans import get_plan
from teammove.services.payments import StripeGateway

SECRET = "whsec_unit"


def _gateway(secret_key="sk_test_unit"):
    return StripeGateway(secret_key=secret_key, webhook_secret=SECRET)


class TestCheckoutSession:
    @pytest.mark.asyncio
    async def test_pack_checkout_is_one_time_payment(self):
        org = make_org()

        with patch("stripe.checkout.Session.create") as mock_create:
            mock_create.return_value = {"id": "cs_1", "url": "https://checkout/cs_1"}
            session = await _gateway().create_checkout_session(
                get_plan("evenementielle-single"), org, "https://ok", "https://ko"
            )

        assert session["id"] == "cs_1"
        assert session["url"] == "https://checkout/cs_1"
        params = mock_create.call_args.kwargs
        assert params["api_key"] == "sk_test_unit"
        assert params["mode"] == "payment"
        assert params["metadata"]["organization_id"] == str(org.id)
        assert params["metadata"]["plan_id"] == "evenementielle-single"
        assert params["customer_email"] == org.email
        price_data = params["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 1500
        assert "recurring" not in price_data
        assert "subscription_data" not in params

    @pytest.mark.asyncio
    async def test_pro_checkout_is_recurring(self):
        org = make_org(stripe_customer_id="cus_42")

        with patch("stripe.checkout.Session.create") as mock_create:
            mock_create.return_value = {"id": "cs_2", "url": "https://checkout/cs_2"}
            await _gateway().create_checkout_session(
                get_plan("pro-club"), org, "https://ok", "https://ko"
            )

        params = mock_create.call_args.kwargs
        assert params["mode"] == "subscription"
        assert params["line_items"][0]["price_data"]["recurring"] == {"interval": "month"}
        assert params["subscription_data"]["metadata"]["plan_id"] == "pro-club"
        assert params["customer"] == "cus_42"
        assert "customer_email" not in params

    @pytest.mark.asyncio
    async def test_annual_checkout_bills_yearly(self):
        with patch("stripe.checkout.Session.create") as mock_create:
            mock_create.return_value = {"id": "cs_3", "url": "https://checkout/cs_3"}
            await _gateway().create_checkout_session(
                get_plan("pro-pme-annual"), make_org(), "https://ok", "https://ko"
            )

        price_data = mock_create.call_args.kwargs["line_items"][0]["price_data"]
        assert price_data["recurring"] == {"interval": "year"}
        assert price_data["unit_amount"] == 49000

    @pytest.mark.asyncio
    async def test_configured_price_id_is_used(self, monkeypatch):
        from teammove.config import settings

        monkeypatch.setattr(settings, "stripe_price_ids", "pro-club=price_club_monthly")
        with patch("stripe.checkout.Session.create") as mock_create:
            mock_create.return_value = {"id": "cs_4", "url": "https://checkout/cs_4"}
            await _gateway().create_checkout_session(
                get_plan("pro-club"), make_org(), "https://ok", "https://ko"
            )

        assert mock_create.call_args.kwargs["line_items"] == [
            {"price": "price_club_monthly", "quantity": 1}
        ]

    @pytest.mark.asyncio
    async def test_retrieve_returns_plain_session(self):
        with patch("stripe.checkout.Session.retrieve") as mock_retrieve:
            mock_retrieve.return_value = {
                "id": "cs_5",
                "url": None,
                "payment_status": "paid",
                "customer": "cus_1",
                "subscription": "sub_1",
                "metadata": {"organization_id": "org", "plan_id": "pro-club"},
                "amount_total": 1999,
            }
            session = await _gateway().retrieve_checkout_session("cs_5")

        mock_retrieve.assert_called_once_with("cs_5", api_key="sk_test_unit")
        assert session == {
            "id": "cs_5",
            "url": None,
            "payment_status": "paid",
            "customer": "cus_1",
            "subscription": "sub_1",
            "metadata": {"organization_id": "org", "plan_id": "pro-club"},
        }

    @pytest.mark.asyncio
    async def test_provider_error(self):
        with patch("stripe.checkout.Session.retrieve") as mock_retrieve:
            mock_retrieve.side_effect = stripe.InvalidRequestError(
                "No such checkout session", "id", http_status=404
            )
            with pytest.raises(PaymentGatewayError) as exc_info:
                await _gateway().retrieve_checkout_session("cs_missing")

        assert "No such checkout session" in exc_info.value.message
        assert exc_info.value.details["status_code"] == 404
        assert exc_info.value.http_status == 502

    @pytest.mark.asyncio
    async def test_network_error(self):
        with patch("stripe.Subscription.cancel") as mock_cancel:
            mock_cancel.side_effect = stripe.APIConnectionError("connection refused")
            with pytest.raises(PaymentGatewayError):
                await _gateway().cancel_subscription("sub_1")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        gateway = _gateway(secret_key="")
        assert not gateway.configured

        with patch("stripe.checkout.Session.retrieve") as mock_retrieve:
            with pytest.raises(PaymentGatewayError):
                await gateway.retrieve_checkout_session("cs_1")
        mock_retrieve.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_subscription(self):
        with patch("stripe.Subscription.cancel") as mock_cancel:
            mock_cancel.return_value = {"id": "sub_1", "status": "canceled"}
            result = await _gateway().cancel_subscription("sub_1")

        assert result == {"id": "sub_1", "status": "canceled"}
        mock_cancel.assert_called_once_with("sub_1", api_key="sk_test_unit")


class TestWebhookVerification:
    def test_valid_signature(self):
        payload = json.dumps({"id": "evt_1", "type": "invoice.paid"}).encode()
        header = sign_webhook_payload(payload, SECRET)

        event = _gateway().verify_webhook(payload, header)

        assert event == {"id": "evt_1", "type": "invoice.paid"}

    def test_tampered_payload(self):
        header = sign_webhook_payload(b'{"type": "invoice.paid"}', SECRET)

        with pytest.raises(WebhookSignatureError):
            _gateway().verify_webhook(b'{"type": "x"}', header)

    def test_wrong_secret(self):
        payload = b"{}"
        header = sign_webhook_payload(payload, "whsec_other")

        with pytest.raises(WebhookSignatureError):
            _gateway().verify_webhook(payload, header)

    def test_outside_tolerance(self):
        payload = b"{}"
        header = sign_webhook_payload(payload, SECRET, timestamp=int(time.time()) - 1000)

        with pytest.raises(WebhookSignatureError) as exc_info:
            _gateway().verify_webhook(payload, header, tolerance=300)
        assert "tolerance" in exc_info.value.message

    def test_signed_but_not_json(self):
        payload = b"not json"
        header = sign_webhook_payload(payload, SECRET)

        with pytest.raises(WebhookSignatureError) as exc_info:
            _gateway().verify_webhook(payload, header)
        assert "JSON" in exc_info.value.message

    @pytest.mark.parametrize("header", [None, "", "v1=abc", "t=123"])
    def test_missing_or_malformed_header(self, header):
        with pytest.raises(WebhookSignatureError) as exc_info:
            _gateway().verify_webhook(b"{}", header)
        assert exc_info.value.http_status == 400
