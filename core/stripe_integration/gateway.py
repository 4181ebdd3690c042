"""
Stripe Payment Gateway
======================

Thin wrapper over the official stripe SDK. Every SDK error is converted
into `ExternalServiceException` so the API error envelope stays uniform;
webhook signature errors are left to the caller, which answers them with
a plain-text 400.

Author: AgTeach Development Team
Date: 2025-09-03
"""

import json
import logging
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

from core.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)

# Checkout sessions are limited to 100 line items
LINE_ITEM_PAGE_SIZE = 100


def stripe_field(obj: Any, key: str, default=None):
    """Read a key from a StripeObject or dict; missing and null both give `default`."""
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def stripe_to_dict(obj) -> Optional[Dict[str, Any]]:
    """Plain JSON-serialisable copy of a StripeObject."""
    if obj is None or isinstance(obj, dict):
        return obj
    return json.loads(str(obj))


class PaymentGateway:
    service_name = "stripe"

    def __init__(self, webhook_secret: Optional[str] = None):
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        )

    def _fail(self, action: str, error: stripe.StripeError):
        logger.error("Stripe %s failed: %s", action, error)
        message = getattr(error, "user_message", None) or str(error) or f"Stripe {action} failed"
        raise ExternalServiceException(message, service=self.service_name) from error

    def create_checkout_session(self, **params):
        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            self._fail("checkout session creation", e)
        logger.info("Created checkout session %s", session["id"])
        return session

    def retrieve_session(self, session_id: str):
        try:
            return stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            self._fail("session retrieval", e)

    def retrieve_payment_intent(self, payment_intent_id: str):
        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            self._fail("payment intent retrieval", e)

    def list_line_items(self, session_id: str):
        """Line items of a session with each price's product expanded."""
        try:
            return stripe.checkout.Session.list_line_items(
                session_id,
                limit=LINE_ITEM_PAGE_SIZE,
                expand=["data.price.product"],
            )
        except stripe.StripeError as e:
            self._fail("line item listing", e)

    def construct_event(self, payload: bytes, signature: str):
        """
        Verify the signature of a webhook payload and parse the event.

        Raises:
            stripe.SignatureVerificationError: Signature does not match
            ValueError: Payload is not valid JSON
        """
        return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
