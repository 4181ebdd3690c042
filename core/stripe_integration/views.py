"""
Stripe Integration Views (core.stripe_integration)
==================================================

REST API endpoints for handling payments with Stripe.

Endpoints
---------

1. CourseCheckoutSessionView
   - URL: /api/enrollment/checkoutSession
   - Method: POST
   - Body: {"courseId": 42, "successUrl"?: "...", "cancelUrl"?: "..."}
   - Purpose:
       Creates a Checkout Session for one course. If the customer is
       already enrolled, no session is created and the frontend is told
       where to watch the course.

2. ProductCheckoutSessionView
   - URL: /api/purchased/productCheckoutSession
   - Method: POST
   - Body: {"cartItems": [{"productId": 1, "quantity": 2}, ...]}
   - Purpose:
       Creates a Checkout Session for a product cart.

3. PaymentSessionView
   - URL: /api/payment/session/<session_id>
   - Method: GET
   - Purpose:
       Returns a finished Checkout Session and its PaymentIntent for the
       payment result page.

4. stripe_webhook
   - URL: /webhook/stripeWebhook
   - Method: POST
   - Auth: None (Stripe signature)
   - Purpose:
       Verifies and fulfills `checkout.session.completed` events.

Security
--------
- Checkout endpoints require an authenticated user with a customer profile.
- Card data is handled exclusively by Stripe.

Author: AgTeach Development Team
Date: 2025-08-21
"""

import logging

import stripe
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
)
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import MarketplaceException, NotFoundException, ValidationException
from marketplace.models import Course, Enroll

from .checkout import CheckoutSessionBuilder, get_customer, parse_cart
from .gateway import PaymentGateway, stripe_field, stripe_to_dict
from .webhooks import WebhookEventProcessor

logger = logging.getLogger(__name__)


def _session_response(session) -> Response:
    return Response(
        {"status": "success", "id": session["id"], "url": session["url"]},
        status=status.HTTP_200_OK,
    )


class CourseCheckoutSessionView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        course_id = request.data.get("courseId")
        try:
            course_id = int(course_id)
        except (TypeError, ValueError):
            raise ValidationException("courseId is required.")

        course = Course.objects.filter(pk=course_id).first()
        if course is None:
            raise NotFoundException("No course found with that ID", resource="course")
        customer = get_customer(request.user)

        if Enroll.objects.filter(course=course, customer=customer).exists():
            return Response(
                {
                    "status": "success",
                    "message": "You are already enrolled in this course.",
                    "redirectUrl": f"/courses/{course.pk}/watch/overview",
                },
                status=status.HTTP_200_OK,
            )

        params = CheckoutSessionBuilder().course_session_params(
            course,
            customer,
            request.user,
            success_url=request.data.get("successUrl"),
            cancel_url=request.data.get("cancelUrl"),
        )
        session = PaymentGateway().create_checkout_session(**params)
        return _session_response(session)


class ProductCheckoutSessionView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        items = parse_cart(request.data.get("cartItems"))
        customer = get_customer(request.user)

        builder = CheckoutSessionBuilder()
        params = builder.product_session_params(
            builder.load_cart(items),
            customer,
            request.user,
            success_url=request.data.get("successUrl"),
            cancel_url=request.data.get("cancelUrl"),
        )
        session = PaymentGateway().create_checkout_session(**params)
        return _session_response(session)


class PaymentSessionView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        gateway = PaymentGateway()
        session = gateway.retrieve_session(session_id)
        payment_intent = None
        payment_intent_id = stripe_field(session, "payment_intent")
        if isinstance(payment_intent_id, str):
            payment_intent = gateway.retrieve_payment_intent(payment_intent_id)
        return Response(
            {
                "status": "success",
                "session": stripe_to_dict(session),
                "paymentIntent": stripe_to_dict(payment_intent),
            },
            status=status.HTTP_200_OK,
        )


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def stripe_webhook(request):
    """
    Receive a Stripe event.

    Signature failures and unexpected processing errors are answered with a
    plain-text 400 so Stripe redelivers; domain errors (missing course,
    insufficient stock) go through the API error envelope.
    """
    payload = request.body
    signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")
    processor = WebhookEventProcessor()

    try:
        event = processor.construct_event(payload, signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        return HttpResponse(f"Webhook Error: {e}", status=400, content_type="text/plain")

    try:
        processor.process(event)
    except MarketplaceException:
        raise
    except Exception as e:
        logger.exception("Processing Stripe event %s failed", stripe_field(event, "id"))
        return HttpResponse(f"Webhook Error: {e}", status=400, content_type="text/plain")

    return Response({"received": True}, status=status.HTTP_200_OK)
