"""
Stripe Webhook Event Processor
==============================

Processes verified Stripe events.

Handled event types:
- `checkout.session.completed` -> fulfill by `metadata.type`
  * "course":  sale history + enrollment, confirmation email
  * "product": stock decrement + purchase records, confirmation email
- everything else is acknowledged and ignored

Idempotency:
- The event id is stored in `ProcessedWebhookEvent` inside the same
  transaction as the fulfillment writes; a redelivered event is answered
  without touching any data.

Safety:
- All writes of one event occur inside one `transaction.atomic()` block.
- Emails are sent only after the block has committed; a failed email
  downgrades the result, it never undoes the fulfillment.

Author: AgTeach Development Team
Date: 2025-09-03
"""

import logging
from typing import List, Optional

from django.db import IntegrityError, transaction

from core.exceptions import PersistenceIntegrityException, ValidationException
from marketplace.models import ProcessedWebhookEvent
from marketplace.services.fulfillment import (
    FulfillmentResult,
    FulfillmentService,
    FulfillmentStatus,
    PurchaseLineItem,
    cents_to_money,
)

from .gateway import PaymentGateway, stripe_field

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class WebhookEventProcessor:
    """Verify, deduplicate and dispatch Stripe events."""

    def __init__(self, gateway: Optional[PaymentGateway] = None,
                 fulfillment: Optional[FulfillmentService] = None):
        self.gateway = gateway or PaymentGateway()
        self.fulfillment = fulfillment or FulfillmentService()

    def construct_event(self, payload: bytes, signature: str):
        return self.gateway.construct_event(payload, signature)

    def process(self, event) -> FulfillmentResult:
        event_id = stripe_field(event, "id")
        event_type = stripe_field(event, "type")
        logger.info("Stripe webhook received: %s (%s)", event_type, event_id)

        if event_type != CHECKOUT_SESSION_COMPLETED:
            return self._finish(FulfillmentResult(
                FulfillmentStatus.IGNORED, event_id, event_type, message="Unhandled event type"
            ))

        if ProcessedWebhookEvent.objects.filter(event_id=event_id).exists():
            return self._finish(FulfillmentResult(
                FulfillmentStatus.DUPLICATE, event_id, event_type, message="Event already processed"
            ))

        session = stripe_field(stripe_field(event, "data", {}), "object", {})
        metadata = stripe_field(session, "metadata", {})
        kind = stripe_field(metadata, "type")

        if kind == "course":
            result = self._fulfil_course(event_id, event_type, session, metadata)
        elif kind == "product":
            result = self._fulfil_product(event_id, event_type, session, metadata)
        else:
            result = FulfillmentResult(
                FulfillmentStatus.IGNORED, event_id, event_type,
                message=f"Unknown checkout type {kind!r}",
            )
        return self._finish(result)

    def _finish(self, result: FulfillmentResult) -> FulfillmentResult:
        if result.status == FulfillmentStatus.FULFILLED_WITH_NOTIFICATION_FAILURE:
            logger.warning("Webhook %s fulfilled but notification failed", result.event_id)
        else:
            logger.info(
                "Webhook %s finished: %s %s", result.event_id, result.status.value, result.message
            )
        return result

    def _record_event(self, event_id: str, event_type: str) -> None:
        ProcessedWebhookEvent.objects.create(event_id=event_id, event_type=event_type)

    def _duplicate_or_raise(self, event_id, event_type, error: IntegrityError) -> FulfillmentResult:
        # A concurrent delivery of the same event committed first
        if ProcessedWebhookEvent.objects.filter(event_id=event_id).exists():
            return FulfillmentResult(
                FulfillmentStatus.DUPLICATE, event_id, event_type, message="Event already processed"
            )
        raise PersistenceIntegrityException(str(error)) from error

    # --- course branch ---

    def _fulfil_course(self, event_id, event_type, session, metadata) -> FulfillmentResult:
        course_id = stripe_field(metadata, "courseId")
        customer_id = stripe_field(metadata, "customerId")
        instructor_id = stripe_field(metadata, "instructorId")
        if not course_id or not customer_id:
            raise ValidationException("Checkout metadata is missing courseId or customerId.")

        price = cents_to_money(stripe_field(session, "amount_total", 0))
        try:
            with transaction.atomic():
                self._record_event(event_id, event_type)
                sale = self.fulfillment.record_course_sale(
                    course_id, instructor_id, customer_id, price
                )
        except IntegrityError as e:
            return self._duplicate_or_raise(event_id, event_type, e)

        notified = self.fulfillment.notify_enrollment(sale)
        return FulfillmentResult(
            FulfillmentStatus.FULFILLED if notified
            else FulfillmentStatus.FULFILLED_WITH_NOTIFICATION_FAILURE,
            event_id,
            event_type,
            branch="course",
            enrollment_id=sale.enrollment.pk,
            course_sale_history_id=sale.sale_history.pk,
            message=f"Course {course_id} sold to customer {customer_id}",
        )

    # --- product branch ---

    def _line_items(self, session_id: str) -> List[PurchaseLineItem]:
        response = self.gateway.list_line_items(session_id)
        items = []
        for raw in stripe_field(response, "data", []):
            price = stripe_field(raw, "price", {})
            product = stripe_field(price, "product", {})
            product_id = stripe_field(stripe_field(product, "metadata", {}), "product_id")
            if product_id is None:
                raise ValidationException(f"Line item of session {session_id} has no product_id.")
            quantity = int(stripe_field(raw, "quantity", 0))
            unit_amount = stripe_field(price, "unit_amount")
            if unit_amount is None:
                unit_amount = int(stripe_field(raw, "amount_total", 0)) // max(quantity, 1)
            images = stripe_field(product, "images", [])
            items.append(PurchaseLineItem(
                product_id=int(product_id),
                quantity=quantity,
                unit_price=cents_to_money(unit_amount),
                name=stripe_field(product, "name", "") or stripe_field(raw, "description", ""),
                image=images[0] if images else "",
            ))
        return items

    def _fulfil_product(self, event_id, event_type, session, metadata) -> FulfillmentResult:
        customer_id = stripe_field(metadata, "customerId")
        if not customer_id:
            raise ValidationException("Checkout metadata is missing customerId.")

        line_items = self._line_items(stripe_field(session, "id"))
        try:
            with transaction.atomic():
                self._record_event(event_id, event_type)
                purchased = self.fulfillment.record_product_purchase(customer_id, line_items)
        except IntegrityError as e:
            return self._duplicate_or_raise(event_id, event_type, e)

        amount_total = stripe_field(session, "amount_total")
        if amount_total is not None and cents_to_money(amount_total) != purchased.total:
            logger.warning(
                "Purchase %s total %s differs from charged amount %s",
                purchased.pk,
                purchased.total,
                cents_to_money(amount_total),
            )

        # The email entered on the checkout page wins; notify_purchase falls back to the account email
        recipient = stripe_field(stripe_field(session, "customer_details", {}), "email")
        notified = self.fulfillment.notify_purchase(purchased, recipient)
        return FulfillmentResult(
            FulfillmentStatus.FULFILLED if notified
            else FulfillmentStatus.FULFILLED_WITH_NOTIFICATION_FAILURE,
            event_id,
            event_type,
            branch="product",
            purchased_id=purchased.pk,
            message=f"{len(line_items)} line items purchased by customer {customer_id}",
        )
