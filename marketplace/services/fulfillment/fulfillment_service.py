"""
Fulfillment Service for the AgTeach Marketplace

Creates the persistent records of a paid checkout and drives the delivery
status of product orders.

Course sale:
- One CourseSaleHistory audit row
- One Enroll row (idempotent on course + customer)

Product purchase:
- Stock check on a locked snapshot of every referenced product
- Conditional decrement per product (never below zero)
- One Purchased row, one PurchasedDetail and one ProductSaleHistory per line item

Every write helper runs inside ``transaction.atomic()``; when called from an
outer transaction (the webhook processor) it joins it as a savepoint so the
caller controls the commit.

Notification helpers send the confirmation emails and report the outcome
as a boolean; they never raise.

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import InsufficientStockException, NotFoundException

from ...accounts.models import Customer, Instructor
from ...catalog.models import Product
from ...courses.models import Course
from ...sales.models import (
    CourseSaleHistory,
    Enroll,
    ProductSaleHistory,
    Purchased,
    PurchasedDetail,
)
from ..notifications import (
    ENROLLMENT_CONFIRMATION,
    ORDER_DELIVERED,
    PURCHASE_CONFIRMATION,
    NotificationService,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

ENROLLMENT_SUBJECT = "Course Enrolled Successfully - AgTeach"
PURCHASE_SUBJECT = "Payment Successfully - AgTeach"
DELIVERY_SUBJECT = "Your order has been delivered"


def to_money(value) -> Decimal:
    """Round an amount to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def cents_to_money(amount_in_cents) -> Decimal:
    """Convert a gateway amount in the smallest currency unit to a decimal amount."""
    return to_money(Decimal(int(amount_in_cents)) / Decimal(100))


class FulfillmentStatus(str, Enum):
    FULFILLED = "fulfilled"
    FULFILLED_WITH_NOTIFICATION_FAILURE = "fulfilled_with_notification_failure"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


@dataclass
class FulfillmentResult:
    """Outcome of processing one payment event."""

    status: FulfillmentStatus
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    branch: Optional[str] = None
    enrollment_id: Optional[int] = None
    course_sale_history_id: Optional[int] = None
    purchased_id: Optional[int] = None
    message: str = ""

    @property
    def is_fulfilled(self) -> bool:
        return self.status in (
            FulfillmentStatus.FULFILLED,
            FulfillmentStatus.FULFILLED_WITH_NOTIFICATION_FAILURE,
        )


@dataclass
class PurchaseLineItem:
    """One product line item as reported by the payment gateway."""

    product_id: int
    quantity: int
    unit_price: Decimal
    name: str = ""
    image: str = ""

    @property
    def total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass
class CourseSale:
    sale_history: CourseSaleHistory
    enrollment: Enroll
    enrollment_created: bool


@dataclass
class DeliveryResult:
    purchased_id: int
    updated_count: int
    notified: bool = False
    items: List[Dict] = field(default_factory=list)


class FulfillmentService:
    """
    Shared fulfillment helpers used by the webhook pipeline and the
    instructor delivery endpoint.
    """

    def __init__(self, notifier: Optional[NotificationService] = None):
        self.notifier = notifier or NotificationService()

    # --- Course sales ---

    def record_course_sale(
        self, course_id, instructor_id, customer_id, price: Decimal
    ) -> CourseSale:
        """
        Record a paid course: one sale history row plus the enrollment.

        Raises:
            NotFoundException: When the course or customer does not exist
        """
        course = Course.objects.filter(pk=course_id).first()
        if course is None:
            raise NotFoundException(f"No course found with id {course_id}", resource="course")
        customer = Customer.objects.filter(pk=customer_id).first()
        if customer is None:
            raise NotFoundException(
                f"No customer found with id {customer_id}", resource="customer"
            )
        instructor = Instructor.objects.filter(pk=instructor_id).first()
        if instructor is None:
            logger.warning(
                "Instructor %s from checkout metadata not found, using course owner %s",
                instructor_id,
                course.instructor_id,
            )
            instructor = course.instructor

        with transaction.atomic():
            sale_history = CourseSaleHistory.objects.create(
                course=course,
                instructor=instructor,
                customer=customer,
                price=to_money(price),
            )
            enrollment, created = Enroll.objects.get_or_create(
                course=course, customer=customer
            )

        if not created:
            logger.warning(
                "Customer %s was already enrolled in course %s", customer.pk, course.pk
            )
        logger.info(
            "Recorded sale of course %s to customer %s for %s",
            course.pk,
            customer.pk,
            sale_history.price,
        )
        return CourseSale(sale_history, enrollment, created)

    def notify_enrollment(self, sale: CourseSale) -> bool:
        course = sale.enrollment.course
        customer = sale.enrollment.customer
        return self.notifier.send(
            customer.email,
            ENROLLMENT_CONFIRMATION,
            {
                "course_name": course.name,
                "price": sale.sale_history.price,
                "currency": settings.DEFAULT_CURRENCY,
                "purchased_at": sale.sale_history.created_at,
                "course_url": f"{settings.FRONTEND_URL}/courses/{course.pk}/watch/overview",
            },
            ENROLLMENT_SUBJECT,
        )

    # --- Product purchases ---

    def record_product_purchase(
        self, customer_id, line_items: List[PurchaseLineItem]
    ) -> Purchased:
        """
        Decrement stock and create the purchase records of one checkout.

        The stock check runs on a snapshot of every referenced product taken
        under row locks before anything is written; if any product cannot
        cover its quantity the whole purchase is rejected. Each decrement is
        additionally guarded by ``quantity >= n`` in the UPDATE itself.

        Raises:
            NotFoundException: Unknown customer or product
            InsufficientStockException: A product cannot cover the purchase
        """
        if not line_items:
            raise NotFoundException("Checkout session has no line items", resource="line_item")

        customer = Customer.objects.filter(pk=customer_id).first()
        if customer is None:
            raise NotFoundException(
                f"No customer found with id {customer_id}", resource="customer"
            )

        requested: Dict[int, int] = OrderedDict()
        for item in line_items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        with transaction.atomic():
            products = {
                product.pk: product
                for product in Product.objects.select_for_update().filter(
                    pk__in=list(requested)
                )
            }
            missing = [pid for pid in requested if pid not in products]
            if missing:
                raise NotFoundException(
                    f"No product found with id {missing[0]}", resource="product"
                )

            short = [
                pid for pid, quantity in requested.items()
                if products[pid].quantity - quantity < 0
            ]
            if short:
                logger.warning("Insufficient stock for products %s", short)
                raise InsufficientStockException(short)

            for pid, quantity in requested.items():
                updated = Product.objects.filter(pk=pid, quantity__gte=quantity).update(
                    quantity=F("quantity") - quantity
                )
                if updated != 1:
                    logger.warning("Stock of product %s changed during checkout", pid)
                    raise InsufficientStockException([pid])

            purchased = Purchased.objects.create(
                customer=customer,
                total=sum((item.total for item in line_items), Decimal("0.00")),
            )
            for item in line_items:
                product = products[item.product_id]
                detail = PurchasedDetail.objects.create(
                    purchased=purchased,
                    product=product,
                    quantity=item.quantity,
                    price=to_money(item.unit_price),
                    total=item.total,
                )
                ProductSaleHistory.objects.create(
                    product=product,
                    customer=customer,
                    purchased_detail=detail,
                    instructor_id=product.instructor_id,
                    purchased=purchased,
                    is_delivered=False,
                )

        logger.info(
            "Recorded purchase %s of %d line items for customer %s (total %s)",
            purchased.pk,
            len(line_items),
            customer.pk,
            purchased.total,
        )
        return purchased

    def notify_purchase(self, purchased: Purchased, recipient: Optional[str] = None) -> bool:
        items = [
            {
                "name": detail.product.name if detail.product else "",
                "quantity": detail.quantity,
                "price": detail.price,
                "total": detail.total,
            }
            for detail in purchased.details.select_related("product").order_by("pk")
        ]
        return self.notifier.send(
            recipient or purchased.customer.email,
            PURCHASE_CONFIRMATION,
            {
                "purchased_id": purchased.pk,
                "purchased_at": purchased.created_at,
                "items": items,
                "total": purchased.total,
                "currency": settings.DEFAULT_CURRENCY,
            },
            PURCHASE_SUBJECT,
        )

    # --- Delivery ---

    def mark_delivered(
        self, purchased_id, instructor: Instructor, recipient: Optional[str] = None
    ) -> DeliveryResult:
        """
        Flip the instructor's sale history rows of one purchase to delivered.

        The transition happens at most once: the UPDATE only matches rows
        still pending, and the delivery email is sent only when a row changed.

        Raises:
            NotFoundException: The purchase has no rows sold by this instructor
        """
        rows = ProductSaleHistory.objects.filter(
            purchased_id=purchased_id, instructor=instructor
        )
        if not rows.exists():
            raise NotFoundException(
                f"No purchase found with id {purchased_id}", resource="purchased"
            )

        delivered_at = timezone.now()
        updated = rows.filter(is_delivered=False).update(
            is_delivered=True, delivered_at=delivered_at
        )
        result = DeliveryResult(purchased_id=int(purchased_id), updated_count=updated)
        if not updated:
            logger.info("Purchase %s was already delivered", purchased_id)
            return result

        histories = rows.select_related("purchased_detail__product", "customer__user")
        result.items = [
            {
                "name": history.product.name if history.product else "",
                "quantity": history.purchased_detail.quantity,
            }
            for history in histories
        ]
        customer_email = histories[0].customer.email
        result.notified = self.notifier.send(
            recipient or customer_email,
            ORDER_DELIVERED,
            {
                "purchased_id": result.purchased_id,
                "items": result.items,
                "delivered_at": delivered_at,
            },
            DELIVERY_SUBJECT,
        )
        logger.info(
            "Marked %d items of purchase %s as delivered", updated, purchased_id
        )
        return result
