"""
Marketplace Sales Models

Records written by the checkout fulfillment pipeline:

- Enroll: A customer's access grant to a course
- CourseSaleHistory: Immutable audit row of one course sale
- Purchased: One product checkout transaction
- PurchasedDetail: Line item of a purchase
- ProductSaleHistory: Per line item fulfillment/delivery record
- ProcessedWebhookEvent: Gateway event ids that were already fulfilled

Invariants:
- ``Purchased.total`` equals the sum of its details' totals.
- ``PurchasedDetail.total`` equals ``price * quantity``.
- A customer is enrolled into a course at most once.

Author: AgTeach Development Team
Version: 1.0.0
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from ..accounts.models import Customer, Instructor
from ..catalog.models import Product
from ..courses.models import Course


class Enroll(models.Model):
    """Access grant of a customer to a course."""

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("Course"),
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("Customer"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Enrolled At"))

    def __str__(self) -> str:
        return f"Enrollment of {self.customer_id} in course {self.course_id}"

    class Meta:
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        db_table = "marketplace_enroll"
        constraints = [
            models.UniqueConstraint(
                fields=["course", "customer"], name="unique_enrollment_per_customer"
            )
        ]


class CourseSaleHistory(models.Model):
    """
    Audit record of one course sale event.

    Rows are never updated. Foreign keys are nulled instead of cascading so
    the sale survives deletion of the course or member profiles.
    """

    course = models.ForeignKey(
        Course,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sale_histories",
        verbose_name=_("Course"),
    )

    instructor = models.ForeignKey(
        Instructor,
        on_delete=models.SET_NULL,
        null=True,
        related_name="course_sale_histories",
        verbose_name=_("Instructor"),
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        related_name="course_sale_histories",
        verbose_name=_("Customer"),
    )

    price = models.DecimalField(
        max_digits=10, decimal_places=2, verbose_name=_("Sale Price")
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Sold At"))

    def __str__(self) -> str:
        return f"Course {self.course_id} sold for {self.price}"

    class Meta:
        verbose_name = _("Course Sale History")
        verbose_name_plural = _("Course Sale Histories")
        ordering = ["-created_at"]
        db_table = "marketplace_course_sale_history"


class Purchased(models.Model):
    """One checkout transaction for products (may contain multiple line items)."""

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="purchases",
        verbose_name=_("Customer"),
    )

    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name=_("Total"),
        help_text=_("Sum of all line item totals"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Purchased At"))

    def __str__(self) -> str:
        return f"Purchase {self.pk} ({self.total})"

    class Meta:
        verbose_name = _("Purchase")
        verbose_name_plural = _("Purchases")
        ordering = ["-created_at"]
        db_table = "marketplace_purchased"


class PurchasedDetail(models.Model):
    """Line item of a purchase."""

    purchased = models.ForeignKey(
        Purchased,
        on_delete=models.CASCADE,
        related_name="details",
        verbose_name=_("Purchase"),
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        related_name="purchased_details",
        verbose_name=_("Product"),
    )

    quantity = models.PositiveIntegerField(verbose_name=_("Quantity"))

    price = models.DecimalField(
        max_digits=10, decimal_places=2, verbose_name=_("Unit Price")
    )

    total = models.DecimalField(
        max_digits=12, decimal_places=2, verbose_name=_("Line Total")
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    def __str__(self) -> str:
        return f"{self.quantity} x product {self.product_id}"

    class Meta:
        verbose_name = _("Purchase Detail")
        verbose_name_plural = _("Purchase Details")
        db_table = "marketplace_purchased_detail"


class ProductSaleHistory(models.Model):
    """
    Per line item fulfillment record.

    ``is_delivered`` starts as False and flips to True exactly once through
    the delivery action of the selling instructor.
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sale_histories",
        verbose_name=_("Product"),
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="product_sale_histories",
        verbose_name=_("Customer"),
    )

    purchased_detail = models.OneToOneField(
        PurchasedDetail,
        on_delete=models.CASCADE,
        related_name="sale_history",
        verbose_name=_("Purchase Detail"),
    )

    instructor = models.ForeignKey(
        Instructor,
        on_delete=models.SET_NULL,
        null=True,
        related_name="product_sale_histories",
        verbose_name=_("Instructor"),
    )

    purchased = models.ForeignKey(
        Purchased,
        on_delete=models.CASCADE,
        related_name="sale_histories",
        verbose_name=_("Purchase"),
    )

    is_delivered = models.BooleanField(default=False, verbose_name=_("Delivered"))

    delivered_at = models.DateTimeField(
        null=True, blank=True, verbose_name=_("Delivered At")
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    def __str__(self) -> str:
        state = "delivered" if self.is_delivered else "pending"
        return f"Sale of product {self.product_id} ({state})"

    class Meta:
        verbose_name = _("Product Sale History")
        verbose_name_plural = _("Product Sale Histories")
        ordering = ["-created_at"]
        db_table = "marketplace_product_sale_history"


class ProcessedWebhookEvent(models.Model):
    """
    Gateway events that were already fulfilled.

    The row is written in the same transaction as the fulfillment records,
    so a redelivered event is either fully processed once or not at all.
    """

    event_id = models.CharField(
        max_length=255, unique=True, verbose_name=_("Gateway Event ID")
    )

    event_type = models.CharField(max_length=100, verbose_name=_("Event Type"))

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Processed At"))

    def __str__(self) -> str:
        return f"{self.event_type} ({self.event_id})"

    class Meta:
        verbose_name = _("Processed Webhook Event")
        verbose_name_plural = _("Processed Webhook Events")
        db_table = "marketplace_processed_webhook_event"
