"""
Marketplace Catalog Models

Physical and digital products sold by instructors.

Models:
- ProductCategory: Organizational categories for products
- Product: Sellable item with an inventory count

Stock is only ever decremented by the payment webhook and can never go
below zero (PositiveIntegerField adds the database check constraint).

Author: AgTeach Development Team
Version: 1.0.0
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from ..accounts.models import Instructor


class ProductCategory(models.Model):
    """Organizational category for products."""

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name=_("Category Name"),
        help_text=_("Unique name for this product category"),
    )

    def __str__(self) -> str:
        return self.name

    class Meta:
        verbose_name = _("Product Category")
        verbose_name_plural = _("Product Categories")
        ordering = ["name"]
        db_table = "marketplace_product_category"


class Product(models.Model):
    """
    Sellable product owned by an instructor.

    Attributes:
        instructor: Owning instructor
        category: Optional category
        name: Display name used on checkout pages
        description: Free text description
        price: Unit price in the default currency
        quantity: Current inventory count (never negative)
        image_url: Primary image shown on checkout pages
    """

    instructor = models.ForeignKey(
        Instructor,
        on_delete=models.CASCADE,
        related_name="products",
        verbose_name=_("Instructor"),
        help_text=_("Instructor selling this product"),
    )

    category = models.ForeignKey(
        ProductCategory,
        on_delete=models.PROTECT,
        related_name="products",
        null=True,
        blank=True,
        verbose_name=_("Category"),
    )

    name = models.CharField(max_length=255, verbose_name=_("Product Name"))

    description = models.TextField(blank=True, verbose_name=_("Description"))

    price = models.DecimalField(
        max_digits=10, decimal_places=2, verbose_name=_("Unit Price")
    )

    quantity = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Quantity in Stock"),
        help_text=_("Decremented when a paid checkout is fulfilled"),
    )

    image_url = models.TextField(blank=True, verbose_name=_("Image URL"))

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("Updated At"))

    def __str__(self) -> str:
        return self.name

    class Meta:
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["-created_at"]
        db_table = "marketplace_product"
