"""
Marketplace Member Models

This module defines the member profiles of the marketplace. Authentication
is handled by Django's built-in User model; every sale, enrollment and
course is keyed on one of these profiles instead of the raw user id.

Models:
- Instructor: Seller profile owning courses and products
- Customer: Buyer profile owning purchases and enrollments

Author: AgTeach Development Team
Version: 1.0.0
"""

from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _


class Instructor(models.Model):
    """
    Seller profile of the marketplace.

    Attributes:
        user: One-to-one relationship with Django User model
        created_at: Timestamp of profile creation
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="instructor",
        verbose_name=_("User"),
        help_text=_("Associated user account"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    class Meta:
        verbose_name = _("Instructor")
        verbose_name_plural = _("Instructors")
        db_table = "marketplace_instructor"

    def __str__(self) -> str:
        return f"{self.user.username} (Instructor)"


class Customer(models.Model):
    """
    Buyer profile of the marketplace.

    Checkout sessions, purchases and enrollments reference the customer
    profile. An authenticated user without a customer profile cannot check out.

    Attributes:
        user: One-to-one relationship with Django User model
        created_at: Timestamp of profile creation
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer",
        verbose_name=_("User"),
        help_text=_("Associated user account"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    class Meta:
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        db_table = "marketplace_customer"

    def __str__(self) -> str:
        return f"{self.user.username} (Customer)"

    @property
    def email(self) -> str:
        return self.user.email
