"""
Checkout Session Builder
========================

Translates a course purchase or a product cart into the parameters of a
Stripe Checkout Session.

The session `metadata` bag is the only channel through which the webhook
learns what to fulfill:

- course:  {"type": "course", "courseId", "instructorId", "customerId"}
- product: {"type": "product", "customerId"}; every line item carries its
  own `product_id` in `price_data.product_data.metadata`

Unit prices and display names always come from the persisted course or
product, never from the client.

Author: AgTeach Development Team
Date: 2025-09-03
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.conf import settings

from core.exceptions import (
    InsufficientStockException,
    NotFoundException,
    ValidationException,
)
from marketplace.models import Course, Customer, Product

CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def to_cents(amount) -> int:
    """Amount in the smallest currency unit, rounded half up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class CartItem:
    product_id: int
    quantity: int


def parse_cart(cart_items) -> List[CartItem]:
    """
    Validate the `cartItems` payload.

    Repeated products are merged; the order of first appearance is kept.

    Raises:
        ValidationException: Empty cart, malformed ids or non-positive quantities
    """
    if not isinstance(cart_items, list) or not cart_items:
        raise ValidationException("Cart is empty.")

    merged: Dict[int, int] = {}
    for raw in cart_items:
        if not isinstance(raw, dict):
            raise ValidationException("Invalid cart item.")
        try:
            product_id = int(raw.get("productId"))
            quantity = int(raw.get("quantity", 1))
        except (TypeError, ValueError):
            raise ValidationException("Cart items need a numeric productId and quantity.")
        if quantity <= 0:
            raise ValidationException("Quantity must be greater than zero.")
        merged[product_id] = merged.get(product_id, 0) + quantity

    return [CartItem(product_id, quantity) for product_id, quantity in merged.items()]


def get_customer(user) -> Customer:
    """Customer profile of the authenticated user."""
    customer = Customer.objects.filter(user=user).first()
    if customer is None:
        raise NotFoundException("No customer profile found for this user.", resource="customer")
    return customer


class CheckoutSessionBuilder:
    """
    Build `stripe.checkout.Session.create` parameters.

    Success and cancel URLs default to the frontend payment result pages and
    can be overridden per request.
    """

    def __init__(self, currency: Optional[str] = None, frontend_url: Optional[str] = None):
        self.currency = currency or settings.DEFAULT_CURRENCY
        self.frontend_url = (frontend_url or settings.FRONTEND_URL).rstrip("/")

    def _redirects(self, success_url: Optional[str], cancel_url: Optional[str]) -> Dict[str, str]:
        return {
            "success_url": success_url
            or f"{self.frontend_url}/success-payment?session_id={CHECKOUT_SESSION_PLACEHOLDER}",
            "cancel_url": cancel_url or f"{self.frontend_url}/fail-payment",
        }

    def _base_params(self, user, success_url, cancel_url) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "client_reference_id": str(user.pk),
        }
        if user.email:
            params["customer_email"] = user.email
        params.update(self._redirects(success_url, cancel_url))
        return params

    def _line_item(self, name: str, price, quantity: int, image: str,
                   metadata: Dict[str, str]) -> Dict[str, Any]:
        product_data: Dict[str, Any] = {"name": name, "metadata": metadata}
        if image and image.startswith("http"):
            product_data["images"] = [image]
        return {
            "price_data": {
                "currency": self.currency,
                "unit_amount": to_cents(price),
                "product_data": product_data,
            },
            "quantity": quantity,
        }

    def course_session_params(self, course: Course, customer: Customer, user,
                              success_url: Optional[str] = None,
                              cancel_url: Optional[str] = None) -> Dict[str, Any]:
        params = self._base_params(user, success_url, cancel_url)
        params["line_items"] = [
            self._line_item(
                course.name,
                course.price,
                1,
                course.thumbnail_url,
                {"course_id": str(course.pk)},
            )
        ]
        params["metadata"] = {
            "type": "course",
            "courseId": str(course.pk),
            "instructorId": str(course.instructor_id),
            "customerId": str(customer.pk),
        }
        return params

    def load_cart(self, items: Iterable[CartItem]) -> List[Tuple[Product, int]]:
        """
        Resolve cart items to persisted products.

        Raises:
            NotFoundException: A product does not exist
            InsufficientStockException: A product cannot cover the requested quantity
        """
        items = list(items)
        products = Product.objects.in_bulk([item.product_id for item in items])
        resolved = []
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                raise NotFoundException(
                    f"No product found with id {item.product_id}", resource="product"
                )
            resolved.append((product, item.quantity))

        short = [product.pk for product, quantity in resolved if product.quantity < quantity]
        if short:
            raise InsufficientStockException(short)
        return resolved

    def product_session_params(self, cart: List[Tuple[Product, int]], customer: Customer, user,
                               success_url: Optional[str] = None,
                               cancel_url: Optional[str] = None) -> Dict[str, Any]:
        params = self._base_params(user, success_url, cancel_url)
        params["line_items"] = [
            self._line_item(
                product.name,
                product.price,
                quantity,
                product.image_url,
                {"product_id": str(product.pk)},
            )
            for product, quantity in cart
        ]
        params["metadata"] = {"type": "product", "customerId": str(customer.pk)}
        return params
