from django.urls import path
from .views import (
    CourseCheckoutSessionView,
    PaymentSessionView,
    ProductCheckoutSessionView,
    stripe_webhook,
)

app_name = "stripe_integration"

urlpatterns = [
    path("enrollment/checkoutSession", CourseCheckoutSessionView.as_view(), name="course-checkout-session"),
    path("purchased/productCheckoutSession", ProductCheckoutSessionView.as_view(), name="product-checkout-session"),
    path("payment/session/<str:session_id>", PaymentSessionView.as_view(), name="payment-session"),
]

webhook_urlpatterns = [
    path("stripeWebhook", stripe_webhook, name="stripe-webhook"),
]
