"""
AgTeach Backend URL Configuration

- /admin/                 Django admin (jazzmin)
- /api/token/             JWT token endpoints
- /api/...                Marketplace and checkout endpoints
- /webhook/stripeWebhook  Stripe webhook (raw body, signature verified)
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from core.stripe_integration.urls import webhook_urlpatterns

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/token/verify/", TokenVerifyView.as_view(), name="token_verify"),
    path("api/", include("marketplace.urls")),
    path("api/", include("core.stripe_integration.urls")),
    path("webhook/", include((webhook_urlpatterns, "stripe_webhook"))),
]
