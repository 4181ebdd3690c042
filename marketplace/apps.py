"""
Marketplace Application Configuration

Django application configuration for the marketplace. ``ready()`` connects
the model signal receivers that tear down stored media when a course or
product is deleted.

Author: AgTeach Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class MarketplaceConfig(AppConfig):
    """
    Configuration class for the marketplace Django application.

    Attributes:
        default_auto_field: Default primary key field type for models
        name: Application name for Django registration
        verbose_name: Human-readable application name for admin interface
    """

    default_auto_field: str = "django.db.models.BigAutoField"
    name: str = "marketplace"
    verbose_name: str = "AgTeach Marketplace"

    def ready(self) -> None:
        """Register signal receivers once the app registry is loaded."""
        super().ready()
        from . import signals  # noqa: F401
