from .notification_service import (
    ENROLLMENT_CONFIRMATION,
    ORDER_DELIVERED,
    PURCHASE_CONFIRMATION,
    NotificationService,
)

__all__ = [
    "NotificationService",
    "ENROLLMENT_CONFIRMATION",
    "PURCHASE_CONFIRMATION",
    "ORDER_DELIVERED",
]
