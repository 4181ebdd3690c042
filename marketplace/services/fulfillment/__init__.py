from .fulfillment_service import (
    CourseSale,
    DeliveryResult,
    FulfillmentResult,
    FulfillmentService,
    FulfillmentStatus,
    PurchaseLineItem,
    cents_to_money,
    to_money,
)

__all__ = [
    "FulfillmentService",
    "FulfillmentResult",
    "FulfillmentStatus",
    "PurchaseLineItem",
    "CourseSale",
    "DeliveryResult",
    "cents_to_money",
    "to_money",
]
