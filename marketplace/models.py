"""
Marketplace Application Models Registry

This module serves as the central models registry for the marketplace
application. It imports and exposes all models from the logical submodules
so they are registered with Django's ORM under the single ``marketplace``
app label.

Architecture:
- accounts/: Instructor and customer profiles
- catalog/: Products and product categories
- courses/: Courses, sections and lectures
- sales/: Enrollments, purchases, sale histories and webhook dedupe

Author: AgTeach Development Team
Version: 1.0.0
"""

# Member profiles
from .accounts.models import Customer, Instructor

# Product catalog
from .catalog.models import Product, ProductCategory

# Course outline
from .courses.models import Course, Lecture, Section

# Sales records
from .sales.models import (
    CourseSaleHistory,
    Enroll,
    ProcessedWebhookEvent,
    ProductSaleHistory,
    Purchased,
    PurchasedDetail,
)

__all__ = [
    "Instructor",
    "Customer",
    "ProductCategory",
    "Product",
    "Course",
    "Section",
    "Lecture",
    "Enroll",
    "CourseSaleHistory",
    "Purchased",
    "PurchasedDetail",
    "ProductSaleHistory",
    "ProcessedWebhookEvent",
]
