"""
Marketplace Model Signal Handlers

Removes the stored media folder of a course or product once its row is
deleted:

- Course  -> ``courses/{id}/``
- Product -> ``products/{id}/``

The folder is deleted after the surrounding transaction commits, so a
rolled back delete keeps its media. Storage failures are logged and never
re-raised; the database delete has already happened at that point.

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging

from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from core.exceptions import ExternalServiceException

from .catalog.models import Product
from .courses.models import Course
from .services.cloud_storage import ObjectStorageService

logger = logging.getLogger(__name__)


def delete_media_folder(prefix: str) -> int:
    """Delete a storage folder, returning the number of removed objects (0 on failure)."""
    try:
        return ObjectStorageService().delete_prefix(prefix)
    except ExternalServiceException:
        logger.exception("Could not delete media folder %s", prefix)
        return 0


@receiver(post_delete, sender=Course)
def delete_course_media(sender, instance: Course, **kwargs):
    prefix = f"courses/{instance.pk}"
    transaction.on_commit(lambda: delete_media_folder(prefix))


@receiver(post_delete, sender=Product)
def delete_product_media(sender, instance: Product, **kwargs):
    prefix = f"products/{instance.pk}"
    transaction.on_commit(lambda: delete_media_folder(prefix))
