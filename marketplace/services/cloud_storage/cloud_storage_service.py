"""
Object Storage Service for the AgTeach Marketplace

Thin service over an S3-compatible bucket (AWS S3, Wasabi, MinIO) holding
every media file of the marketplace.

Key layout:
- courses/{course_id}/thumbnail.jpeg
- courses/{course_id}/section-{section_id}/lecture-{lecture_id}.mp4
- products/{product_id}/...

Features:
- Upload of a single object with public URL generation
- Single object and whole-folder deletion
- Reverse mapping of a public URL to its object key

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging
from typing import Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from core.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


class ObjectStorageService:
    """
    Service for object storage operations.

    A preconfigured boto3 client may be passed in; otherwise one is built
    from the ``STORAGE_*`` settings.
    """

    service_name = "object_storage"

    def __init__(self, client=None, bucket_name: Optional[str] = None,
                 public_url: Optional[str] = None):
        self.bucket_name = bucket_name or settings.STORAGE_BUCKET
        base_url = public_url or settings.STORAGE_PUBLIC_URL
        self.public_url = base_url.rstrip("/") + "/"
        self.client = client or self._initialize_client()

    def _initialize_client(self):
        """Build the S3 client from settings."""
        client = boto3.client(
            "s3",
            aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY or None,
            region_name=settings.STORAGE_REGION,
            endpoint_url=settings.STORAGE_ENDPOINT_URL or None,
        )
        logger.info("Object storage client initialised for bucket %s", self.bucket_name)
        return client

    def url_for(self, key: str) -> str:
        """Public URL of an object key."""
        return f"{self.public_url}{key}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """
        Map a public URL back to its object key.

        Returns:
            The object key, or None for URLs outside this bucket (for example
            the placeholder media)
        """
        if not url or not url.startswith(self.public_url):
            return None
        key = url[len(self.public_url):].split("?", 1)[0]
        return key or None

    def put_object(self, key: str, body, content_type: Optional[str] = None) -> str:
        """
        Upload a single object.

        Args:
            key: Object key inside the bucket
            body: Bytes or a readable file object (e.g. an uploaded file)
            content_type: MIME type stored with the object

        Returns:
            Public URL of the stored object

        Raises:
            ExternalServiceException: When the storage provider rejects the upload
        """
        params = {"Bucket": self.bucket_name, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            logger.error("Upload of %s failed: %s", key, e)
            raise ExternalServiceException(
                f"Failed to upload {key}", service=self.service_name
            ) from e
        logger.info("Uploaded %s", key)
        return self.url_for(key)

    def delete_object(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error("Deletion of %s failed: %s", key, e)
            raise ExternalServiceException(
                f"Failed to delete {key}", service=self.service_name
            ) from e
        logger.info("Deleted %s", key)

    def list_prefix(self, prefix: str) -> List[str]:
        """
        List every object key below a folder prefix.

        Args:
            prefix: Folder such as ``courses/12``; a trailing slash is added

        Returns:
            List of object keys
        """
        folder = prefix.rstrip("/") + "/"
        keys: List[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=folder):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            logger.error("Listing of %s failed: %s", folder, e)
            raise ExternalServiceException(
                f"Failed to list {folder}", service=self.service_name
            ) from e
        return keys

    def delete_prefix(self, prefix: str) -> int:
        """
        Delete a whole folder.

        Returns:
            Number of deleted objects (0 for an empty or missing folder)
        """
        keys = self.list_prefix(prefix)
        if not keys:
            logger.info("Nothing to delete below %s", prefix)
            return 0

        deleted = 0
        for batch in _chunks(keys, DELETE_BATCH_SIZE):
            try:
                self.client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                logger.error("Bulk deletion below %s failed: %s", prefix, e)
                raise ExternalServiceException(
                    f"Failed to delete folder {prefix}", service=self.service_name
                ) from e
            deleted += len(batch)

        logger.info("Deleted %d objects below %s", deleted, prefix)
        return deleted


def _chunks(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]
