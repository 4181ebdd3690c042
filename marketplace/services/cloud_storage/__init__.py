"""
Object Storage Services Package

S3-compatible storage for course videos, thumbnails and product images.
"""

from .cloud_storage_service import ObjectStorageService

__all__ = ["ObjectStorageService"]
