"""
Marketplace Custom Exceptions

This module provides the exception hierarchy shared by every marketplace
component (checkout, webhook fulfillment, course reconciliation) and the
DRF exception handler that turns them into the public error envelope.

Every API error is rendered as::

    {"status": "fail" | "error", "message": "..."}

"fail" is used for 4xx responses, "error" for 5xx responses. Stack traces
are only attached while DEBUG is enabled.

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging
import traceback
from typing import Optional, Dict, Any

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceException(Exception):
    """
    Base exception class for all marketplace errors.

    Attributes:
        message (str): Human-readable error message
        status_code (int): HTTP status code used when rendered by the API
        error_code (Optional[str]): Stable machine-readable identifier
        details (Dict[str, Any]): Additional error details
    """

    default_message = "Something went very wrong!"
    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_error_code = "MarketplaceError"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code or self.default_status_code
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status(self) -> str:
        """'fail' for client errors, 'error' for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "status": self.status,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "exception_type": self.__class__.__name__,
        }


class ValidationException(MarketplaceException):
    """Bad or missing input."""

    default_message = "Invalid input data."
    default_status_code = status.HTTP_400_BAD_REQUEST
    default_error_code = "ValidationError"

    def __init__(
        self,
        message: Optional[str] = None,
        validation_errors: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = {}
        if validation_errors:
            details["validation_errors"] = validation_errors
        super().__init__(message=message, details=details)


class NotFoundException(MarketplaceException):
    """
    Exception raised when a referenced entity does not exist.

    Attributes:
        resource (Optional[str]): The type of the missing resource
    """

    default_message = "Requested resource not found"
    default_status_code = status.HTTP_404_NOT_FOUND
    default_error_code = "NotFound"

    def __init__(
        self, message: Optional[str] = None, resource: Optional[str] = None
    ) -> None:
        self.resource = resource
        details = {}
        if resource:
            details["resource"] = resource
        super().__init__(message=message, details=details)


class AuthorizationException(MarketplaceException):
    """The caller is authenticated but may not touch this resource."""

    default_message = "You do not have permission to perform this action."
    default_status_code = status.HTTP_403_FORBIDDEN
    default_error_code = "Forbidden"


class ConflictException(MarketplaceException):
    """The request conflicts with the current state of the data."""

    default_message = "The request conflicts with the current state."
    default_status_code = status.HTTP_400_BAD_REQUEST
    default_error_code = "Conflict"


class InsufficientStockException(ConflictException):
    """
    Exception raised when a purchase would drive product stock below zero.

    Attributes:
        product_ids (list): Products whose stock cannot cover the purchase
    """

    default_message = "Insufficient stock"
    default_error_code = "InsufficientStock"

    def __init__(self, product_ids=None, message: Optional[str] = None) -> None:
        self.product_ids = list(product_ids or [])
        super().__init__(
            message=message, details={"product_ids": self.product_ids}
        )


class ExternalServiceException(MarketplaceException):
    """
    Exception raised when a payment, storage or email provider call fails.

    Attributes:
        service (Optional[str]): Name of the failing provider
    """

    default_message = "An external service is currently unavailable."
    default_status_code = status.HTTP_502_BAD_GATEWAY
    default_error_code = "ExternalServiceError"

    def __init__(
        self, message: Optional[str] = None, service: Optional[str] = None
    ) -> None:
        self.service = service
        details = {"service": service} if service else {}
        super().__init__(message=message, details=details)


class PersistenceIntegrityException(MarketplaceException):
    """Unexpected persistence failure; the surrounding transaction is rolled back."""

    default_message = "The data could not be saved consistently."
    default_error_code = "IntegrityError"


def _envelope(status_name: str, message: str, exc: Exception) -> Dict[str, Any]:
    body = {"status": status_name, "message": message}
    if settings.DEBUG:
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return body


def _flatten_detail(detail) -> str:
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            parts.append(f"{field}: {_flatten_detail(value)}")
        return ". ".join(parts)
    if isinstance(detail, (list, tuple)):
        return " ".join(_flatten_detail(item) for item in detail)
    return str(detail)


def marketplace_exception_handler(exc, context) -> Response:
    """
    DRF exception handler producing the ``{status, message}`` envelope.

    - MarketplaceException subclasses keep their own status code and message.
    - DRF/Django exceptions (validation, 404, auth) are re-rendered.
    - Anything else becomes a generic 500 and is logged with its traceback.
    """
    if isinstance(exc, MarketplaceException):
        if exc.status_code >= 500:
            logger.error("Marketplace error: %s", exc.message, exc_info=exc)
        return Response(
            _envelope(exc.status, exc.message, exc), status=exc.status_code
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = drf_exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is not None:
        status_name = "fail" if response.status_code < 500 else "error"
        response.data = _envelope(status_name, _flatten_detail(exc.detail), exc)
        return response

    logger.exception("Unhandled error in %s", context.get("view").__class__.__name__)
    return Response(
        _envelope("error", MarketplaceException.default_message, exc),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
