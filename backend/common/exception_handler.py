"""DRF exception handler mapping service errors to HTTP responses."""

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import (
    ServiceError,
    NotFoundError,
    InvalidStateError,
    UnauthorizedError,
    DomainValidationError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
    (UpstreamUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _error_response(exc: ServiceError, status_code: int) -> Response:
    return Response(
        {
            "success": False,
            "error": exc.error_code,
            "message": exc.message,
        },
        status=status_code,
    )


def service_exception_handler(exc, context):
    """Handle ServiceError subclasses and database outages, defer the rest to DRF."""
    if isinstance(exc, ServiceError):
        for error_cls, status_code in STATUS_BY_ERROR:
            if isinstance(exc, error_cls):
                return _error_response(exc, status_code)
        return _error_response(exc, status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling %s", context.get("view"))
        return _error_response(
            UpstreamUnavailableError("Database is temporarily unavailable"),
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return exception_handler(exc, context)
