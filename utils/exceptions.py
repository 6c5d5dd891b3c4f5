"""DRF exception handler producing the API's error envelope."""

import logging
from typing import Any

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from schedules.domain.errors import DomainError, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred"

DOMAIN_ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_body(code: str, message: str, details: Any, status_code: int) -> dict:
    return {
        "error": True,
        "code": code,
        "message": message,
        "details": details,
        "status_code": status_code,
    }


def custom_exception_handler(exc: Exception, context: dict) -> Response | None:
    """Render domain and DRF errors in one envelope.

    Domain errors map to a status by kind. They do not mark the request
    transaction for rollback, so writes made before the error (such as
    an approval whose email failed) are kept.
    """
    if isinstance(exc, DomainError):
        status_code = DOMAIN_ERROR_STATUS[exc.kind]
        if status_code >= 500:
            logger.error(f"{exc.code.value}: {exc.message}")
        return Response(
            error_body(exc.code.value, exc.message, None, status_code), status=status_code
        )

    response = exception_handler(exc, context)
    if response is not None:
        response.data = error_body(
            get_error_code(exc),
            get_error_message(response.data),
            response.data,
            response.status_code,
        )
    return response


def validation_error_response(errors: Any) -> Response:
    """Envelope for serializer errors returned instead of raised.

    Raising marks the request transaction for rollback. Views that must keep
    writes made during validation return this response instead.
    """
    exc = ValidationError(errors)
    return Response(
        error_body(
            get_error_code(exc),
            get_error_message(exc.detail),
            exc.detail,
            status.HTTP_400_BAD_REQUEST,
        ),
        status=status.HTTP_400_BAD_REQUEST,
    )


def get_error_code(exc: Exception) -> str:
    """First error code reported by a DRF exception."""
    codes = exc.get_codes() if hasattr(exc, "get_codes") else None
    while isinstance(codes, (dict, list)) and codes:
        codes = next(iter(codes.values())) if isinstance(codes, dict) else codes[0]
    return codes if isinstance(codes, str) else "error"


def get_error_message(error_data: Any) -> str:
    """First human-readable message in DRF error data."""
    if isinstance(error_data, dict):
        for value in error_data.values():
            if isinstance(value, list):
                return str(value[0]) if value else DEFAULT_ERROR_MESSAGE
            if isinstance(value, str):
                return value
            if isinstance(value, dict):
                return get_error_message(value)
    elif isinstance(error_data, list):
        return str(error_data[0]) if error_data else DEFAULT_ERROR_MESSAGE
    elif isinstance(error_data, str):
        return error_data
    return DEFAULT_ERROR_MESSAGE
