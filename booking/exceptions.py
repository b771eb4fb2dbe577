"""
exceptions.py
-------------
Domain errors and the API error envelope.

Every failure leaves the API as:

    {"success": false, "error": "<human readable>", "code": "<MACHINE_CODE>"}

with an optional "details" object. Domain code raises the AppError subclasses
below; DRF's own exceptions (serializer validation, auth, 404) are mapped onto
the same envelope by api_exception_handler, which is wired in settings via
REST_FRAMEWORK["EXCEPTION_HANDLER"].
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message=None, details=None, code=None):
        self.message = message or self.default_message
        self.details = details
        if code:
            self.code = code
        super().__init__(self.message)

    def as_dict(self):
        body = {"success": False, "error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "AUTHORIZATION_ERROR"
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource="Resource", resource_id=None):
        if resource_id is not None:
            message = f"{resource} with id {resource_id} not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, details={"resource": resource, "id": resource_id})


class BusinessLogicError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "BUSINESS_LOGIC_ERROR"
    default_message = "Business rule violated"


class BookingConflictError(BusinessLogicError):
    code = "BOOKING_CONFLICT"
    default_message = "This time slot is no longer available"

    def __init__(self, start_time, end_time, conflicting_booking_id=None):
        super().__init__(details={
            "start_time": start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "conflicting_booking_id": conflicting_booking_id,
        })


class InvalidTimeSlotError(BusinessLogicError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_TIME_SLOT"

    def __init__(self, start_time, reason):
        super().__init__(
            f"Invalid time slot: {reason}",
            details={"start_time": start_time.isoformat(), "reason": reason},
        )


class InvalidStatusTransitionError(BusinessLogicError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current, requested):
        super().__init__(
            f"Cannot change booking status from {current} to {requested}",
            details={"current": current, "requested": requested},
        )


class DuplicateError(BusinessLogicError):
    code = "DUPLICATE_ERROR"

    def __init__(self, resource, field, value):
        super().__init__(
            f"{resource} with {field} '{value}' already exists",
            details={"resource": resource, "field": field, "value": value},
        )


def _envelope(message, code, status_code, details=None):
    body = {"success": False, "error": message, "code": code}
    if details:
        body["details"] = details
    return Response(body, status=status_code)


def api_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER: render any exception as the JSON error envelope.

    Unknown exceptions are logged with their traceback and surfaced as a
    generic 500 so internals never reach the client.
    """
    if isinstance(exc, AppError):
        return Response(exc.as_dict(), status=exc.status_code)

    if isinstance(exc, Http404):
        return _envelope("Resource not found", "NOT_FOUND", status.HTTP_404_NOT_FOUND)

    if isinstance(exc, PermissionDenied):
        return _envelope(
            AuthorizationError.default_message, AuthorizationError.code, status.HTTP_403_FORBIDDEN
        )

    if isinstance(exc, drf_exceptions.ValidationError):
        details = exc.detail if isinstance(exc.detail, dict) else {"non_field_errors": exc.detail}
        return _envelope(ValidationError.default_message, ValidationError.code,
                         status.HTTP_400_BAD_REQUEST, details)

    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        # Session auth has no WWW-Authenticate header so DRF would answer 403.
        return _envelope(str(exc.detail), AuthenticationError.code, status.HTTP_401_UNAUTHORIZED)

    if isinstance(exc, drf_exceptions.PermissionDenied):
        return _envelope(str(exc.detail), AuthorizationError.code, status.HTTP_403_FORBIDDEN)

    if isinstance(exc, drf_exceptions.APIException):
        code = exc.default_code.upper() if isinstance(exc.default_code, str) else "API_ERROR"
        return _envelope(str(exc.detail), code, exc.status_code)

    view = context.get("view")
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "request")
    return _envelope(AppError.default_message, AppError.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
