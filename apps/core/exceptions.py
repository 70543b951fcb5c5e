"""
Standardized error handling for the Peoples moderation API.

Provides consistent error codes, exception classes, and response formatting.
"""

import logging
import traceback
import uuid
from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # State errors (400)
    STATUS_ERROR = "STATUS_ERROR"

    # Authentication/Authorization (401/403)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_URL = "DUPLICATE_URL"
    ALREADY_PUBLISHED = "ALREADY_PUBLISHED"

    # Server errors
    SERVER_ERROR = "SERVER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

# =============================================================================
# Error Response Schema
# =============================================================================

@dataclass
class ErrorDetail:
    """Detailed error information."""
    code: ErrorCode
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code.value if isinstance(self.code, ErrorCode) else self.code,
            "message": self.message,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result

@dataclass
class ErrorResponse:
    """Standardized error response."""
    error: ErrorDetail
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error.to_dict(),
            "request_id": self.request_id,
        }

    def to_response(self, status_code: int = 400) -> Response:
        return Response(self.to_dict(), status=status_code)

# =============================================================================
# Custom Exceptions
# =============================================================================

class PeoplesException(APIException):
    """Base exception for moderation API errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}

        if status_code:
            self.status_code = status_code

        super().__init__(detail=self.message)

    def get_error_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(
            error=ErrorDetail(
                code=self.error_code,
                message=self.message,
                field=self.field,
                details=self.error_details if self.error_details else None,
            ),
            request_id=request_id or str(uuid.uuid4()),
        )

class ValidationError(PeoplesException):
    """Missing or malformed required field."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.VALIDATION_ERROR
    default_detail = "Validation failed"

class NotFoundError(PeoplesException):
    """Resource not found."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"

class StatusError(PeoplesException):
    """Operation is not valid for the current state of the object."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.STATUS_ERROR
    default_detail = "Operation not allowed in the current status"

class DuplicateUrlError(PeoplesException):
    """A production person already owns the target URL."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.DUPLICATE_URL
    default_detail = "A person with this URL already exists"

class AlreadyPublishedError(PeoplesException):
    """The suggestion has already been published."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.ALREADY_PUBLISHED
    default_detail = "This suggestion has already been published"

class ServerError(PeoplesException):
    """
    Unexpected failure inside a transaction.

    The transaction has been rolled back; `cause` is the original exception.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = ErrorCode.SERVER_ERROR
    default_detail = "Operation failed"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None, **kwargs):
        self.cause = cause
        if cause is not None and message is None:
            message = f"{self.default_detail}: {cause}"
        super().__init__(message, **kwargs)

# =============================================================================
# Exception Handler
# =============================================================================

# Error code for DRF's own exceptions, by HTTP status
DRF_STATUS_CODES = {
    401: ErrorCode.AUTHENTICATION_REQUIRED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    429: ErrorCode.RATE_LIMITED,
}

def get_request_id(request) -> str:
    """Request ID set by RequestIDMiddleware, or a fresh one."""
    return getattr(request, 'request_id', None) or str(uuid.uuid4())

def _render(request_id, status_code, code, message, details=None) -> Response:
    return ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        request_id=request_id,
    ).to_response(status_code)

def _describe_drf_payload(data):
    """Split a DRF error payload into (message, details)."""
    if isinstance(data, dict):
        if 'detail' in data:
            return str(data['detail']), None
        return "Validation failed", data
    if isinstance(data, list):
        return (str(data[0]) if data else "Error"), {"errors": data}
    return str(data), None

def peoples_exception_handler(exc, context):
    """
    DRF exception handler for the moderation API.

    Every error, typed or not, leaves as
    ``{"error": {"code", "message", "field"?, "details"?}, "request_id"}``.
    """
    request = context.get('request')
    request_id = get_request_id(request) if request else str(uuid.uuid4())

    if isinstance(exc, PeoplesException):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "%s: %s", exc.error_code.value, exc.message,
            extra={
                "request_id": request_id,
                "error_field": exc.field,
                "status_code": exc.status_code,
            },
        )
        return exc.get_error_response(request_id).to_response(exc.status_code)

    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            message, details = "Validation failed", exc.message_dict
        else:
            message = exc.messages[0] if exc.messages else "Validation failed"
            details = {"errors": exc.messages}
        return _render(request_id, status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, message, details)

    if isinstance(exc, Http404):
        return _render(
            request_id, status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND,
            str(exc) or "Resource not found",
        )

    response = drf_exception_handler(exc, context)
    if response is not None:
        if response.status_code >= 500:
            code = ErrorCode.INTERNAL_ERROR
        else:
            code = DRF_STATUS_CODES.get(response.status_code, ErrorCode.VALIDATION_ERROR)
        message, details = _describe_drf_payload(response.data)
        rendered = _render(request_id, response.status_code, code, message, details)
        for header in ('WWW-Authenticate', 'Retry-After'):
            if header in response:
                rendered[header] = response[header]
        return rendered

    logger.exception(
        "Unhandled %s in %s",
        type(exc).__name__,
        context.get('view').__class__.__name__ if context.get('view') else 'unknown view',
        extra={"request_id": request_id, "traceback": traceback.format_exc()},
    )
    return _render(
        request_id, status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR,
        "An unexpected error occurred",
    )

# =============================================================================
# Response Helpers
# =============================================================================

def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = 200,
) -> Response:
    """Create a standardized success response."""
    response_data = {}

    if data is not None:
        if isinstance(data, dict):
            response_data.update(data)
        else:
            response_data['data'] = data

    if message:
        response_data['message'] = message

    return Response(response_data, status=status_code)
