# shared/common/exceptions.py
"""
API Exception Classes and Exception Handler
"""

import logging
from typing import Dict, Any, Optional
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException
from django.core.exceptions import ValidationError as DjangoValidationError
from django.conf import settings

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTIONS
# =============================================================================

class BaseAPIException(APIException):
    """Base exception class for all custom API exceptions"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An unexpected error occurred.'
    default_code = 'error'
    error_code = 'INTERNAL_ERROR'

    def __init__(
        self,
        detail: Optional[str] = None,
        code: Optional[str] = None,
        error_code: Optional[str] = None,
        extra_data: Optional[Dict] = None
    ):
        super().__init__(detail=detail, code=code)
        self.error_code = error_code or self.error_code
        self.extra_data = extra_data or {}


# =============================================================================
# CLIENT ERRORS (4xx)
# =============================================================================

class BadRequestException(BaseAPIException):
    """400 Bad Request"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'
    error_code = 'BAD_REQUEST'


class ValidationException(BadRequestException):
    """400 Validation Error"""
    default_detail = 'Validation error.'
    default_code = 'validation_error'
    error_code = 'VALIDATION_ERROR'


class InvalidStateException(BadRequestException):
    """400 Operation not allowed in the current state"""
    default_detail = 'Not allowed in the current status.'
    default_code = 'invalid_state'
    error_code = 'INVALID_STATE'


class ForbiddenException(BaseAPIException):
    """403 Forbidden"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'
    error_code = 'FORBIDDEN'


class NotFoundException(BaseAPIException):
    """404 Not Found"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'The requested resource was not found.'
    default_code = 'not_found'
    error_code = 'NOT_FOUND'


class ConflictException(BaseAPIException):
    """409 Conflict"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with existing bookings.'
    default_code = 'conflict'
    error_code = 'CONFLICT'


class SlotTakenException(ConflictException):
    """Requested interval overlaps an existing reservation"""
    default_detail = 'Slot no longer available.'
    error_code = 'SLOT_TAKEN'


class WaitlistConflictException(ConflictException):
    """Already queued for the slot"""
    default_detail = 'Already on the waitlist for this slot.'
    error_code = 'WAITLIST_CONFLICT'


# =============================================================================
# SERVER ERRORS (5xx)
# =============================================================================

class InternalServerException(BaseAPIException):
    """500 Internal Server Error"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The request could not be completed.'
    default_code = 'internal_server_error'
    error_code = 'INTERNAL_ERROR'


class ServiceUnavailableException(BaseAPIException):
    """503 Service Unavailable"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Booking storage is temporarily unavailable. Retry shortly.'
    default_code = 'service_unavailable'
    error_code = 'SERVICE_UNAVAILABLE'


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

DEFAULT_ERROR_CODES = {
    400: 'VALIDATION_ERROR',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    409: 'CONFLICT',
    503: 'SERVICE_UNAVAILABLE',
}


def error_envelope(code: str, message: str, request_id: str = None, details: Any = None) -> Dict[str, Any]:
    """Body shared by every error response."""
    error = {
        'code': code,
        'message': message,
        'request_id': request_id,
    }
    if details:
        error['details'] = details
    return {'success': False, 'error': error}


def custom_exception_handler(exc, context) -> Optional[Response]:
    """
    DRF exception handler.

    API exceptions keep their status code; Django validation errors
    become 400s; anything else is logged and answered with a 500 that
    does not leak internals.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None)

    response = exception_handler(exc, context)
    if response is not None:
        return format_error_response(exc, response, request_id)

    if isinstance(exc, DjangoValidationError):
        details = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        return Response(
            error_envelope('VALIDATION_ERROR', 'Validation error', request_id, details),
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception(
        f"Unhandled exception: {exc}",
        extra={
            'request_id': request_id,
            'exception_type': type(exc).__name__,
        }
    )
    message = str(exc) if settings.DEBUG else 'An unexpected error occurred. Please try again later.'
    return Response(
        error_envelope('INTERNAL_ERROR', message, request_id),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def format_error_response(exc, response: Response, request_id: str = None) -> Response:
    """Rewrite a DRF error response into the envelope."""
    code = getattr(exc, 'error_code', None) or DEFAULT_ERROR_CODES.get(response.status_code, 'ERROR')

    details = getattr(exc, 'extra_data', None)
    if not details and isinstance(response.data, dict) and 'detail' not in response.data:
        # field errors from serializer validation
        details = response.data

    response.data = error_envelope(code, get_error_message(exc), request_id, details)
    return response


def get_error_message(exc) -> str:
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        return detail.get('detail', 'Validation error')
    return str(exc)
