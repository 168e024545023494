"""
Domain errors raised by the CareDesk services and the DRF exception handler
that turns them into the API error envelope.

Every error response has the same shape:

    {"success": false, "error": {"code": ..., "message": ..., "detail": {...}}}
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class HMSError(Exception):
    """Base class for business rule failures raised by service functions."""

    code = 'error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request could not be processed'

    def __init__(self, message=None, **detail):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def as_dict(self):
        return {
            'code': self.code,
            'message': self.message,
            'detail': self.detail,
        }


class NotFound(HMSError):
    """Referenced entity does not exist."""
    code = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Resource not found'


class Conflict(HMSError):
    """Resource is held by someone else or a uniqueness rule would break."""
    code = 'conflict'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Resource is in a conflicting state'


class InvalidState(HMSError):
    """Operation is not allowed from the entity's current lifecycle state."""
    code = 'invalid_state'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Operation not allowed in the current state'


class OutOfRange(HMSError):
    """Numeric input outside the accepted range (e.g. overpayment)."""
    code = 'out_of_range'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Value out of range'


class BusinessValidationError(HMSError):
    """Malformed or missing input detected by a service."""
    code = 'validation_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input'


def error_response(code, message, detail=None, status_code=status.HTTP_400_BAD_REQUEST):
    """Build the standard error envelope."""
    return Response(
        {
            'success': False,
            'error': {
                'code': code,
                'message': message,
                'detail': detail if detail is not None else {},
            },
        },
        status=status_code,
    )


def api_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER.

    HMSError subclasses map to their own status code; DRF's exceptions are
    normalised to the same envelope. Anything else is logged and reported as
    a 500 so clients never receive an HTML debug page from the API.
    """
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if isinstance(exc, HMSError):
        logger.warning(f"{exc.__class__.__name__} in {view_name}: {exc.message} {exc.detail}")
        return error_response(exc.code, exc.message, exc.detail, exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception(f"Unhandled error in {view_name}: {exc}")
        return error_response(
            'server_error',
            'Internal server error',
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DRFValidationError):
        code = 'validation_error'
        message = 'Invalid input'
        detail = response.data if isinstance(response.data, dict) else {'errors': response.data}
    else:
        code = exc.default_code if isinstance(exc, APIException) else 'api_error'
        data = response.data
        message = str(data.get('detail', data)) if isinstance(data, dict) else str(data)
        detail = {}

    error = error_response(code, message, detail, response.status_code)
    # Keep headers such as WWW-Authenticate and Retry-After
    for header, value in response.items():
        error[header] = value
    return error
