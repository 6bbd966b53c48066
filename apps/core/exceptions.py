"""
Custom exception handlers for DRF.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that logs errors and returns consistent format.

    Project exceptions (CaseworkException subclasses) carry their own status
    code and are rendered as {error, code, details, request_id}. Everything
    else goes through DRF's default handler first.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    if isinstance(exc, CaseworkException):
        log_method = logger.warning if exc.status_code < 500 else logger.error
        log_method(
            f"API Exception: {exc.__class__.__name__}",
            extra={
                'exception': exc.message,
                'code': exc.code,
                'request_id': request_id,
                'path': request.path if request else None,
                'method': request.method if request else None,
            }
        )

        response = Response(
            {
                'error': exc.message,
                'code': exc.code,
                'details': exc.details,
                'request_id': request_id,
            },
            status=exc.status_code
        )
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            response['WWW-Authenticate'] = 'Bearer realm="api"'
        return response

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    logger.error(
        f"API Exception: {exc.__class__.__name__}",
        extra={
            'exception': str(exc),
            'request_id': request_id,
            'path': request.path if request else None,
            'method': request.method if request else None,
        },
        exc_info=response is None
    )

    # If DRF didn't handle it, return a generic 500 error
    if response is None:
        return Response(
            {
                'error': 'Internal server error',
                'detail': 'An unexpected error occurred',
                'request_id': request_id,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    # Add request_id to all error responses
    if request_id and isinstance(response.data, dict):
        response.data['request_id'] = request_id

    return response


class CaseworkException(Exception):
    """Base exception for case-management API errors."""

    status_code = 500
    code = 'ERROR'

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(CaseworkException):
    """Raised when no verified identity accompanies the request."""
    status_code = 401
    code = 'UNAUTHORIZED'


class PermissionDeniedError(CaseworkException):
    """Raised when the caller lacks required permissions."""
    status_code = 403
    code = 'FORBIDDEN'


class RouteAccessDenied(PermissionDeniedError):
    """
    Raised when the route permission resolver denies a request.

    ``details`` holds the resolver's deny diagnostics so the front end can
    tell "never provisioned" apart from "provisioned but not allowed".
    """
    code = 'ROUTE_ACCESS_DENIED'
