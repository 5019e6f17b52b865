"""
Global exception handler for consistent API error responses.
Every failure leaves the API as { "error": str, "code": str }.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException
from rest_framework import status
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.conf import settings

logger = logging.getLogger(__name__)


class UpstreamFailure(APIException):
    """Store or identity-provider failure surfaced to the client as 500."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An upstream service failed.'
    default_code = 'upstream_failure'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns:
    { "error": str, "code": str }
    """
    response = exception_handler(exc, context)
    if response is not None:
        response.data = {'error': _get_detail(exc), 'code': _get_code(exc)}
        return response

    if isinstance(exc, PermissionDenied):
        return Response(
            {'error': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        message = exc.messages[0] if getattr(exc, 'messages', None) else str(exc)
        return Response(
            {'error': message, 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception('Unhandled exception: %s', exc)
    error_detail = 'Internal server error'
    if settings.DEBUG:
        error_detail = f'Internal server error: {str(exc)}'
    # Never expose stack traces to the client
    return Response(
        {'error': error_detail, 'code': 'internal_error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _get_detail(exc):
    if hasattr(exc, 'detail'):
        return _first_message(exc.detail)
    return str(exc)


def _first_message(detail):
    """Flatten DRF detail (str, list or field dict) to its first message."""
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else 'Error'
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        if 'error' in detail:
            return _first_message(detail['error'])
        for field, value in detail.items():
            message = _first_message(value)
            if field == 'non_field_errors':
                return message
            return f'{field}: {message}'
        return 'Error'
    return str(detail)


def _get_code(exc):
    """An explicit code passed when raising wins; otherwise map by exception class."""
    get_codes = getattr(exc, 'get_codes', None)
    code = get_codes() if get_codes else None
    if isinstance(code, str) and code != getattr(exc, 'default_code', None):
        return code
    codes = {
        'NotAuthenticated': 'not_authenticated',
        'AuthenticationFailed': 'invalid_credentials',
        'InvalidToken': 'invalid_token',
        'NotFound': 'not_found',
        'Http404': 'not_found',
        'PermissionDenied': 'permission_denied',
        'ValidationError': 'validation_error',
        'MethodNotAllowed': 'method_not_allowed',
        'ParseError': 'parse_error',
        'UpstreamFailure': 'upstream_failure',
    }
    return codes.get(type(exc).__name__, 'error')
