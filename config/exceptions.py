"""
Global exception handler for consistent API error responses.
Follows DRF convention and returns uniform structure.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.conf import settings

from core.errors import (
    ConflictError,
    ConsistencyViolation,
    FinanceError,
    InvalidOperationError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

_FINANCE_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidOperationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ConsistencyViolation, status.HTTP_409_CONFLICT),
)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns:
    { "detail": str, "code": str (optional), "errors": dict (optional) }
    """
    if isinstance(exc, FinanceError):
        return _finance_error_response(exc, context)

    response = exception_handler(exc, context)
    if response is not None:
        data = response.data if isinstance(response.data, dict) else {'detail': str(response.data)}
        if 'detail' not in data and response.data:
            data = {'detail': _get_detail(exc), 'errors': data}
        data.setdefault('detail', _get_detail(exc))
        data.setdefault('code', _get_code(exc))
        response.data = data
        return response

    if isinstance(exc, PermissionDenied):
        return Response(
            {'detail': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        return Response(
            {'detail': str(exc), 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception('Unhandled exception: %s', exc)
    error_detail = 'An internal error occurred.'
    if settings.DEBUG:
        error_detail = f'An internal error occurred: {str(exc)}'
    # Never expose stack traces to frontend; use standard API error format
    return Response(
        {'detail': error_detail, 'code': 'internal_error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _finance_error_response(exc, context):
    for exc_class, status_code in _FINANCE_STATUS:
        if isinstance(exc, exc_class):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, ConsistencyViolation):
        # Should have been retried inside the service; reaching here is a bug.
        view = context.get('view') if context else None
        logger.error(f"[exceptions] ConsistencyViolation escaped retry in {type(view).__name__}: {exc.message}")
    elif status_code == status.HTTP_409_CONFLICT:
        logger.warning(f"[exceptions] Conflict: {exc.message}")

    return Response({'detail': exc.message, 'code': exc.code}, status=status_code)


def _get_detail(exc):
    if hasattr(exc, 'detail'):
        d = exc.detail
        if isinstance(d, list):
            return str(d[0]) if d else 'Error'
        if isinstance(d, dict):
            if 'detail' in d:
                return str(d['detail'])
            first_key = next(iter(d), None)
            if first_key is None:
                return 'Error'
            value = d[first_key]
            if isinstance(value, list) and value:
                value = value[0]
            return f'{first_key}: {value}'
        return str(d)
    return str(exc)


def _get_code(exc):
    codes = {
        'AuthenticationFailed': 'invalid_credentials',
        'NotAuthenticated': 'not_authenticated',
        'NotFound': 'not_found',
        'PermissionDenied': 'permission_denied',
        'ValidationError': 'validation_error',
    }
    return codes.get(type(exc).__name__, 'error')
