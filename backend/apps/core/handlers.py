"""
Final error handler for the API.

Every exception raised while serving a DRF view ends up here and is turned
into ``{"success": false, "error": ..., "meta": {...}}``.
"""
import logging
import traceback

from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import set_rollback

from .exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def flatten_detail(detail) -> str:
    """Collapse DRF error details (str / list / dict) into one message."""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            message = flatten_detail(value)
            parts.append(message if field == 'non_field_errors' else f"{field}: {message}")
        return ', '.join(parts)
    if isinstance(detail, (list, tuple)):
        return ', '.join(flatten_detail(item) for item in detail)
    return str(detail)


def to_service_error(exc) -> ServiceError:
    """Map framework and database exceptions onto the service taxonomy."""
    if isinstance(exc, ServiceError):
        return exc

    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        return UnauthorizedError()

    if isinstance(exc, (drf_exceptions.PermissionDenied, DjangoPermissionDenied)):
        return ForbiddenError(getattr(exc, 'detail', None) or 'Forbidden')

    if isinstance(exc, drf_exceptions.ValidationError):
        return ValidationError(flatten_detail(exc.detail), meta={'errors': exc.detail})

    if isinstance(exc, DjangoValidationError):
        return ValidationError(', '.join(exc.messages))

    if isinstance(exc, (drf_exceptions.NotFound, Http404)):
        return NotFoundError(str(exc) or None)

    if isinstance(exc, IntegrityError):
        return ConflictError(f"Duplicate field value: {exc}")

    if isinstance(exc, drf_exceptions.APIException):
        # ParseError, UnsupportedMediaType, MethodNotAllowed, Throttled ...
        error = ServiceError(flatten_detail(exc.detail))
        error.status_code = exc.status_code
        return error

    return InternalError()


def api_exception_handler(exc, context):
    error = to_service_error(exc)
    request = context.get('request')
    path = request.path if request is not None else '-'
    message = flatten_detail(error.detail)

    if error.status_code >= 500:
        logger.error(f"Unhandled error on {path}: {exc!r}", exc_info=exc)
    else:
        logger.warning(f"{error.status_code} on {path}: {message}")

    payload = {'success': False, 'error': message}
    meta = dict(error.meta)
    if settings.DEBUG:
        meta['stack'] = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    if meta:
        payload['meta'] = meta

    headers = {}
    auth_header = getattr(exc, 'auth_header', None)
    if auth_header:
        headers['WWW-Authenticate'] = auth_header
    wait = getattr(exc, 'wait', None)
    if wait:
        headers['Retry-After'] = str(int(wait))

    set_rollback()
    return Response(payload, status=error.status_code, headers=headers)
