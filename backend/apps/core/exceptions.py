"""
Error taxonomy shared by every app.

Each class carries the HTTP status it is reported with; the DRF exception
handler in ``apps.core.handlers`` turns them into the error envelope.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ServiceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Server Error'
    default_code = 'error'

    def __init__(self, detail=None, code=None, meta=None):
        super().__init__(detail, code)
        self.meta = meta or {}


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request'
    default_code = 'invalid'


class EmptyFileError(ValidationError):
    default_detail = 'File is empty'
    default_code = 'empty_file'


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Not authorized to access this route'
    default_code = 'unauthorized'


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Invalid or missing API key'
    default_code = 'forbidden'


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ConflictError(ServiceError):
    # Duplicates are reported as bad requests, not 409
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Duplicate value'
    default_code = 'conflict'


class InternalError(ServiceError):
    default_code = 'internal'
