import hmac

from django.conf import settings
from rest_framework import permissions

from .exceptions import ForbiddenError


class HasStaticAPIKey(permissions.BasePermission):
    """
    Gate on the shared secret carried in the X-API-Key header.

    Raises instead of returning False so the request is answered with 403
    even on views that also carry token authentication.
    """

    message = 'Invalid or missing API key'

    def has_permission(self, request, view):
        expected = settings.API_KEY
        provided = request.headers.get(settings.API_KEY_HEADER)

        if not expected or not provided:
            raise ForbiddenError(self.message)
        if not hmac.compare_digest(str(provided), str(expected)):
            raise ForbiddenError(self.message)
        return True
