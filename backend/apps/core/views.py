from django.http import JsonResponse
from rest_framework.views import APIView

from .permissions import HasStaticAPIKey


def not_found(request, exception=None):
    return JsonResponse({'success': False, 'error': f"Route {request.path} not found"}, status=404)


def server_error(request):
    return JsonResponse({'success': False, 'error': 'Server Error'}, status=500)


class KeyGatedAPIView(APIView):
    """
    Base view for endpoints behind the static key.

    Authentication is resolved lazily, so permission classes run in the
    order they are declared: the key is checked before any bearer token.
    """

    permission_classes = [HasStaticAPIKey]

    def perform_authentication(self, request):
        pass
