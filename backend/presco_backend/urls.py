"""
URL configuration for presco_backend project.
"""
from django.contrib import admin
from django.urls import path, re_path, include
from django.http import JsonResponse
from django.utils import timezone

from apps.core.views import not_found


def health_check(request):
    """Health check endpoint for the load balancer"""
    return JsonResponse({'status': 'OK', 'timestamp': timezone.now().isoformat()})


urlpatterns = [
    path('health', health_check, name='health_check'),
    path('admin/', admin.site.urls),
    path('api/auth/', include('apps.users.urls')),  # Login, registration
    path('api/', include('apps.uploads.urls')),  # Upload, refresh, stats, collections
    path('api/', include('apps.records.urls')),  # Search, listing, account lookup
    re_path(r'^api/', not_found, name='api_not_found'),  # Unknown API routes
]

handler404 = 'apps.core.views.not_found'
handler500 = 'apps.core.views.server_error'
