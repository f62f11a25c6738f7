from django.urls import path
from .views import UploadView, RefreshView, StatsView, CollectionsView

urlpatterns = [
    path('upload', UploadView.as_view(), name='upload'),
    path('refresh', RefreshView.as_view(), name='refresh'),
    path('stats', StatsView.as_view(), name='stats'),
    path('collections', CollectionsView.as_view(), name='collections'),
]
