from django.urls import path
from .views import SearchView, FieldSearchView, DataView, AccountLookupView

urlpatterns = [
    path('search', SearchView.as_view(), name='search'),
    path('search/<str:field>', FieldSearchView.as_view(), name='search_by_field'),
    path('data', DataView.as_view(), name='data'),
    path('fetch-with-account/<str:account_id>', AccountLookupView.as_view(), name='fetch_with_account'),
]
