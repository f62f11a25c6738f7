from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from apps.core.responses import api_response
from apps.core.views import KeyGatedAPIView

from . import queries
from .serializers import (
    CollectionParamSerializer,
    FieldSearchParamSerializer,
    ListParamSerializer,
    SearchParamSerializer,
)


def _params(serializer_class, request):
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class SearchView(KeyGatedAPIView):
    """GET /api/search?query=&collection="""

    def get(self, request):
        params = _params(SearchParamSerializer, request)
        results = queries.search(params['query'], params.get('collection'))
        return api_response(results)


class FieldSearchView(KeyGatedAPIView):
    """GET /api/search/<field>?value=&collection="""

    def get(self, request, field):
        params = _params(FieldSearchParamSerializer, request)
        results = queries.search_by_field(field, params['value'], params.get('collection'))
        return api_response(results)


class DataView(KeyGatedAPIView):
    """GET /api/data?collection=&page=&limit="""

    def get(self, request):
        params = _params(ListParamSerializer, request)
        results, meta = queries.list_all(params.get('collection'), params.get('page'), params.get('limit'))
        return api_response(results, meta=meta)


class AccountLookupView(APIView):
    """
    GET /api/fetch-with-account/<id>?collection=

    Public on purpose: shareholders look up their own line without a key.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, account_id):
        params = _params(CollectionParamSerializer, request)
        return api_response(queries.get_by_account(account_id, params.get('collection')))
