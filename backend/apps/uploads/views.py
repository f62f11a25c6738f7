from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated

from apps.core.permissions import HasStaticAPIKey
from apps.core.responses import api_response
from apps.core.views import KeyGatedAPIView

from .serializers import (
    CollectionSummarySerializer,
    SpreadsheetUploadSerializer,
    StatsParamSerializer,
    UploadMetadataSerializer,
)
from .services import IngestService


class UploadView(KeyGatedAPIView):
    """
    POST /api/upload

    Multipart ``file`` plus optional ``collectionName``. Requires the static
    key and a bearer token.
    """
    permission_classes = [HasStaticAPIKey, IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        serializer = SpreadsheetUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = IngestService.ingest(
            serializer.validated_data['file'],
            collection_name=serializer.validated_data.get('collectionName'),
            uploaded_by=request.auth.get('email'),
        )
        return api_response(result, message='File uploaded and processed successfully')


class RefreshView(UploadView):
    """POST /api/refresh - same as upload."""


class StatsView(KeyGatedAPIView):
    """GET /api/stats?collection="""

    def get(self, request):
        serializer = StatsParamSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        metadata = IngestService.stats(serializer.validated_data.get('collection'))
        return api_response(UploadMetadataSerializer(metadata).data)


class CollectionsView(KeyGatedAPIView):
    """GET /api/collections"""

    def get(self, request):
        collections = CollectionSummarySerializer(IngestService.collections(), many=True).data
        return api_response(collections)
