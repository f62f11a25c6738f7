import os

from django.conf import settings
from rest_framework import serializers

from .models import UploadMetadata
from .parsers import clean_header


class UploadMetadataSerializer(serializers.ModelSerializer):
    collectionName = serializers.CharField(source='collection_name')
    originalFileName = serializers.CharField(source='original_file_name')
    totalRows = serializers.IntegerField(source='total_rows')
    uploadedAt = serializers.DateTimeField(source='uploaded_at')
    uploadedBy = serializers.CharField(source='uploaded_by', allow_null=True)

    class Meta:
        model = UploadMetadata
        fields = ['collectionName', 'originalFileName', 'totalRows', 'fields', 'uploadedAt', 'uploadedBy']


class SpreadsheetUploadSerializer(serializers.Serializer):
    """Multipart body of an upload: one spreadsheet and an optional collection name."""
    file = serializers.FileField(error_messages={'required': 'Please upload a file'})
    collectionName = serializers.CharField(required=False, allow_blank=True, max_length=100)

    def validate_file(self, value):
        extension = os.path.splitext(value.name)[1].lower()
        if extension not in settings.UPLOAD_ALLOWED_EXTENSIONS:
            raise serializers.ValidationError('Only Excel files (.xlsx, .xls) are allowed')
        if value.size > settings.UPLOAD_MAX_MB * 1024 * 1024:
            raise serializers.ValidationError(f"File exceeds the {settings.UPLOAD_MAX_MB}MB limit")
        return value

    def validate_collectionName(self, value):
        value = value.strip()
        if value and not clean_header(value).strip('_'):
            raise serializers.ValidationError('Collection name must contain letters or digits')
        return value


class StatsParamSerializer(serializers.Serializer):
    collection = serializers.CharField(required=False, allow_blank=True, max_length=100)


class CollectionSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='collection_name')
    totalRows = serializers.IntegerField(source='total_rows')
    uploadedAt = serializers.DateTimeField(source='uploaded_at')

    class Meta:
        model = UploadMetadata
        fields = ['name', 'totalRows', 'fields', 'uploadedAt']
