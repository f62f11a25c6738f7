from django.contrib import admin
from .models import UploadMetadata


@admin.register(UploadMetadata)
class UploadMetadataAdmin(admin.ModelAdmin):
    list_display = ['collection_name', 'original_file_name', 'total_rows', 'uploaded_by', 'uploaded_at']
    search_fields = ['collection_name', 'original_file_name', 'uploaded_by']
    readonly_fields = ['fields', 'uploaded_at']
