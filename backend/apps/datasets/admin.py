"""
Admin interface for dynamic collections.
"""
from django.contrib import admin

from . import registry
from .models import DynamicCollection, DynamicRecord


@admin.register(DynamicCollection)
class DynamicCollectionAdmin(admin.ModelAdmin):
    list_display = ['name', 'field_count', 'record_count', 'updated_at']
    search_fields = ['name']
    readonly_fields = ['fields', 'text_fields', 'field_types', 'created_at', 'updated_at']

    def field_count(self, obj):
        return len(obj.fields)
    field_count.short_description = 'Fields'

    def record_count(self, obj):
        return obj.records.count()
    record_count.short_description = 'Records'

    def delete_model(self, request, obj):
        registry.delete_collection(obj)

    def delete_queryset(self, request, queryset):
        for collection in queryset:
            registry.delete_collection(collection)


@admin.register(DynamicRecord)
class DynamicRecordAdmin(admin.ModelAdmin):
    list_display = ['id', 'collection', 'created_at']
    list_filter = ['collection']
    readonly_fields = ['created_at']
