"""
Uploads Models - provenance of every loaded collection
"""
from django.db import models
from django.utils import timezone


class UploadMetadata(models.Model):
    """
    The latest upload of a collection.

    One row per collection name; each upload overwrites it.
    """
    collection_name = models.CharField(max_length=100, unique=True)
    original_file_name = models.CharField(max_length=255)
    total_rows = models.PositiveIntegerField(default=0)
    fields = models.JSONField(default=list)
    uploaded_at = models.DateTimeField(default=timezone.now, db_index=True)
    uploaded_by = models.CharField(max_length=254, blank=True, null=True)

    class Meta:
        ordering = ['-uploaded_at']
        verbose_name_plural = 'upload metadata'

    def __str__(self):
        return f"{self.collection_name} ({self.total_rows} rows)"
