"""
Dataset Models - collections whose shape comes from an uploaded sheet
"""
from django.db import models
from django.db.models import Q
from django.db.models.fields.json import KeyTextTransform, KeyTransform


class DynamicRecordQuerySet(models.QuerySet):
    """
    Lookups on keys inside ``data``.

    Keys are addressed with explicit transforms because cleaned headers may
    contain double underscores, which the ``data__key`` syntax would split.
    """

    def field_contains(self, fields, text):
        """Rows where any of ``fields`` contains ``text`` (case-insensitive)."""
        if not fields:
            return self.none()
        aliases = {f'key_text_{i}': KeyTextTransform(field, 'data') for i, field in enumerate(fields)}
        condition = Q()
        for alias in aliases:
            condition |= Q(**{f'{alias}__icontains': text})
        return self.alias(**aliases).filter(condition)

    def field_equals(self, field, values):
        """Rows where ``field`` holds one of ``values`` exactly (JSON equality)."""
        condition = Q()
        for value in values:
            condition |= Q(key_value=value)
        return self.alias(key_value=KeyTransform(field, 'data')).filter(condition)


class DynamicCollection(models.Model):
    """
    A named collection created on first upload.

    ``fields`` keeps the header order of that first upload; later uploads
    replace the records but never the definition.
    """
    name = models.CharField(max_length=100, unique=True)
    fields = models.JSONField(default=list)
    text_fields = models.JSONField(default=list, blank=True)
    field_types = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def has_field(self, field):
        return field in self.fields

    def name_fields(self):
        """Fields matched by free-text search."""
        return [field for field in self.fields if 'name' in field.lower()]

    def as_target(self):
        from .loader import LoadTarget

        return LoadTarget(
            name=self.name,
            model=DynamicRecord,
            queryset=lambda: DynamicRecord.objects.filter(collection=self),
            build=lambda row: DynamicRecord(collection=self, data=dict(row)),
        )


class DynamicRecord(models.Model):
    """
    A row of a dynamic collection.
    Data is stored as JSON keyed by cleaned header.
    """
    collection = models.ForeignKey(DynamicCollection, on_delete=models.CASCADE, related_name='records')
    data = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = DynamicRecordQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['collection', 'created_at'], name='dataset_rec_coll_created_idx'),
        ]

    def __str__(self):
        return f"{self.collection.name}/{self.pk}"

    def to_document(self):
        return {
            '_id': str(self.pk),
            **self.data,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
