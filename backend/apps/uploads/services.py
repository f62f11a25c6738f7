"""
Ingestion service: stores an uploaded spreadsheet, parses it and replaces
the target collection's rows.
"""
import logging
import os
import secrets
import time
from typing import Optional

from django.conf import settings
from django.utils import timezone

from apps.core.exceptions import NotFoundError
from apps.datasets import loader, registry
from apps.records.models import PrescoData

from . import parsers
from .models import UploadMetadata

logger = logging.getLogger(__name__)


def store_upload(uploaded_file) -> str:
    """
    Write an uploaded file to the temp upload directory.

    Names are ``file-<millis>-<random><ext>`` so concurrent uploads of the
    same file never collide.
    """
    directory = str(settings.UPLOAD_TEMP_DIR)
    os.makedirs(directory, exist_ok=True)

    extension = os.path.splitext(uploaded_file.name)[1].lower()
    name = f"file-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{extension}"
    path = os.path.join(directory, name)

    with open(path, 'wb') as f:
        for chunk in uploaded_file.chunks():
            f.write(chunk)
    return path


def target_for(collection_name: str, headers):
    """Load target for a collection name: the fixed store or a dynamic collection."""
    if collection_name == settings.DEFAULT_COLLECTION:
        return PrescoData.as_target(), None
    collection = registry.get_or_create_collection(collection_name, headers)
    return collection.as_target(), collection


class IngestService:
    """Replace a collection's contents with the rows of an uploaded spreadsheet."""

    @staticmethod
    def ingest(uploaded_file, collection_name: Optional[str] = None, uploaded_by: Optional[str] = None) -> dict:
        path = store_upload(uploaded_file)
        logger.info(f"Processing {uploaded_file.name} ({uploaded_file.size} bytes)")

        sheet = parsers.parse(path)
        name = (collection_name or '').strip() or sheet.sheet_name

        target, collection = target_for(name, sheet.headers)
        cleared = loader.clear(target)
        inserted = loader.insert(target, sheet.rows)
        if collection is not None:
            registry.record_field_types(collection, sheet.rows)

        uploaded_at = timezone.now()
        UploadMetadata.objects.update_or_create(
            collection_name=name,
            defaults={
                'original_file_name': uploaded_file.name[:255],
                'total_rows': inserted,
                'fields': sheet.headers,
                'uploaded_at': uploaded_at,
                'uploaded_by': uploaded_by,
            },
        )
        logger.info(f"Collection {name}: replaced {cleared} rows with {inserted}")

        return {
            'collectionName': name,
            'totalRows': inserted,
            'fields': sheet.headers,
            'uploadedAt': uploaded_at.isoformat(),
        }

    @staticmethod
    def stats(collection_name: Optional[str] = None) -> UploadMetadata:
        """Metadata of the named collection, or of the latest upload."""
        queryset = UploadMetadata.objects.all()
        if collection_name:
            metadata = queryset.filter(collection_name=collection_name).first()
        else:
            metadata = queryset.order_by('-uploaded_at').first()
        if metadata is None:
            raise NotFoundError('No upload metadata found')
        return metadata

    @staticmethod
    def collections():
        return UploadMetadata.objects.order_by('-uploaded_at')
