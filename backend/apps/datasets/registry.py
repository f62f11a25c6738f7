"""
Registry of dynamic collections.

A collection is defined by the first sheet uploaded under its name. The
definition records the field order, the fields worth text-indexing and,
after every load, the kind of value each field holds.
"""
import logging
import re
from typing import Iterable, List, Optional, Sequence

from django.db import connection

from .models import DynamicCollection, DynamicRecord

logger = logging.getLogger(__name__)

# Header fragments that mark a field for the text index
TEXT_FIELD_MARKERS = ('name', 'email', 'phone')

SAFE_IDENTIFIER = re.compile(r'^[a-z0-9_]+$')


def text_fields_for(fields: Iterable[str]) -> List[str]:
    return [field for field in fields if any(marker in field.lower() for marker in TEXT_FIELD_MARKERS)]


def get_collection(name: str) -> Optional[DynamicCollection]:
    return DynamicCollection.objects.filter(name=name).first()


def get_or_create_collection(name: str, fields: Sequence[str]) -> DynamicCollection:
    """
    Return the collection called ``name``, defining it from ``fields`` if new.

    Concurrent first uploads resolve to the same row: the unique name makes
    the loser of the race fetch the winner's definition.
    """
    collection, created = DynamicCollection.objects.get_or_create(
        name=name,
        defaults={
            'fields': list(fields),
            'text_fields': text_fields_for(fields),
        },
    )
    if created:
        logger.info(f"Defined collection {name} with {len(collection.fields)} fields")
        ensure_search_index(collection)
    elif list(fields) != collection.fields:
        logger.info(f"Collection {name} keeps its original fields; upload headers differ")
    return collection


def ensure_search_index(collection: DynamicCollection) -> None:
    """
    Build a full-text index over the collection's text fields.

    PostgreSQL only; other backends fall back to plain scans.
    """
    if connection.vendor != 'postgresql':
        return
    fields = [field for field in collection.text_fields if SAFE_IDENTIFIER.match(field)]
    if not fields:
        return

    document = " || ' ' || ".join(f"coalesce(data->>'{field}', '')" for field in fields)
    index_name = f"datasets_text_{int(collection.pk)}"
    table = DynamicRecord._meta.db_table
    with connection.cursor() as cursor:
        cursor.execute(
            f"CREATE INDEX IF NOT EXISTS {index_name} ON {table} "
            f"USING gin (to_tsvector('simple', {document})) "
            f"WHERE collection_id = {int(collection.pk)}"
        )
    logger.info(f"Text index {index_name} ready for {collection.name}")


def drop_search_index(collection: DynamicCollection) -> None:
    if connection.vendor != 'postgresql':
        return
    with connection.cursor() as cursor:
        cursor.execute(f"DROP INDEX IF EXISTS datasets_text_{int(collection.pk)}")


def value_kind(value) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, (dict, list)):
        return 'nested'
    return 'string'


def infer_field_types(fields: Sequence[str], rows: Iterable[dict]) -> dict:
    """
    Kind of value seen in each field: string, number, boolean, nested,
    mixed when more than one kind appears, null when only blanks do.
    """
    seen = {field: set() for field in fields}
    for row in rows:
        for field in fields:
            kind = value_kind(row.get(field))
            if kind != 'null':
                seen[field].add(kind)

    types = {}
    for field, kinds in seen.items():
        if not kinds:
            types[field] = 'null'
        elif len(kinds) == 1:
            types[field] = kinds.pop()
        else:
            types[field] = 'mixed'
    return types


def record_field_types(collection: DynamicCollection, rows: Sequence[dict]) -> dict:
    collection.field_types = infer_field_types(collection.fields, rows)
    collection.save(update_fields=['field_types', 'updated_at'])
    return collection.field_types


def delete_collection(collection: DynamicCollection) -> int:
    """Drop a collection together with its records."""
    drop_search_index(collection)
    deleted, _ = collection.delete()
    logger.info(f"Deleted collection {collection.name}")
    return deleted
