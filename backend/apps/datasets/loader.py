"""
Bulk loading of parsed rows into a collection.

Rows go in batches. A batch is written in one statement; when the database
rejects it, the batch is replayed row by row so that only the offending
rows are lost.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, Type

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, models, transaction

logger = logging.getLogger(__name__)

# Errors that cost one row rather than the whole load
ROW_ERRORS = (IntegrityError, DjangoValidationError)


@dataclass
class LoadTarget:
    """Where rows of one collection are stored and how a row becomes a model instance."""
    name: str
    model: Type[models.Model]
    queryset: Callable[[], models.QuerySet]
    build: Callable[[dict], models.Model]


def clear(target: LoadTarget) -> int:
    """Delete every row of the collection, returning how many went."""
    _, per_model = target.queryset().delete()
    deleted = per_model.get(target.model._meta.label, 0)
    logger.info(f"Cleared {deleted} documents from {target.name}")
    return deleted


def _build_rows(target: LoadTarget, rows: Iterable[dict]) -> Tuple[List[Tuple[dict, models.Model]], int]:
    built, failed = [], 0
    for row in rows:
        try:
            built.append((row, target.build(row)))
        except DjangoValidationError as exc:
            failed += 1
            logger.warning(f"Skipping row for {target.name}: {'; '.join(exc.messages)}")
    return built, failed


def _insert_each(target: LoadTarget, rows: Iterable[dict]) -> Tuple[int, int]:
    inserted, failed = 0, 0
    for row in rows:
        try:
            with transaction.atomic():
                target.build(row).save(force_insert=True)
            inserted += 1
        except ROW_ERRORS as exc:
            failed += 1
            logger.warning(f"Rejected row for {target.name}: {exc}")
    return inserted, failed


def insert(target: LoadTarget, rows: Iterable[dict], batch_size: Optional[int] = None) -> int:
    """
    Insert ``rows`` in batches of ``batch_size`` (BULK_INSERT_BATCH_SIZE by default).

    Returns the number of rows written. Rows that fail validation or violate
    a constraint are skipped; the rest of their batch is still written.
    Any other database error aborts the load.
    """
    batch_size = batch_size or settings.BULK_INSERT_BATCH_SIZE
    if batch_size < 1:
        raise ValueError('batch_size must be positive')

    rows = list(rows)
    total_inserted, total_failed = 0, 0

    for batch_number, start in enumerate(range(0, len(rows), batch_size), start=1):
        built, failed = _build_rows(target, rows[start:start + batch_size])
        total_failed += failed
        if not built:
            continue

        try:
            with transaction.atomic():
                target.model.objects.bulk_create([instance for _, instance in built])
            inserted = len(built)
        except IntegrityError as exc:
            logger.warning(f"Batch {batch_number} for {target.name} rejected ({exc}); retrying row by row")
            inserted, failed = _insert_each(target, [row for row, _ in built])
            total_failed += failed

        total_inserted += inserted
        logger.info(f"Batch {batch_number}: inserted {inserted} documents into {target.name}")

    if total_failed:
        logger.warning(f"{total_failed} rows of {target.name} could not be inserted")
    logger.info(f"Inserted {total_inserted} of {len(rows)} rows into {target.name}")
    return total_inserted
