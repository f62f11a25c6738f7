"""
Query handlers for the shareholder dataset and uploaded collections.

Requests that do not name a collection (or name the default one) are
answered from PrescoData; any other name must belong to a collection
created by an upload.
"""
from typing import Optional, Tuple

from django.conf import settings
from django.db.models import Q

from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.utils import PLAIN_DIGITS, as_integer, parse_number
from apps.datasets import registry
from apps.datasets.models import DynamicCollection

from .models import PrescoData
from .serializers import account_card

SEARCHABLE_FIELDS = [
    'name', 'email', 'mobile_no', 'account_number', 'address',
    's_no', 'units_held', 'rights_due', 'amount',
]
NUMERIC_FIELDS = {'account_number', 's_no', 'units_held', 'rights_due', 'amount'}
INTEGER_FIELDS = {'account_number', 's_no'}
# Whole-number digits of the DECIMAL(24, 6) columns
DECIMAL_WHOLE_DIGITS = 18
TEXT_SEARCH_FIELDS = ['name', 'email', 'mobile_no']


def is_default(collection: Optional[str]) -> bool:
    return not collection or collection == settings.DEFAULT_COLLECTION


def resolve_collection(name: str) -> DynamicCollection:
    collection = registry.get_collection(name)
    if collection is None:
        raise NotFoundError(f"Collection '{name}' not found")
    return collection


def _documents(queryset):
    return [record.to_document() for record in queryset]


def _cards(queryset):
    return [account_card(record) for record in queryset]


def search(query: str, collection: Optional[str] = None) -> list:
    """
    Free-text search.

    On the default collection: substring of name, email or mobile number, or
    an exact account number when the query is a whole number. On an uploaded
    collection: substring of any field whose name contains "name".
    """
    if is_default(collection):
        condition = Q()
        for field in TEXT_SEARCH_FIELDS:
            condition |= Q(**{f'{field}__icontains': query})
        account_number = as_integer(parse_number(query))
        if account_number is not None:
            condition |= Q(account_number=account_number)
        return _cards(PrescoData.objects.filter(condition))

    dataset = resolve_collection(collection)
    records = dataset.records.field_contains(dataset.name_fields(), query).order_by('id')
    return _documents(records)


def search_by_field(field: str, value: str, collection: Optional[str] = None) -> list:
    if is_default(collection):
        if field not in SEARCHABLE_FIELDS:
            raise ValidationError(
                f"Field '{field}' is not valid. Valid fields: {', '.join(SEARCHABLE_FIELDS)}",
                meta={'allowed_fields': SEARCHABLE_FIELDS},
            )
        if field in NUMERIC_FIELDS:
            number = parse_number(value)
            if number is None:
                raise ValidationError(f"Value for '{field}' must be a number")
            if field in INTEGER_FIELDS:
                number = as_integer(number)
                if number is None:
                    return []
            elif number.adjusted() >= DECIMAL_WHOLE_DIGITS:
                return []
            return _cards(PrescoData.objects.filter(**{field: number}))
        return _cards(PrescoData.objects.filter(**{f'{field}__icontains': value}))

    dataset = resolve_collection(collection)
    if not dataset.has_field(field):
        raise ValidationError(
            f"Field '{field}' is not valid. Valid fields: {', '.join(dataset.fields)}",
            meta={'allowed_fields': dataset.fields},
        )
    records = dataset.records.field_contains([field], value).order_by('id')
    return _documents(records)


def list_all(collection: Optional[str] = None, page: Optional[int] = None,
             limit: Optional[int] = None) -> Tuple[list, dict]:
    """
    Every record of the collection, or one page of them when ``limit`` is given.

    Returns ``(records, meta)``; meta carries page, limit and total for a page.
    """
    if is_default(collection):
        queryset, serialize = PrescoData.objects.order_by('s_no'), _cards
    else:
        queryset, serialize = resolve_collection(collection).records.order_by('id'), _documents

    if not limit:
        return serialize(queryset), {}

    page = page or 1
    offset = (page - 1) * limit
    meta = {'page': page, 'limit': limit, 'total': queryset.count()}
    return serialize(queryset[offset:offset + limit]), meta


def get_by_account(account_id: str, collection: Optional[str] = None) -> dict:
    """Single record card by account number."""
    if is_default(collection):
        account_number = as_integer(parse_number(account_id))
        record = None
        if account_number is not None:
            record = PrescoData.objects.filter(account_number=account_number).order_by('s_no').first()
        if record is None:
            raise NotFoundError('Record not found')
        return account_card(record)

    dataset = resolve_collection(collection)
    if not dataset.has_field('account_number'):
        raise NotFoundError(f"Collection '{dataset.name}' has no account_number field")

    record = dataset.records.field_equals('account_number', _account_values(dataset, account_id)).order_by('id').first()
    if record is None:
        raise NotFoundError('Record not found')
    return account_card(record.data)


def _account_values(dataset: DynamicCollection, account_id: str) -> list:
    """Candidate JSON values for an account id, following the field's recorded kind."""
    kind = dataset.field_types.get('account_number')
    values = []
    if kind in ('number', 'mixed', None):
        number = parse_number(account_id)
        if number is not None:
            integer = as_integer(number)
            if integer is not None:
                values.append(integer)
            elif abs(number.adjusted()) <= PLAIN_DIGITS:
                values.append(float(number))
    if kind != 'number' or not values:
        values.append(account_id)
    return values
