from collections.abc import Mapping

from rest_framework import serializers

from apps.core.utils import format_number


def _reader(record):
    if isinstance(record, Mapping):
        return record.get
    return lambda attr: getattr(record, attr, None)


def account_card(record):
    """
    Public view of one shareholder line.

    Accepts a PrescoData instance or a dynamic record's data dict; numbers
    are rendered as plain strings.
    """
    read = _reader(record)
    return {
        'id': read('s_no'),
        'accountNumber': format_number(read('account_number')),
        'names': read('name'),
        'address': read('address'),
        'unitsHeld': format_number(read('units_held')),
        'rightDue': format_number(read('rights_due')),
        'amountPayable': format_number(read('amount')),
        'mobile': read('mobile_no') or None,
        'emailAddress': read('email') or None,
    }


class CollectionParamSerializer(serializers.Serializer):
    collection = serializers.CharField(required=False, allow_blank=True, max_length=100, trim_whitespace=True)


class SearchParamSerializer(CollectionParamSerializer):
    query = serializers.CharField(
        trim_whitespace=True,
        error_messages={'required': 'Query parameter is required', 'blank': 'Query parameter is required'},
    )


class FieldSearchParamSerializer(CollectionParamSerializer):
    value = serializers.CharField(
        trim_whitespace=True,
        error_messages={'required': 'Value query parameter is required', 'blank': 'Value query parameter is required'},
    )


class ListParamSerializer(CollectionParamSerializer):
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000)
