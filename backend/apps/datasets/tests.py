"""
Tests for the dynamic collection registry and the bulk loader.

Run: python manage.py test apps.datasets --settings=presco_backend.settings_test
"""
from unittest.mock import patch

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.test import TestCase

from . import loader, registry
from .models import DynamicCollection, DynamicRecord


class TextFieldsTest(TestCase):

    def test_markers(self):
        fields = ['s_no', 'first_name', 'email_address', 'phone_1', 'address', 'surname']
        self.assertEqual(
            registry.text_fields_for(fields),
            ['first_name', 'email_address', 'phone_1', 'surname'],
        )


class RegistryTest(TestCase):

    def test_first_upload_defines_the_collection(self):
        collection = registry.get_or_create_collection('members', ['name', 'age', 'email'])
        self.assertEqual(collection.fields, ['name', 'age', 'email'])
        self.assertEqual(collection.text_fields, ['name', 'email'])
        self.assertEqual(registry.get_collection('members').pk, collection.pk)

    def test_later_headers_do_not_change_the_definition(self):
        registry.get_or_create_collection('members', ['name', 'age'])
        again = registry.get_or_create_collection('members', ['name', 'age', 'city'])
        self.assertEqual(again.fields, ['name', 'age'])
        self.assertEqual(DynamicCollection.objects.filter(name='members').count(), 1)

    def test_unknown_collection(self):
        self.assertIsNone(registry.get_collection('nothing_here'))

    def test_field_types(self):
        collection = registry.get_or_create_collection('mixed', ['a', 'b', 'c', 'd', 'e'])
        rows = [
            {'a': 'x', 'b': 1, 'c': None, 'd': True, 'e': 1},
            {'a': 'y', 'b': 2.5, 'c': None, 'd': False, 'e': 'one'},
        ]
        types = registry.record_field_types(collection, rows)
        self.assertEqual(types, {'a': 'string', 'b': 'number', 'c': 'null', 'd': 'boolean', 'e': 'mixed'})
        collection.refresh_from_db()
        self.assertEqual(collection.field_types['e'], 'mixed')

    def test_delete_collection_removes_records(self):
        collection = registry.get_or_create_collection('gone', ['name'])
        DynamicRecord.objects.create(collection=collection, data={'name': 'a'})
        registry.delete_collection(collection)
        self.assertFalse(DynamicRecord.objects.exists())
        self.assertIsNone(registry.get_collection('gone'))


class RecordLookupTest(TestCase):

    def setUp(self):
        self.collection = registry.get_or_create_collection(
            'people', ['full_name', 'unnamed__3', 'account_number']
        )
        DynamicRecord.objects.create(
            collection=self.collection,
            data={'full_name': 'Ada Obi', 'unnamed__3': 'Lagos', 'account_number': 12596},
        )
        DynamicRecord.objects.create(
            collection=self.collection,
            data={'full_name': 'Musa Bello', 'unnamed__3': 'Kano', 'account_number': '777'},
        )

    def test_contains_is_case_insensitive(self):
        found = DynamicRecord.objects.filter(collection=self.collection).field_contains(['full_name'], 'ada')
        self.assertEqual([record.data['full_name'] for record in found], ['Ada Obi'])

    def test_keys_with_double_underscores(self):
        found = DynamicRecord.objects.field_contains(['unnamed__3'], 'kano')
        self.assertEqual(found.count(), 1)

    def test_contains_without_fields_matches_nothing(self):
        self.assertEqual(DynamicRecord.objects.field_contains([], 'ada').count(), 0)

    def test_equality_respects_json_type(self):
        self.assertEqual(DynamicRecord.objects.field_equals('account_number', [12596]).count(), 1)
        self.assertEqual(DynamicRecord.objects.field_equals('account_number', ['12596']).count(), 0)
        self.assertEqual(DynamicRecord.objects.field_equals('account_number', [777, '777']).count(), 1)


class LoaderTest(TestCase):

    def setUp(self):
        self.collection = registry.get_or_create_collection('ledger', ['name', 'amount'])
        self.target = self.collection.as_target()

    def rows(self, count):
        return [{'name': f'holder {i}', 'amount': i} for i in range(count)]

    def test_insert_counts_every_row(self):
        inserted = loader.insert(self.target, self.rows(25), batch_size=10)
        self.assertEqual(inserted, 25)
        self.assertEqual(self.collection.records.count(), 25)

    def test_rows_are_written_in_batches(self):
        with patch.object(DynamicRecord.objects, 'bulk_create', wraps=DynamicRecord.objects.bulk_create) as bulk:
            loader.insert(self.target, self.rows(25), batch_size=10)
        self.assertEqual([len(call.args[0]) for call in bulk.call_args_list], [10, 10, 5])

    def test_default_batch_size_comes_from_settings(self):
        with self.settings(BULK_INSERT_BATCH_SIZE=4):
            with patch.object(DynamicRecord.objects, 'bulk_create', wraps=DynamicRecord.objects.bulk_create) as bulk:
                loader.insert(self.target, self.rows(9))
        self.assertEqual(bulk.call_count, 3)

    def test_invalid_rows_are_skipped(self):
        build = self.target.build

        def strict_build(row):
            if row['amount'] == 3:
                raise DjangoValidationError('amount 3 is not allowed')
            return build(row)

        self.target.build = strict_build
        self.assertEqual(loader.insert(self.target, self.rows(5), batch_size=2), 4)

    def test_other_database_errors_abort_but_keep_earlier_batches(self):
        real_bulk_create = DynamicRecord.objects.bulk_create
        calls = []

        def fail_on_second_batch(objs, *args, **kwargs):
            calls.append(len(objs))
            if len(calls) == 2:
                raise DatabaseError('disk full')
            return real_bulk_create(objs, *args, **kwargs)

        with patch.object(DynamicRecord.objects, 'bulk_create', side_effect=fail_on_second_batch):
            with self.assertRaises(DatabaseError):
                loader.insert(self.target, self.rows(25), batch_size=10)

        self.assertEqual(calls, [10, 10])
        self.assertEqual(self.collection.records.count(), 10)

    def test_empty_input(self):
        self.assertEqual(loader.insert(self.target, []), 0)

    def test_bad_batch_size(self):
        with self.assertRaises(ValueError):
            loader.insert(self.target, self.rows(1), batch_size=-1)

    def test_clear_only_touches_its_collection(self):
        other = registry.get_or_create_collection('other', ['name']).as_target()
        loader.insert(self.target, self.rows(3))
        loader.insert(other, [{'name': 'keep me'}])

        self.assertEqual(loader.clear(self.target), 3)
        self.assertEqual(self.collection.records.count(), 0)
        self.assertEqual(DynamicRecord.objects.count(), 1)
        self.assertEqual(loader.clear(self.target), 0)
