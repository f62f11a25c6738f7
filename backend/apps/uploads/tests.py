"""
Tests for spreadsheet parsing, ingestion and the upload endpoints.

Run: python manage.py test apps.uploads --settings=presco_backend.settings_test
"""
import os
from datetime import datetime
from io import BytesIO

import pandas as pd
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from apps.core.exceptions import EmptyFileError, NotFoundError, ValidationError
from apps.datasets import registry
from apps.datasets.models import DynamicCollection, DynamicRecord
from apps.records.models import PrescoData
from apps.users.services import AuthService

from . import parsers
from .models import UploadMetadata
from .services import IngestService

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def workbook_bytes(rows, sheet_name='Sheet1', columns=None):
    buffer = BytesIO()
    frame = pd.DataFrame(rows, columns=columns)
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def write_temp(content, name='sheet.xlsx'):
    os.makedirs(settings.UPLOAD_TEMP_DIR, exist_ok=True)
    path = os.path.join(settings.UPLOAD_TEMP_DIR, name)
    with open(path, 'wb') as f:
        f.write(content)
    return path


def upload_file(rows, name='members.xlsx', **kwargs):
    return SimpleUploadedFile(name, workbook_bytes(rows, **kwargs), content_type=XLSX)


def presco_rows(count, start=1):
    return [
        {
            'S/No': i,
            'Account Number': 10000 + i,
            'Name': f'Holder {i}',
            'Address': f'{i} Broad Street',
            'Units Held': 1000,
            'Rights Due': 250,
            'Amount': 500,
            'Mobile No.': None if i % 2 else f'0803000{i:04d}',
            'Email': None,
        }
        for i in range(start, start + count)
    ]


class CleanHeaderTest(TestCase):

    def test_examples(self):
        self.assertEqual(parsers.clean_header('Mobile No.'), 'mobile_no_')
        self.assertEqual(parsers.clean_header('  Account Number '), 'account_number')
        self.assertEqual(parsers.clean_header('S/No'), 's_no')
        self.assertEqual(parsers.clean_header(2024), '2024')

    def test_cleaning_is_idempotent(self):
        for header in ['Mobile No.', 'Units (Held)', 'e-mail', 'ÄBC']:
            once = parsers.clean_header(header)
            self.assertEqual(parsers.clean_header(once), once)


class ToJsonValueTest(TestCase):

    def test_values(self):
        self.assertIsNone(parsers.to_json_value(float('nan')))
        self.assertEqual(parsers.to_json_value(12.0), 12)
        self.assertEqual(parsers.to_json_value(12.5), 12.5)
        self.assertIs(parsers.to_json_value(True), True)
        self.assertEqual(parsers.to_json_value(datetime(2024, 3, 1, 9, 30)), '2024-03-01T09:30:00')
        self.assertEqual(parsers.to_json_value('text'), 'text')


class ParserTest(TestCase):

    def test_headers_rows_and_sheet_name(self):
        path = write_temp(workbook_bytes(
            [{'Full Name': 'Ada', 'Mobile No.': '0803', 'Age': 30},
             {'Full Name': 'Bola', 'Mobile No.': None, 'Age': None}],
            sheet_name='Rights Issue 2024',
        ))
        sheet = parsers.parse(path)

        self.assertEqual(sheet.headers, ['full_name', 'mobile_no_', 'age'])
        self.assertEqual(sheet.sheet_name, 'rights_issue_2024')
        self.assertEqual(sheet.rows, [
            {'full_name': 'Ada', 'mobile_no_': '0803', 'age': 30},
            {'full_name': 'Bola', 'mobile_no_': None, 'age': None},
        ])

    def test_every_row_has_every_header(self):
        path = write_temp(workbook_bytes(
            [{'a': 1, 'b': None, 'c': None}, {'a': None, 'b': None, 'c': 'x'}],
        ))
        sheet = parsers.parse(path)
        self.assertEqual(len(sheet.rows), 2)
        for row in sheet.rows:
            self.assertEqual(list(row), ['a', 'b', 'c'])

    def test_file_removed_after_success(self):
        path = write_temp(workbook_bytes([{'a': 1}]))
        parsers.parse(path)
        self.assertFalse(os.path.exists(path))

    def test_file_removed_after_failure(self):
        path = write_temp(b'this is not a workbook')
        with self.assertRaises(ValidationError):
            parsers.parse(path)
        self.assertFalse(os.path.exists(path))

    def test_missing_file(self):
        with self.assertRaises(NotFoundError):
            parsers.parse(os.path.join(settings.UPLOAD_TEMP_DIR, 'missing.xlsx'))

    def test_zero_byte_file(self):
        path = write_temp(b'')
        with self.assertRaises(EmptyFileError):
            parsers.parse(path)
        self.assertFalse(os.path.exists(path))

    def test_header_only_sheet(self):
        path = write_temp(workbook_bytes([], columns=['Name', 'Email']))
        with self.assertRaises(EmptyFileError):
            parsers.parse(path)


class IngestServiceTest(TestCase):

    def test_dynamic_upload_defines_collection_and_metadata(self):
        result = IngestService.ingest(
            upload_file([{'First Name': 'Ada', 'Phone': '0803'}, {'First Name': 'Bola', 'Phone': None}]),
            collection_name='members',
            uploaded_by='clerk@presco.test',
        )
        self.assertEqual(result['collectionName'], 'members')
        self.assertEqual(result['totalRows'], 2)
        self.assertEqual(result['fields'], ['first_name', 'phone'])

        collection = DynamicCollection.objects.get(name='members')
        self.assertEqual(collection.text_fields, ['first_name', 'phone'])
        self.assertEqual(collection.field_types, {'first_name': 'string', 'phone': 'string'})

        metadata = UploadMetadata.objects.get(collection_name='members')
        self.assertEqual(metadata.original_file_name, 'members.xlsx')
        self.assertEqual(metadata.uploaded_by, 'clerk@presco.test')
        self.assertFalse(os.listdir(settings.UPLOAD_TEMP_DIR))

    def test_sheet_name_is_the_fallback_collection_name(self):
        result = IngestService.ingest(upload_file([{'x': 1}], sheet_name='Bonus List'))
        self.assertEqual(result['collectionName'], 'bonus_list')

    def test_reupload_replaces_rows_and_keeps_first_shape(self):
        IngestService.ingest(upload_file([{'Name': 'a'}, {'Name': 'b'}, {'Name': 'c'}]), collection_name='club')
        result = IngestService.ingest(
            upload_file([{'Name': 'd', 'City': 'Abuja'}]), collection_name='club',
        )

        collection = DynamicCollection.objects.get(name='club')
        self.assertEqual(collection.fields, ['name'])
        self.assertEqual(list(collection.records.values_list('data', flat=True)), [{'name': 'd', 'city': 'Abuja'}])
        self.assertEqual(result['fields'], ['name', 'city'])
        self.assertEqual(UploadMetadata.objects.filter(collection_name='club').count(), 1)
        self.assertEqual(UploadMetadata.objects.get(collection_name='club').total_rows, 1)

    def test_default_collection_loads_fixed_store(self):
        rows = presco_rows(4)
        rows[2]['Amount'] = 'unknown'
        result = IngestService.ingest(upload_file(rows), collection_name='prescodatas')

        self.assertEqual(result['totalRows'], 3)
        self.assertEqual(PrescoData.objects.count(), 3)
        self.assertFalse(DynamicCollection.objects.filter(name='prescodatas').exists())
        self.assertEqual(PrescoData.objects.get(s_no=2).mobile_no, '08030000002')

    def test_deleting_a_collection_drops_its_metadata(self):
        IngestService.ingest(upload_file([{'Name': 'a'}]), collection_name='gone')
        IngestService.ingest(upload_file([{'Name': 'b'}]), collection_name='kept')

        registry.delete_collection(DynamicCollection.objects.get(name='gone'))

        self.assertEqual(
            list(IngestService.collections().values_list('collection_name', flat=True)), ['kept'],
        )

    def test_stats(self):
        IngestService.ingest(upload_file([{'a': 1}]), collection_name='first')
        IngestService.ingest(upload_file([{'a': 1}]), collection_name='second')
        self.assertEqual(IngestService.stats().collection_name, 'second')
        self.assertEqual(IngestService.stats('first').collection_name, 'first')
        with self.assertRaises(NotFoundError):
            IngestService.stats('third')


class UploadEndpointTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        User = get_user_model()
        self.user = User.objects.create_user(
            username='clerk@presco.test', email='clerk@presco.test', password='s3cret-pass'
        )
        self.token = AuthService.issue_token(self.user)

    def post(self, url, data, key='test-api-key', token=True):
        headers = {}
        if key:
            headers['HTTP_X_API_KEY'] = key
        if token:
            headers['HTTP_AUTHORIZATION'] = f'Bearer {self.token}'
        return self.client.post(url, data, format='multipart', **headers)

    def test_upload(self):
        response = self.post('/api/upload', {'file': upload_file([{'Name': 'Ada'}]), 'collectionName': 'people'})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['collectionName'], 'people')
        self.assertEqual(body['data']['totalRows'], 1)
        self.assertEqual(DynamicRecord.objects.count(), 1)
        self.assertEqual(UploadMetadata.objects.get().uploaded_by, 'clerk@presco.test')

    def test_refresh_is_the_same_operation(self):
        response = self.post('/api/refresh', {'file': upload_file([{'Name': 'Ada'}]), 'collectionName': 'people'})
        self.assertEqual(response.status_code, 200)

    def test_key_is_checked_before_token(self):
        response = self.post('/api/upload', {'file': upload_file([{'Name': 'Ada'}])}, key=None, token=False)
        self.assertEqual(response.status_code, 403)

    def test_token_required(self):
        response = self.post('/api/upload', {'file': upload_file([{'Name': 'Ada'}])}, token=False)
        self.assertEqual(response.status_code, 401)

    def test_wrong_extension(self):
        bogus = SimpleUploadedFile('data.csv', b'a,b\n1,2\n', content_type='text/csv')
        response = self.post('/api/upload', {'file': bogus})
        self.assertEqual(response.status_code, 400)
        self.assertIn('Only Excel files', response.json()['error'])

    def test_missing_file(self):
        response = self.post('/api/upload', {'collectionName': 'people'})
        self.assertEqual(response.status_code, 400)

    def test_stats_and_collections(self):
        self.post('/api/upload', {'file': upload_file([{'Name': 'Ada'}]), 'collectionName': 'people'})
        stats = self.client.get('/api/stats', {'collection': 'people'}, HTTP_X_API_KEY='test-api-key')
        self.assertEqual(stats.status_code, 200)
        self.assertEqual(stats.json()['data']['originalFileName'], 'members.xlsx')

        listing = self.client.get('/api/collections', HTTP_X_API_KEY='test-api-key')
        self.assertEqual(listing.json()['data'][0]['name'], 'people')
        self.assertEqual(listing.json()['meta']['count'], 1)

    def test_stats_without_uploads(self):
        response = self.client.get('/api/stats', HTTP_X_API_KEY='test-api-key')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'No upload metadata found')
