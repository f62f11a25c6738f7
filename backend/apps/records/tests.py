"""
Tests for the shareholder dataset: row coercion, query handlers and the
key-gated endpoints.

Run: python manage.py test apps.records --settings=presco_backend.settings_test
"""
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from apps.core.exceptions import NotFoundError, ValidationError
from apps.datasets import loader, registry
from apps.datasets.models import DynamicRecord

from . import queries
from .models import PrescoData
from .serializers import account_card

API_KEY = {'HTTP_X_API_KEY': 'test-api-key'}


def make_row(s_no, **overrides):
    row = {
        's_no': s_no,
        'account_number': 10000 + s_no,
        'name': f'Holder {s_no}',
        'address': f'{s_no} Marina Road, Lagos',
        'units_held': 1000,
        'rights_due': 250,
        'amount': 500,
        'mobile_no_': None,
        'email': None,
    }
    row.update(overrides)
    return row


def create_record(s_no, **overrides):
    record = PrescoData.from_row(make_row(s_no, **overrides))
    record.save()
    return record


class FromRowTest(TestCase):

    def test_trailing_underscores_match_fields(self):
        record = PrescoData.from_row(make_row(1, mobile_no_=8055671310, email='a@b.com'))
        self.assertEqual(record.mobile_no, '8055671310')
        self.assertEqual(record.email, 'a@b.com')

    def test_numbers_are_coerced(self):
        record = PrescoData.from_row(make_row(2, account_number='12596', units_held='1234.5', amount=0.1 + 0.2))
        self.assertEqual(record.account_number, 12596)
        self.assertEqual(record.units_held, Decimal('1234.500000'))
        self.assertEqual(record.amount, Decimal('0.300000'))

    def test_missing_required_cell(self):
        with self.assertRaises(DjangoValidationError) as ctx:
            PrescoData.from_row(make_row(3, name=None, account_number='n/a'))
        self.assertIn('name', ctx.exception.message_dict)
        self.assertIn('account_number', ctx.exception.message_dict)

    def test_blank_optional_cells_become_null(self):
        record = PrescoData.from_row(make_row(4, mobile_no_='  ', email=''))
        self.assertIsNone(record.mobile_no)
        self.assertIsNone(record.email)

    def test_huge_exponent_cells_are_rejected(self):
        with self.assertRaises(DjangoValidationError) as ctx:
            PrescoData.from_row(make_row(5, account_number='1e999999999', amount='1e999999999'))
        self.assertIn('account_number', ctx.exception.message_dict)
        self.assertIn('amount', ctx.exception.message_dict)


class BulkLoadTest(TestCase):

    def test_duplicate_in_second_batch_costs_one_row(self):
        rows = [make_row(i) for i in range(1, 2501)]
        rows[1500]['s_no'] = 42

        inserted = loader.insert(PrescoData.as_target(), rows, batch_size=1000)

        self.assertEqual(inserted, 2499)
        self.assertEqual(PrescoData.objects.count(), 2499)

    def test_uncoercible_rows_are_counted_as_failures(self):
        rows = [make_row(1), make_row(2, amount='lots'), make_row(3)]
        self.assertEqual(loader.insert(PrescoData.as_target(), rows), 2)

    def test_clear(self):
        loader.insert(PrescoData.as_target(), [make_row(1), make_row(2)])
        self.assertEqual(loader.clear(PrescoData.as_target()), 2)
        self.assertFalse(PrescoData.objects.exists())


class AccountCardTest(TestCase):

    def test_model_card(self):
        record = create_record(7, account_number=12596, units_held='1500.25', mobile_no_='0803', email='x@y.ng')
        self.assertEqual(account_card(record), {
            'id': 7,
            'accountNumber': '12596',
            'names': 'Holder 7',
            'address': '7 Marina Road, Lagos',
            'unitsHeld': '1500.25',
            'rightDue': '250',
            'amountPayable': '500',
            'mobile': '0803',
            'emailAddress': 'x@y.ng',
        })

    def test_dict_card_with_missing_keys(self):
        card = account_card({'s_no': 1, 'account_number': 55, 'name': 'A'})
        self.assertEqual(card['accountNumber'], '55')
        self.assertIsNone(card['unitsHeld'])
        self.assertIsNone(card['mobile'])


class DefaultCollectionQueryTest(TestCase):

    def setUp(self):
        create_record(1, account_number=12596, name='Adaeze Okafor', email='ada@example.com')
        create_record(2, account_number=20001, name='Bola Ahmed', mobile_no_='08031234567', amount='750.5')
        create_record(3, account_number=30001, name='Chinedu Eze', address='12596 Allen Avenue')

    def test_free_text_matches_name_case_insensitively(self):
        results = queries.search('ADAEZE')
        self.assertEqual([card['id'] for card in results], [1])

    def test_free_text_matches_mobile_and_email(self):
        self.assertEqual([card['id'] for card in queries.search('0803123')], [2])
        self.assertEqual([card['id'] for card in queries.search('example.com')], [1])

    def test_numeric_query_matches_account_number(self):
        results = queries.search('12596')
        self.assertEqual([card['accountNumber'] for card in results], ['12596'])

    def test_numeric_field_uses_equality(self):
        create_record(4, amount=5000)
        results = queries.search_by_field('amount', '500')
        self.assertEqual([card['id'] for card in results], [1, 3])

    def test_decimal_equality(self):
        self.assertEqual([card['id'] for card in queries.search_by_field('amount', '750.50')], [2])

    def test_text_field_uses_substring(self):
        results = queries.search_by_field('address', 'allen')
        self.assertEqual([card['id'] for card in results], [3])

    def test_invalid_field_lists_allowed_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            queries.search_by_field('password', 'x')
        self.assertIn("Field 'password' is not valid", str(ctx.exception.detail))
        self.assertEqual(ctx.exception.meta['allowed_fields'], queries.SEARCHABLE_FIELDS)

    def test_non_numeric_value_for_numeric_field(self):
        with self.assertRaises(ValidationError):
            queries.search_by_field('s_no', 'first')

    def test_fractional_account_number_matches_nothing(self):
        self.assertEqual(queries.search_by_field('account_number', '12596.5'), [])

    def test_list_all_and_pages(self):
        everything, meta = queries.list_all()
        self.assertEqual(len(everything), 3)
        self.assertEqual(meta, {})

        page, meta = queries.list_all(page=2, limit=2)
        self.assertEqual([card['id'] for card in page], [3])
        self.assertEqual(meta, {'page': 2, 'limit': 2, 'total': 3})

    def test_get_by_account(self):
        self.assertEqual(queries.get_by_account('20001')['names'], 'Bola Ahmed')

    def test_unknown_account(self):
        for account_id in ('99999', 'abc'):
            with self.assertRaises(NotFoundError) as ctx:
                queries.get_by_account(account_id)
            self.assertEqual(str(ctx.exception.detail), 'Record not found')

    def test_unknown_collection(self):
        with self.assertRaises(NotFoundError):
            queries.search('ada', collection='missing')

    def test_huge_exponent_numbers_match_nothing(self):
        huge = '1e999999999'
        self.assertEqual(queries.search(huge), [])
        self.assertEqual(queries.search_by_field('account_number', huge), [])
        self.assertEqual(queries.search_by_field('amount', huge), [])
        with self.assertRaises(NotFoundError):
            queries.get_by_account(huge)


class DynamicCollectionQueryTest(TestCase):

    def setUp(self):
        self.collection = registry.get_or_create_collection(
            'bonus_2024', ['first_name', 'surname', 'account_number', 'city'],
        )
        rows = [
            {'first_name': 'Ngozi', 'surname': 'Obi', 'account_number': 501, 'city': 'Enugu'},
            {'first_name': 'Tunde', 'surname': 'Bakare', 'account_number': 502, 'city': 'Ibadan'},
        ]
        loader.insert(self.collection.as_target(), rows)
        registry.record_field_types(self.collection, rows)

    def test_free_text_covers_name_fields(self):
        results = queries.search('bakare', collection='bonus_2024')
        self.assertEqual([doc['first_name'] for doc in results], ['Tunde'])
        self.assertEqual(queries.search('enugu', collection='bonus_2024'), [])

    def test_field_search_on_defined_field(self):
        results = queries.search_by_field('city', 'ENU', collection='bonus_2024')
        self.assertEqual(len(results), 1)
        self.assertIn('_id', results[0])

    def test_field_search_on_undefined_field(self):
        with self.assertRaises(ValidationError):
            queries.search_by_field('salary', '1', collection='bonus_2024')

    def test_get_by_account_coerces_numbers(self):
        card = queries.get_by_account('502', collection='bonus_2024')
        self.assertEqual(card['accountNumber'], '502')

    def test_get_by_account_with_huge_exponent(self):
        with self.assertRaises(NotFoundError):
            queries.get_by_account('1e999999999', collection='bonus_2024')

    def test_get_by_account_without_the_field(self):
        registry.get_or_create_collection('plain', ['first_name'])
        with self.assertRaises(NotFoundError):
            queries.get_by_account('1', collection='plain')

    def test_list_dynamic(self):
        results, _ = queries.list_all(collection='bonus_2024')
        self.assertEqual(len(results), 2)
        self.assertEqual(DynamicRecord.objects.count(), 2)


class RecordEndpointTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        create_record(1, account_number=12596, name='Adaeze Okafor')

    def test_missing_key_is_forbidden_before_any_query(self):
        with self.assertNumQueries(0):
            response = self.client.get('/api/search', {'query': 'ada'})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {'success': False, 'error': 'Invalid or missing API key'})

    def test_wrong_key_is_forbidden(self):
        response = self.client.get('/api/data', HTTP_X_API_KEY='guess')
        self.assertEqual(response.status_code, 403)

    def test_search_envelope(self):
        response = self.client.get('/api/search', {'query': 'ada'}, **API_KEY)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['meta']['count'], 1)
        self.assertEqual(body['data'][0]['accountNumber'], '12596')

    def test_search_requires_query(self):
        response = self.client.get('/api/search', {'query': '   '}, **API_KEY)
        self.assertEqual(response.status_code, 400)
        self.assertIn('Query parameter is required', response.json()['error'])

    def test_invalid_field_is_a_bad_request(self):
        response = self.client.get('/api/search/password', {'value': 'x'}, **API_KEY)
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertIn('Valid fields', body['error'])
        self.assertIn('account_number', body['meta']['allowed_fields'])

    def test_data_rejects_bad_limit(self):
        response = self.client.get('/api/data', {'limit': 0}, **API_KEY)
        self.assertEqual(response.status_code, 400)

    def test_public_lookup_needs_no_key(self):
        response = self.client.get('/api/fetch-with-account/12596')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['names'], 'Adaeze Okafor')

    def test_public_lookup_not_found(self):
        response = self.client.get('/api/fetch-with-account/1')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Record not found')

    def test_public_lookup_with_huge_exponent(self):
        response = self.client.get('/api/fetch-with-account/1e999999999')
        self.assertEqual(response.status_code, 404)
