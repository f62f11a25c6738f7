"""
Tests for the response envelope, the error handler and the static key gate.

Run: python manage.py test apps.core --settings=presco_backend.settings_test
"""
from decimal import Decimal
from unittest.mock import MagicMock

from django.db import IntegrityError
from django.test import RequestFactory, TestCase, override_settings
from rest_framework import exceptions as drf_exceptions

from .exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError, UnauthorizedError, ValidationError
from .handlers import api_exception_handler, flatten_detail, to_service_error
from .permissions import HasStaticAPIKey
from .responses import api_response
from .utils import as_integer, format_number, parse_number


class NumberHelpersTest(TestCase):

    def test_parse_number(self):
        self.assertEqual(parse_number(' 12596 '), Decimal('12596'))
        self.assertEqual(parse_number(2.5), Decimal('2.5'))
        for value in (None, '', 'abc', 'NaN', 'Infinity', True, float('inf')):
            self.assertIsNone(parse_number(value), value)

    def test_as_integer(self):
        self.assertEqual(as_integer(Decimal('500.000')), 500)
        self.assertIsNone(as_integer(Decimal('1.5')))
        self.assertIsNone(as_integer(Decimal(2 ** 64)))

    def test_format_number(self):
        self.assertEqual(format_number(Decimal('500.000000')), '500')
        self.assertEqual(format_number(Decimal('1500.250000')), '1500.25')
        self.assertEqual(format_number(12596), '12596')
        self.assertEqual(format_number(0.5), '0.5')
        self.assertIsNone(format_number(None))

    def test_huge_exponents_stay_cheap(self):
        self.assertIsNone(as_integer(parse_number('1e999999999')))
        self.assertIsNone(as_integer(parse_number('-1e10000000')))
        self.assertIsNone(as_integer(Decimal('9223372036854775808')))
        self.assertEqual(as_integer(Decimal('9223372036854775807')), 2 ** 63 - 1)
        self.assertEqual(format_number('1e999999999'), '1e999999999')
        self.assertEqual(format_number(Decimal('1e-999999999')), '1E-999999999')


class ResponseEnvelopeTest(TestCase):

    def test_list_payload_gets_count(self):
        response = api_response([1, 2, 3])
        self.assertEqual(response.data, {'success': True, 'data': [1, 2, 3], 'meta': {'count': 3}})

    def test_object_payload_has_no_meta(self):
        response = api_response({'a': 1}, status_code=201)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data, {'success': True, 'data': {'a': 1}})


class ErrorMappingTest(TestCase):

    def test_framework_exceptions(self):
        self.assertIsInstance(to_service_error(drf_exceptions.NotAuthenticated()), UnauthorizedError)
        self.assertIsInstance(to_service_error(drf_exceptions.AuthenticationFailed()), UnauthorizedError)
        self.assertIsInstance(to_service_error(drf_exceptions.ValidationError({'q': ['bad']})), ValidationError)
        self.assertIsInstance(to_service_error(drf_exceptions.NotFound()), NotFoundError)
        self.assertIsInstance(to_service_error(IntegrityError('duplicate key')), ConflictError)
        self.assertIsInstance(to_service_error(RuntimeError('boom')), InternalError)

    def test_flatten_detail(self):
        self.assertEqual(flatten_detail({'query': ['Query parameter is required']}), 'query: Query parameter is required')
        self.assertEqual(flatten_detail({'non_field_errors': ['Nope']}), 'Nope')

    def test_handler_envelope(self):
        response = api_exception_handler(NotFoundError('Record not found'), {'request': None})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data, {'success': False, 'error': 'Record not found'})

    def test_meta_is_kept(self):
        error = ValidationError('bad field', meta={'allowed_fields': ['name']})
        response = api_exception_handler(error, {'request': None})
        self.assertEqual(response.data['meta'], {'allowed_fields': ['name']})

    @override_settings(DEBUG=True)
    def test_stack_only_in_debug(self):
        try:
            raise RuntimeError('boom')
        except RuntimeError as exc:
            response = api_exception_handler(exc, {'request': None})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['error'], 'Server Error')
        self.assertIn('RuntimeError', response.data['meta']['stack'])


class StaticKeyTest(TestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.permission = HasStaticAPIKey()

    def check(self, **headers):
        request = MagicMock(headers=self.factory.get('/', **headers).headers)
        return self.permission.has_permission(request, None)

    def test_correct_key(self):
        self.assertTrue(self.check(HTTP_X_API_KEY='test-api-key'))

    def test_wrong_or_missing_key(self):
        with self.assertRaises(ForbiddenError):
            self.check(HTTP_X_API_KEY='nope')
        with self.assertRaises(ForbiddenError):
            self.check()

    @override_settings(API_KEY='')
    def test_unconfigured_key_rejects_everything(self):
        with self.assertRaises(ForbiddenError):
            self.check(HTTP_X_API_KEY='')


class RoutesTest(TestCase):

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'OK')
        self.assertIn('timestamp', response.json())

    def test_unknown_route(self):
        response = self.client.get('/api/nowhere')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'success': False, 'error': 'Route /api/nowhere not found'})

    @override_settings(DEBUG=True)
    def test_unknown_api_route_is_json_in_debug(self):
        response = self.client.get('/api/search/name/extra')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response['Content-Type'], 'application/json')
        self.assertFalse(response.json()['success'])
