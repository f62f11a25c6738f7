"""
Tests for token login, registration and the admin seed.

Run: python manage.py test apps.users --settings=presco_backend.settings_test
"""
from datetime import timedelta
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from .services import AuthService, normalize_email

User = get_user_model()


class NormalizeEmailTest(TestCase):

    def test_strips_and_lowercases(self):
        self.assertEqual(normalize_email('  Someone@Example.COM '), 'someone@example.com')

    def test_none_becomes_empty(self):
        self.assertEqual(normalize_email(None), '')


class LoginTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='clerk@presco.test', email='clerk@presco.test', password='s3cret-pass'
        )

    def test_login_returns_token_and_user(self):
        response = self.client.post(
            '/api/auth/login', {'email': ' Clerk@Presco.test ', 'password': 's3cret-pass'}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['user'], {'id': str(self.user.pk), 'email': 'clerk@presco.test'})

        token = AccessToken(body['data']['token'])
        self.assertEqual(token['id'], self.user.pk)
        self.assertEqual(token['email'], 'clerk@presco.test')

    def test_wrong_password_is_rejected(self):
        response = self.client.post(
            '/api/auth/login', {'email': 'clerk@presco.test', 'password': 'nope'}, format='json'
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'success': False, 'error': 'Invalid credentials'})

    def test_unknown_email_is_rejected(self):
        response = self.client.post(
            '/api/auth/login', {'email': 'ghost@presco.test', 'password': 's3cret-pass'}, format='json'
        )
        self.assertEqual(response.status_code, 401)

    def test_missing_password_is_a_bad_request(self):
        response = self.client.post('/api/auth/login', {'email': 'clerk@presco.test'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])


class AdminBootstrapTest(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_first_admin_login_creates_the_account(self):
        self.assertFalse(User.objects.filter(email='admin@presco.test').exists())

        response = self.client.post(
            '/api/auth/login', {'email': 'ADMIN@presco.test', 'password': 'admin-secret'}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        admin = User.objects.get(email='admin@presco.test')
        self.assertTrue(admin.is_superuser)

    def test_admin_login_with_wrong_password_fails_after_seeding(self):
        response = self.client.post(
            '/api/auth/login', {'email': 'admin@presco.test', 'password': 'guess'}, format='json'
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(User.objects.filter(email='admin@presco.test').count(), 1)

    @override_settings(ADMIN_BOOTSTRAP_ON_LOGIN=False)
    def test_disabled_bootstrap_leaves_admin_absent(self):
        response = self.client.post(
            '/api/auth/login', {'email': 'admin@presco.test', 'password': 'admin-secret'}, format='json'
        )
        self.assertEqual(response.status_code, 401)
        self.assertFalse(User.objects.filter(email='admin@presco.test').exists())

    def test_bootstrap_is_idempotent(self):
        first, created = AuthService.bootstrap_admin()
        again, created_again = AuthService.bootstrap_admin()
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.pk, again.pk)

    @override_settings(ADMIN_EMAIL='', ADMIN_PASSWORD='')
    def test_bootstrap_without_seed_does_nothing(self):
        self.assertEqual(AuthService.bootstrap_admin(), (None, False))

    def test_management_command(self):
        out = StringIO()
        call_command('bootstrap_admin', stdout=out)
        self.assertIn('admin@presco.test', out.getvalue())
        self.assertTrue(User.objects.filter(email='admin@presco.test', is_superuser=True).exists())


class RegisterTest(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_register_creates_user_and_returns_token(self):
        response = self.client.post(
            '/api/auth/register', {'email': 'New@Presco.test', 'password': 'longenough'}, format='json'
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['user']['email'], 'new@presco.test')
        self.assertTrue(User.objects.get(email='new@presco.test').check_password('longenough'))

    def test_short_password_is_rejected(self):
        response = self.client.post(
            '/api/auth/register', {'email': 'short@presco.test', 'password': 'abc'}, format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('too short', response.json()['error'])
        self.assertFalse(User.objects.filter(email='short@presco.test').exists())

    def test_duplicate_email_is_rejected(self):
        User.objects.create_user(username='taken@presco.test', email='taken@presco.test', password='whatever1')
        response = self.client.post(
            '/api/auth/register', {'email': 'taken@presco.test', 'password': 'longenough'}, format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'User already exists')


class CurrentUserTest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='clerk@presco.test', email='clerk@presco.test', password='s3cret-pass'
        )

    def test_valid_token(self):
        token = AuthService.issue_token(self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data'], {'id': str(self.user.pk), 'email': 'clerk@presco.test'})

    def test_missing_token(self):
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Not authorized to access this route')

    def test_expired_token(self):
        token = AccessToken.for_user(self.user)
        token.set_exp(lifetime=-timedelta(minutes=1))
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, 401)

    def test_tampered_token(self):
        header, payload, _signature = AuthService.issue_token(self.user).split('.')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {header}.{payload}.forged')
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, 401)
