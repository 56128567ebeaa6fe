# users/tests.py
from datetime import timedelta

from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.state import token_backend

from .credentials import hash_password, issue_token, verify_password, verify_token
from .models import User, Role
from . import validation

NAME = 'Alice Wonderland Customer'
PASSWORD = 'Secret1!a'
ADDRESS = '1 Rabbit Hole Lane, Wonderland'


def make_user(email, role=Role.USER, password=PASSWORD, name=NAME):
    return User.objects.create_user(email, password, name=name, address=ADDRESS, role=role)


class ValidationTestCase(SimpleTestCase):
    def test_name_length_bounds(self):
        self.assertFalse(validation.validate_name('Short').is_valid)
        self.assertTrue(validation.validate_name('A' * 20).is_valid)
        self.assertTrue(validation.validate_name('A' * 60).is_valid)
        self.assertFalse(validation.validate_name('A' * 61).is_valid)
        self.assertFalse(validation.validate_name(None).is_valid)
        self.assertEqual(validation.validate_name('Short').error, 'Name must be between 20 and 60 characters')

    def test_email_shape(self):
        self.assertTrue(validation.validate_email('alice@example.com').is_valid)
        for bad in ('alice', 'alice@example', 'al ice@example.com', 'a@b@c.com', '', None):
            self.assertFalse(validation.validate_email(bad).is_valid, bad)

    def test_password_rules(self):
        self.assertTrue(validation.validate_password('Valid1!a').is_valid)
        no_upper = validation.validate_password('alllower1!')
        self.assertFalse(no_upper.is_valid)
        self.assertIn('uppercase', no_upper.error)
        self.assertFalse(validation.validate_password('NoSpecial1').is_valid)
        self.assertFalse(validation.validate_password('Sh0r!').is_valid)
        self.assertFalse(validation.validate_password('Waytoolong!Password').is_valid)
        self.assertEqual(validation.validate_password('Sh0r!').error, 'Password must be between 8 and 16 characters')

    def test_address(self):
        self.assertTrue(validation.validate_address('x' * 400).is_valid)
        self.assertEqual(validation.validate_address('x' * 401).error, 'Address must not exceed 400 characters')
        self.assertEqual(validation.validate_address('').error, 'Address is required')

    def test_rating_range_and_parsing(self):
        for good in (1, 5, '3', ' 4 ', 2.0):
            self.assertTrue(validation.validate_rating(good).is_valid, good)
        for bad in (0, 6, '7', 'abc', 2.5, True, None):
            self.assertFalse(validation.validate_rating(bad).is_valid, bad)
        self.assertEqual(validation.parse_rating('4'), 4)
        self.assertIsNone(validation.parse_rating('four'))

    def test_role(self):
        self.assertTrue(validation.validate_role('store_owner').is_valid)
        self.assertFalse(validation.validate_role('owner').is_valid)


class CredentialsTestCase(TestCase):
    def test_password_hash_roundtrip(self):
        digest = hash_password(PASSWORD)
        self.assertNotEqual(digest, PASSWORD)
        self.assertTrue(digest.startswith('bcrypt_sha256$'))
        self.assertTrue(verify_password(PASSWORD, digest))
        self.assertFalse(verify_password('Secret1!b', digest))
        self.assertFalse(verify_password('', digest))

    def test_hash_is_salted(self):
        self.assertNotEqual(hash_password(PASSWORD), hash_password(PASSWORD))

    def test_token_carries_identity_claims(self):
        token = issue_token({'id': 7, 'email': 'a@b.co', 'role': Role.STORE_OWNER})
        self.assertEqual(verify_token(token), {'id': 7, 'email': 'a@b.co', 'role': 'store_owner'})
        payload = token_backend.decode(token)
        self.assertEqual(payload['exp'] - payload['iat'], 24 * 60 * 60)

    def test_extra_claims_rejected(self):
        with self.assertRaises(ValueError):
            issue_token({'id': 1, 'email': 'a@b.co', 'role': 'user', 'is_admin': True})

    def test_expired_token(self):
        token = issue_token({'id': 1, 'email': 'a@b.co', 'role': 'user'}, ttl=timedelta(seconds=-10))
        with self.assertRaises(TokenError):
            verify_token(token)

    def test_foreign_signature(self):
        forged = TokenBackend('HS256', 'some-other-signing-key-0123456789abcdef').encode(
            {'id': 1, 'email': 'a@b.co', 'role': 'admin', 'exp': 4102444800}
        )
        with self.assertRaises(TokenError):
            verify_token(forged)

    def test_unknown_role_or_missing_claim(self):
        with self.assertRaises(TokenError):
            verify_token(token_backend.encode({'id': 1, 'email': 'a@b.co', 'role': 'root', 'exp': 4102444800}))
        with self.assertRaises(TokenError):
            verify_token(token_backend.encode({'id': 1, 'email': 'a@b.co', 'exp': 4102444800}))


class RegisterLoginTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    def register(self, **overrides):
        data = {'name': NAME, 'email': 'alice@example.com', 'password': PASSWORD, 'address': ADDRESS}
        data.update(overrides)
        return self.client.post('/api/auth/register', data=data, format='json')

    def test_register_creates_user_with_hashed_password(self):
        resp = self.register()
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json(), {'message': 'User registered successfully'})
        self.assertNotIn('token', resp.json())
        user = User.objects.get(email='alice@example.com')
        self.assertEqual(user.role, Role.USER)
        self.assertNotEqual(user.password, PASSWORD)
        self.assertTrue(user.check_password(PASSWORD))

    def test_register_with_explicit_role(self):
        resp = self.register(role='store_owner')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(User.objects.get(email='alice@example.com').role, Role.STORE_OWNER)

    def test_register_rejects_invalid_role(self):
        resp = self.register(role='superuser')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Invalid role'})

    def test_register_validation_messages(self):
        resp = self.register(name='Too short')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Name must be between 20 and 60 characters'})
        resp = self.register(password='weakpassword')
        self.assertEqual(resp.json()['error'], 'Password must include at least one uppercase letter and one special character')
        resp = self.client.post('/api/auth/register', data={}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], 'Name must be between 20 and 60 characters')
        self.assertFalse(User.objects.exists())

    def test_duplicate_email_conflicts_regardless_of_role(self):
        self.assertEqual(self.register().status_code, 201)
        for role in ('user', 'store_owner', 'admin'):
            resp = self.register(role=role, name='Someone Else Entirely Here', email='ALICE@example.com')
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.json(), {'error': 'Email already registered'})
        self.assertEqual(User.objects.count(), 1)

    def test_login_returns_token_and_public_fields(self):
        self.register()
        resp = self.client.post('/api/auth/login', data={'email': 'alice@example.com', 'password': PASSWORD}, format='json')
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(set(body['user']), {'id', 'name', 'email', 'role', 'address'})
        self.assertNotIn('password', body['user'])
        claims = verify_token(body['token'])
        self.assertEqual(claims['email'], 'alice@example.com')
        self.assertEqual(claims['role'], 'user')

    def test_wrong_password_and_unknown_email_look_identical(self):
        self.register()
        wrong = self.client.post('/api/auth/login', data={'email': 'alice@example.com', 'password': 'Wrong1!pass'}, format='json')
        missing = self.client.post('/api/auth/login', data={'email': 'nobody@example.com', 'password': PASSWORD}, format='json')
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(wrong.json(), {'error': 'Invalid email or password'})
        self.assertEqual(wrong.json(), missing.json())

    def test_login_rejects_malformed_email(self):
        resp = self.client.post('/api/auth/login', data={'email': 'not-an-email', 'password': PASSWORD}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Please enter a valid email address'})


class PasswordChangeTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.alice = make_user('alice@example.com')
        self.owner = make_user('owner@example.com', role=Role.STORE_OWNER)

    def authenticate(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user.claims)}')

    def test_change_password(self):
        self.authenticate(self.alice)
        resp = self.client.put('/api/users/password', data={'currentPassword': PASSWORD, 'newPassword': 'Brand!New1'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'message': 'Password updated successfully'})
        self.alice.refresh_from_db()
        self.assertTrue(self.alice.check_password('Brand!New1'))
        self.assertFalse(self.alice.check_password(PASSWORD))

    def test_wrong_current_password(self):
        self.authenticate(self.alice)
        resp = self.client.put('/api/users/password', data={'currentPassword': 'Nope1!nope', 'newPassword': 'Brand!New1'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Current password is incorrect'})

    def test_new_password_validated_first(self):
        self.authenticate(self.alice)
        resp = self.client.put('/api/users/password', data={'currentPassword': 'Nope1!nope', 'newPassword': 'weak'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Password must be between 8 and 16 characters'})

    def test_deleted_account(self):
        self.authenticate(self.alice)
        self.alice.delete()
        resp = self.client.put('/api/users/password', data={'currentPassword': PASSWORD, 'newPassword': 'Brand!New1'}, format='json')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {'error': 'User not found'})

    def test_requires_token(self):
        resp = self.client.put('/api/users/password', data={'currentPassword': PASSWORD, 'newPassword': 'Brand!New1'}, format='json')
        self.assertEqual(resp.status_code, 401)

    def test_store_owner_alias(self):
        self.authenticate(self.owner)
        resp = self.client.put('/api/store-owner/change-password', data={'currentPassword': PASSWORD, 'newPassword': 'Owner!New1'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.owner.refresh_from_db()
        self.assertTrue(self.owner.check_password('Owner!New1'))

    def test_store_owner_alias_is_role_gated(self):
        self.authenticate(self.alice)
        resp = self.client.put('/api/store-owner/change-password', data={'currentPassword': PASSWORD, 'newPassword': 'Brand!New1'}, format='json')
        self.assertEqual(resp.status_code, 403)
