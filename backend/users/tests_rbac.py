# users/tests_rbac.py
from unittest import mock

from django.db import OperationalError
from django.test import TestCase
from rest_framework.test import APIClient

from stores.models import Store, Rating
from .credentials import issue_token
from .models import User, Role
from .permissions import role_allows

PASSWORD = 'Secret1!a'


def make_user(email, name, role=Role.USER, address='1 Main Street, Springfield'):
    return User.objects.create_user(email, PASSWORD, name=name, address=address, role=role)


class RoleGateTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@example.com', 'Administrator Of The System', Role.ADMIN)
        self.user = make_user('user@example.com', 'Regular Customer Number One')
        self.owner = make_user('owner@example.com', 'Owner Of The Corner Shop', Role.STORE_OWNER)

    def login_as(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user.claims)}')

    def test_role_allows_is_closed_over_roles(self):
        self.assertTrue(role_allows('admin', {Role.ADMIN}))
        self.assertFalse(role_allows('user', {Role.ADMIN}))
        self.assertFalse(role_allows('root', set(Role)))
        self.assertFalse(role_allows(None, set(Role)))

    def test_missing_token_is_401(self):
        resp = self.client.get('/api/admin/dashboard')
        self.assertEqual(resp.status_code, 401)
        self.assertIn('error', resp.json())

    def test_malformed_header_is_401(self):
        for header in ('Token abc', 'Bearer', 'Bearer not.a.jwt', 'Bearer a b'):
            self.client.credentials(HTTP_AUTHORIZATION=header)
            resp = self.client.get('/api/stores')
            self.assertEqual(resp.status_code, 401, header)
            self.assertEqual(resp.json(), {'error': 'Invalid token'})

    def test_wrong_role_is_403(self):
        for user in (self.user, self.owner):
            self.login_as(user)
            resp = self.client.get('/api/admin/dashboard')
            self.assertEqual(resp.status_code, 403)
            self.assertEqual(resp.json(), {'error': 'Access denied. Insufficient permissions.'})

    def test_store_owner_routes_reject_other_roles(self):
        for user in (self.user, self.admin):
            self.login_as(user)
            self.assertEqual(self.client.get('/api/store-owner/dashboard').status_code, 403)
            resp = self.client.post('/api/store-owner/stores', data={'name': 'X', 'email': 'x@x.io', 'address': 'Y'}, format='json')
            self.assertEqual(resp.status_code, 403)

    def test_any_role_may_list_stores_and_rate(self):
        store = Store.objects.create(name='Open Shop', email='open@shop.io', address='Market Square')
        for user in (self.user, self.owner, self.admin):
            self.login_as(user)
            self.assertEqual(self.client.get('/api/stores').status_code, 200)
            resp = self.client.post('/api/ratings', data={'store_id': store.id, 'rating': 3}, format='json')
            self.assertEqual(resp.status_code, 200)
        self.assertEqual(Rating.objects.filter(store=store).count(), 3)


class AdminUsersTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@example.com', 'Administrator Of The System', Role.ADMIN, 'HQ Tower')
        self.alice = make_user('alice@example.com', 'Alice Liddell Wonderland', Role.USER, '7 Rabbit Lane')
        self.bob = make_user('bob@builder.io', 'Bob The Builder Of Things', Role.USER, '12 Brick Road')
        self.olga = make_user('olga@shops.io', 'Olga Owner Of Many Shops', Role.STORE_OWNER, '99 Market Street')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.admin.claims)}')

    def test_dashboard_counts(self):
        store = Store.objects.create(name='Shop', email='shop@shops.io', address='Somewhere', owner=self.olga)
        Rating.objects.create(user=self.alice, store=store, rating=4)
        resp = self.client.get('/api/admin/dashboard')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'totalUsers': 4, 'totalStores': 1, 'totalRatings': 1})

    def test_create_user(self):
        resp = self.client.post('/api/admin/users', data={
            'name': 'Freshly Created Store Owner', 'email': 'new@shops.io',
            'password': 'Fresh!Pass1', 'address': '1 New Street', 'role': 'store_owner',
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['message'], 'User created successfully')
        created = User.objects.get(pk=resp.json()['id'])
        self.assertEqual(created.role, Role.STORE_OWNER)
        self.assertTrue(created.check_password('Fresh!Pass1'))

    def test_create_user_requires_role_and_unique_email(self):
        data = {'name': 'Freshly Created Store Owner', 'email': 'alice@example.com',
                'password': 'Fresh!Pass1', 'address': '1 New Street'}
        resp = self.client.post('/api/admin/users', data=data, format='json')
        self.assertEqual(resp.json(), {'error': 'Invalid role'})
        resp = self.client.post('/api/admin/users', data={**data, 'role': 'user'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Email already registered'})

    def test_list_users_search_is_case_insensitive_across_fields(self):
        resp = self.client.get('/api/admin/users', {'search': 'BRICK'})
        self.assertEqual([u['email'] for u in resp.json()], ['bob@builder.io'])
        resp = self.client.get('/api/admin/users', {'search': 'shops.io'})
        self.assertEqual([u['email'] for u in resp.json()], ['olga@shops.io'])
        resp = self.client.get('/api/admin/users', {'search': 'alice'})
        self.assertEqual([u['name'] for u in resp.json()], ['Alice Liddell Wonderland'])

    def test_list_users_role_filter_and_sort(self):
        resp = self.client.get('/api/admin/users', {'role': 'user', 'sortBy': 'name', 'sortOrder': 'DESC'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([u['email'] for u in resp.json()], ['bob@builder.io', 'alice@example.com'])
        self.assertNotIn('password', resp.json()[0])

        resp = self.client.get('/api/admin/users', {'sortBy': 'email', 'sortOrder': 'asc'})
        emails = [u['email'] for u in resp.json()]
        self.assertEqual(emails, sorted(emails))

    def test_list_users_rejects_unknown_sort_and_role(self):
        resp = self.client.get('/api/admin/users', {'sortBy': 'name; DROP TABLE users'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Invalid sort field'})
        resp = self.client.get('/api/admin/users', {'sortOrder': 'sideways'})
        self.assertEqual(resp.json(), {'error': 'Invalid sort order'})
        resp = self.client.get('/api/admin/users', {'role': 'owner'})
        self.assertEqual(resp.json(), {'error': 'Invalid role'})
        self.assertEqual(User.objects.count(), 4)

    def test_list_users_carries_owner_rating(self):
        store = Store.objects.create(name='Shop', email='shop@shops.io', address='Somewhere', owner=self.olga)
        Rating.objects.create(user=self.alice, store=store, rating=2)
        Rating.objects.create(user=self.bob, store=store, rating=5)
        rows = {u['email']: u for u in self.client.get('/api/admin/users').json()}
        self.assertEqual(rows['olga@shops.io']['rating'], 3.5)
        self.assertIsNone(rows['alice@example.com']['rating'])

    def test_user_detail_aggregates_owned_stores(self):
        first = Store.objects.create(name='First', email='first@shops.io', address='A', owner=self.olga)
        second = Store.objects.create(name='Second', email='second@shops.io', address='B', owner=self.olga)
        Rating.objects.create(user=self.alice, store=first, rating=5)
        Rating.objects.create(user=self.bob, store=first, rating=4)
        Rating.objects.create(user=self.alice, store=second, rating=3)

        resp = self.client.get(f'/api/admin/users/{self.olga.id}')
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body['role'], 'store_owner')
        self.assertEqual(body['total_ratings'], 3)
        self.assertAlmostEqual(body['average_rating'], 4.0)

    def test_user_detail_without_stores(self):
        body = self.client.get(f'/api/admin/users/{self.alice.id}').json()
        self.assertIsNone(body['average_rating'])
        self.assertEqual(body['total_ratings'], 0)

    def test_user_detail_not_found(self):
        resp = self.client.get('/api/admin/users/999999')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {'error': 'User not found'})

    def test_database_failure_is_opaque_500(self):
        with mock.patch('users.services.dashboard_counts', side_effect=OperationalError('disk I/O error at /var/db')):
            with self.assertLogs('storerating.exceptions', level='ERROR'):
                resp = self.client.get('/api/admin/dashboard')
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {'error': 'Database error'})
