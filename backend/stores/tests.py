# stores/tests.py
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from users.credentials import issue_token
from users.models import User, Role
from .models import Store, Rating
from .services import submit_rating

PASSWORD = 'Secret1!a'


def make_user(email, name, role=Role.USER):
    return User.objects.create_user(email, PASSWORD, name=name, address='1 Main Street, Springfield', role=role)


class StoreApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@example.com', 'Administrator Of The System', Role.ADMIN)
        self.alice = make_user('alice@example.com', 'Alice Liddell Wonderland')
        self.bob = make_user('bob@example.com', 'Bob The Builder Of Things')
        self.owner = make_user('owner@example.com', 'Olga Owner Of Many Shops', Role.STORE_OWNER)

        self.bakery = Store.objects.create(name='Bakery', email='bakery@shops.io', address='5 Flour Street', owner=self.owner)
        self.cafe = Store.objects.create(name='Cafe', email='cafe@shops.io', address='9 Bean Avenue')

    def login_as(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user.claims)}')

    def rate(self, user, store, value):
        self.login_as(user)
        return self.client.post('/api/ratings', data={'store_id': store.id, 'rating': value}, format='json')


class RatingTestCase(StoreApiTestCase):
    def test_second_submission_overwrites(self):
        self.assertEqual(self.rate(self.alice, self.bakery, 2).status_code, 200)
        resp = self.rate(self.alice, self.bakery, 5)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'message': 'Rating submitted successfully'})
        ratings = Rating.objects.filter(user=self.alice, store=self.bakery)
        self.assertEqual(ratings.count(), 1)
        self.assertEqual(ratings.get().rating, 5)

    def test_upsert_service_keeps_one_row(self):
        for value in (1, 3, 4):
            submit_rating(self.bob.id, self.cafe.id, value)
        self.assertEqual(Rating.objects.get(user=self.bob, store=self.cafe).rating, 4)
        self.assertEqual(Rating.objects.count(), 1)

    def test_string_rating_is_parsed(self):
        self.assertEqual(self.rate(self.alice, self.cafe, '4').status_code, 200)
        self.assertEqual(Rating.objects.get().rating, 4)

    def test_out_of_range_rating(self):
        for value in (0, 6, 'five', None):
            resp = self.rate(self.alice, self.cafe, value)
            self.assertEqual(resp.status_code, 400, value)
            self.assertEqual(resp.json(), {'error': 'Rating must be between 1 and 5'})
        self.assertFalse(Rating.objects.exists())

    def test_rating_checked_before_store(self):
        self.login_as(self.alice)
        resp = self.client.post('/api/ratings', data={'store_id': 424242, 'rating': 9}, format='json')
        self.assertEqual(resp.json(), {'error': 'Rating must be between 1 and 5'})

    def test_unknown_store(self):
        self.login_as(self.alice)
        resp = self.client.post('/api/ratings', data={'store_id': 424242, 'rating': 3}, format='json')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {'error': 'Store not found'})

    def test_ratings_follow_their_user_and_store(self):
        self.rate(self.alice, self.bakery, 3)
        self.rate(self.bob, self.cafe, 3)
        self.alice.delete()
        self.assertEqual(list(Rating.objects.values_list('user_id', flat=True)), [self.bob.id])
        self.cafe.delete()
        self.assertFalse(Rating.objects.exists())

    def test_owner_removal_keeps_store(self):
        self.owner.delete()
        self.bakery.refresh_from_db()
        self.assertIsNone(self.bakery.owner_id)


class StoreListTestCase(StoreApiTestCase):
    def test_two_raters_average_and_own_rating(self):
        self.rate(self.alice, self.bakery, 4)
        self.rate(self.bob, self.bakery, 5)

        for user, own in ((self.alice, 4), (self.bob, 5)):
            self.login_as(user)
            rows = {s['id']: s for s in self.client.get('/api/stores').json()}
            bakery = rows[self.bakery.id]
            self.assertEqual(bakery['average_rating'], 4.5)
            self.assertEqual(bakery['total_ratings'], 2)
            self.assertEqual(bakery['user_rating'], own)
            self.assertEqual(bakery['owner_name'], 'Olga Owner Of Many Shops')

    def test_unrated_store_has_null_average(self):
        self.login_as(self.alice)
        cafe = next(s for s in self.client.get('/api/stores').json() if s['id'] == self.cafe.id)
        self.assertIsNone(cafe['average_rating'])
        self.assertEqual(cafe['total_ratings'], 0)
        self.assertIsNone(cafe['user_rating'])
        self.assertIsNone(cafe['owner_name'])

    def test_search_and_store_id_filter(self):
        self.login_as(self.alice)
        resp = self.client.get('/api/stores', {'search': 'bean'})
        self.assertEqual([s['name'] for s in resp.json()], ['Cafe'])
        resp = self.client.get('/api/stores', {'storeId': self.bakery.id})
        self.assertEqual([s['name'] for s in resp.json()], ['Bakery'])
        resp = self.client.get('/api/stores', {'storeId': 'abc'})
        self.assertEqual(resp.status_code, 400)

    def test_sort_by_average_rating(self):
        third = Store.objects.create(name='Deli', email='deli@shops.io', address='3 Pickle Road')
        self.rate(self.alice, self.bakery, 2)
        self.rate(self.alice, third, 5)
        self.login_as(self.alice)
        resp = self.client.get('/api/stores', {'sortBy': 'average_rating', 'sortOrder': 'DESC'})
        self.assertEqual([s['name'] for s in resp.json()], ['Deli', 'Bakery', 'Cafe'])
        resp = self.client.get('/api/stores', {'sortBy': 'average_rating', 'sortOrder': 'ASC'})
        self.assertEqual([s['name'] for s in resp.json()], ['Cafe', 'Bakery', 'Deli'])

    def test_sort_field_allow_list(self):
        self.login_as(self.alice)
        resp = self.client.get('/api/stores', {'sortBy': 'password'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Invalid sort field'})

    def test_admin_store_listing(self):
        self.rate(self.alice, self.cafe, 1)
        self.login_as(self.admin)
        resp = self.client.get('/api/admin/stores', {'search': 'SHOPS.IO', 'sortBy': 'name', 'sortOrder': 'DESC'})
        self.assertEqual(resp.status_code, 200)
        rows = resp.json()
        self.assertEqual([s['name'] for s in rows], ['Cafe', 'Bakery'])
        self.assertEqual(rows[0]['average_rating'], 1.0)
        self.assertEqual(rows[0]['total_ratings'], 1)
        self.assertEqual(rows[1]['owner_id'], self.owner.id)
        self.assertNotIn('user_rating', rows[0])


class StoreCreationTestCase(StoreApiTestCase):
    def test_admin_creates_store_for_owner(self):
        self.login_as(self.admin)
        resp = self.client.post('/api/admin/stores', data={
            'name': 'Hardware Hub', 'email': 'hub@shops.io', 'address': '1 Nail Street', 'owner_id': self.owner.id,
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['message'], 'Store created successfully')
        self.assertEqual(Store.objects.get(pk=resp.json()['id']).owner, self.owner)

    def test_admin_creates_unowned_store(self):
        self.login_as(self.admin)
        resp = self.client.post('/api/admin/stores', data={'name': 'Kiosk', 'email': 'kiosk@shops.io', 'address': 'Station'}, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertIsNone(Store.objects.get(pk=resp.json()['id']).owner)

    def test_admin_owner_must_be_store_owner(self):
        self.login_as(self.admin)
        resp = self.client.post('/api/admin/stores', data={
            'name': 'Kiosk', 'email': 'kiosk@shops.io', 'address': 'Station', 'owner_id': self.alice.id,
        }, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Owner must be an existing store owner'})

    def test_required_fields_and_unique_email(self):
        self.login_as(self.admin)
        resp = self.client.post('/api/admin/stores', data={'name': 'Kiosk', 'address': 'Station'}, format='json')
        self.assertEqual(resp.json(), {'error': 'Name, email, and address are required'})
        resp = self.client.post('/api/admin/stores', data={'name': 'Kiosk', 'email': 'kiosk', 'address': 'Station'}, format='json')
        self.assertEqual(resp.json(), {'error': 'Please enter a valid email address'})
        resp = self.client.post('/api/admin/stores', data={'name': 'Kiosk', 'email': 'kiosk@shops.io', 'address': 'x' * 401}, format='json')
        self.assertEqual(resp.json(), {'error': 'Address must not exceed 400 characters'})
        resp = self.client.post('/api/admin/stores', data={'name': 'Copycat', 'email': 'Bakery@shops.io', 'address': 'Elsewhere'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'Store email already registered'})
        self.assertEqual(Store.objects.count(), 2)

    def test_owner_creates_own_store(self):
        self.login_as(self.owner)
        resp = self.client.post('/api/store-owner/stores', data={
            'name': 'Second Bakery', 'email': 'bakery2@shops.io', 'address': '6 Flour Street', 'owner_id': self.admin.id,
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        # owner_id in the body is ignored
        self.assertEqual(Store.objects.get(pk=resp.json()['id']).owner, self.owner)

    def test_owner_store_email_unique(self):
        self.login_as(self.owner)
        resp = self.client.post('/api/store-owner/stores', data={'name': 'Again', 'email': 'cafe@shops.io', 'address': 'Here'}, format='json')
        self.assertEqual(resp.json(), {'error': 'Store email already registered'})


class OwnerDashboardTestCase(StoreApiTestCase):
    def test_admin_created_store_shows_on_owner_dashboard(self):
        self.login_as(self.admin)
        resp = self.client.post('/api/admin/stores', data={
            'name': 'Hardware Hub', 'email': 'hub@shops.io', 'address': '1 Nail Street', 'owner_id': self.owner.id,
        }, format='json')
        hub = Store.objects.get(pk=resp.json()['id'])
        self.rate(self.alice, hub, 2)
        self.rate(self.bob, hub, 3)
        self.rate(self.alice, self.cafe, 5)  # not the owner's store

        self.login_as(self.owner)
        resp = self.client.get('/api/store-owner/dashboard')
        self.assertEqual(resp.status_code, 200)
        stores = {s['id']: s for s in resp.json()['stores']}
        self.assertEqual(set(stores), {self.bakery.id, hub.id})
        self.assertEqual(stores[hub.id]['averageRating'], 2.5)
        self.assertEqual(stores[hub.id]['totalRatings'], 2)
        self.assertIsNone(stores[self.bakery.id]['averageRating'])
        self.assertEqual(stores[self.bakery.id]['totalRatings'], 0)

    def test_raters_newest_first(self):
        self.rate(self.alice, self.bakery, 4)
        self.rate(self.bob, self.bakery, 1)
        self.login_as(self.owner)
        users = self.client.get('/api/store-owner/dashboard').json()['users']
        self.assertEqual([u['email'] for u in users], ['bob@example.com', 'alice@example.com'])
        self.assertEqual(users[0]['storeName'], 'Bakery')
        self.assertEqual(users[0]['rating'], 1)
        self.assertEqual(set(users[0]), {'id', 'name', 'email', 'address', 'storeName', 'rating', 'date'})

    def test_owner_without_stores(self):
        lonely = make_user('lonely@example.com', 'Lonely Owner Without Shops', Role.STORE_OWNER)
        self.login_as(lonely)
        self.assertEqual(self.client.get('/api/store-owner/dashboard').json(), {'stores': [], 'users': []})


class HealthAndSeedTestCase(TestCase):
    def test_health_is_public(self):
        resp = APIClient().get('/api/health')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'backend': 'ok', 'database': 'ok'})

    def test_seed_demo_is_idempotent(self):
        call_command('seed_demo', stdout=StringIO())
        call_command('seed_demo', stdout=StringIO())
        admin = User.objects.get(email='admin@storeapp.com')
        self.assertEqual(admin.role, Role.ADMIN)
        self.assertTrue(admin.check_password('Admin123!'))
        self.assertEqual(User.objects.count(), 5)
        self.assertEqual(Store.objects.count(), 3)
        self.assertEqual(Rating.objects.count(), 3)

    def test_seed_admin_only(self):
        call_command('seed_demo', '--admin-only', stdout=StringIO())
        self.assertEqual(User.objects.count(), 1)
        self.assertFalse(Store.objects.exists())
