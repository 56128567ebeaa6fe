from django.core.management.base import BaseCommand
from django.db import transaction

from stores.models import Store, Rating
from users.credentials import hash_password
from users.models import User, Role

DEFAULT_ADMIN = ('System Administrator Account', 'admin@storeapp.com', 'Admin123!', 'System Address', Role.ADMIN)

SAMPLE_USERS = [
    ('Test User Customer Account', 'user@test.com', 'User123!', '123 Test Street, Test City, TC 12345', Role.USER),
    ('Test Store Owner Account', 'owner@test.com', 'Owner123!', '456 Business Street, Business City, BC 67890', Role.STORE_OWNER),
    ('John Doe Regular Customer', 'john@example.com', 'User123!', '789 Customer Avenue, Customer City, CC 11111', Role.USER),
    ('Jane Smith Store Owner', 'jane@example.com', 'Owner123!', '321 Owner Boulevard, Owner City, OC 22222', Role.STORE_OWNER),
]

# (name, email, address, owner email or None)
SAMPLE_STORES = [
    ('Sample Store 1', 'store1@example.com', '789 Commerce Blvd, City, State', 'jane@example.com'),
    ('Sample Store 2', 'store2@example.com', '321 Retail Rd, City, State', None),
    ('Corner Coffee House', 'coffee@example.com', '12 Bean Street, City, State', 'owner@test.com'),
]

# (rater email, store email, rating)
SAMPLE_RATINGS = [
    ('john@example.com', 'store1@example.com', 4),
    ('john@example.com', 'store2@example.com', 5),
    ('user@test.com', 'coffee@example.com', 3),
]


class Command(BaseCommand):
    help = "Create the default admin plus sample users, stores and ratings. Safe to run repeatedly."

    def add_arguments(self, parser):
        parser.add_argument('--admin-only', action='store_true', help="Only create the default admin account.")

    @transaction.atomic
    def handle(self, *args, **options):
        admin = self._ensure_user(*DEFAULT_ADMIN)
        self.stdout.write(f"Admin: {admin.email} / {DEFAULT_ADMIN[2]}")
        if options['admin_only']:
            return

        users = {row[1]: self._ensure_user(*row) for row in SAMPLE_USERS}
        stores = {}
        for name, email, address, owner_email in SAMPLE_STORES:
            owner = users.get(owner_email)
            stores[email], _ = Store.objects.get_or_create(
                email=email, defaults={'name': name, 'address': address, 'owner': owner},
            )
        for rater, store, value in SAMPLE_RATINGS:
            Rating.objects.update_or_create(user=users[rater], store=stores[store], defaults={'rating': value})

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(users)} users, {len(stores)} stores, {len(SAMPLE_RATINGS)} ratings"
        ))

    def _ensure_user(self, name, email, password, address, role):
        user, created = User.objects.get_or_create(
            email=email,
            defaults={'name': name, 'address': address, 'role': role, 'password': hash_password(password)},
        )
        if created:
            self.stdout.write(f"Created {role} {email}")
        return user
