# stores/services.py
import logging

from django.db import IntegrityError, connection, transaction
from django.db.models import Avg, Count, F, OuterRef, Subquery
from rest_framework.exceptions import NotFound, ValidationError

from storerating.exceptions import Conflict
from storerating.query_params import resolve_ordering, search_filter
from users.models import User, Role
from .models import Store, Rating

logger = logging.getLogger(__name__)

STORE_SEARCH_FIELDS = ('name', 'email', 'address')
STORE_SORT_FIELDS = {
    'name': 'name',
    'email': 'email',
    'address': 'address',
    'average_rating': 'average_rating',
    'total_ratings': 'total_ratings',
}
USER_STORE_SORT_FIELDS = {**STORE_SORT_FIELDS, 'user_rating': 'user_rating'}


def with_rating_stats(qs):
    """Annotate average_rating (NULL when unrated) and total_ratings onto a Store queryset."""
    return qs.annotate(
        average_rating=Avg('ratings__rating'),
        total_ratings=Count('ratings'),
    )


@transaction.atomic
def create_store(name, email, address, owner_id=None):
    """
    Insert a store. Raises Conflict if the store email is already registered.
    """
    if Store.objects.filter(email__iexact=email).exists():
        raise Conflict('Store email already registered')
    try:
        with transaction.atomic():
            store = Store.objects.create(name=name, email=email, address=address, owner_id=owner_id)
    except IntegrityError:
        raise Conflict('Store email already registered')
    logger.info("Created store id=%s owner_id=%s", store.pk, owner_id)
    return store


def list_stores(params):
    """Admin listing: search over name/email/address, sortable on the aggregates."""
    qs = Store.objects.filter(search_filter(params.get('search'), STORE_SEARCH_FIELDS))
    qs = with_rating_stats(qs)
    return qs.order_by(*resolve_ordering(params, STORE_SORT_FIELDS))


def list_stores_for_user(user_id, params):
    """
    End-user listing: as list_stores plus owner_name and the caller's own
    rating (user_rating, NULL when they have not rated the store).
    `storeId` narrows the result to a single store.
    """
    qs = Store.objects.filter(search_filter(params.get('search'), STORE_SEARCH_FIELDS))

    store_id = params.get('storeId')
    if store_id:
        try:
            store_id = int(store_id)
        except ValueError:
            raise ValidationError('Invalid store id')
        qs = qs.filter(pk=store_id)

    own_rating = Rating.objects.filter(store=OuterRef('pk'), user_id=user_id).values('rating')[:1]
    qs = with_rating_stats(qs).annotate(
        owner_name=F('owner__name'),
        user_rating=Subquery(own_rating),
    )
    return qs.order_by(*resolve_ordering(params, USER_STORE_SORT_FIELDS))


def submit_rating(user_id, store_id, value):
    """
    Insert or overwrite the caller's rating of a store in one statement
    (INSERT ... ON CONFLICT DO UPDATE), so concurrent submissions for the same
    pair cannot produce a second row.
    """
    if not Store.objects.filter(pk=store_id).exists():
        raise NotFound('Store not found')

    upsert = {'update_conflicts': True, 'update_fields': ['rating', 'updated_at']}
    # MySQL resolves the conflict target from the unique key itself
    if connection.features.supports_update_conflicts_with_target:
        upsert['unique_fields'] = ['user', 'store']
    Rating.objects.bulk_create([Rating(user_id=user_id, store_id=store_id, rating=value)], **upsert)
    logger.info("User id=%s rated store id=%s: %s", user_id, store_id, value)


def owner_dashboard(owner_id):
    """
    The owner's stores with their aggregates, and every rating across them
    (rater, store, value, date), newest first.
    """
    stores = with_rating_stats(Store.objects.filter(owner_id=owner_id)).order_by('id')
    ratings = (
        Rating.objects.filter(store__owner_id=owner_id)
        .select_related('user', 'store')
        .order_by('-created_at', '-id')
    )
    return stores, ratings


def store_owner_exists(user_id):
    return User.objects.filter(pk=user_id, role=Role.STORE_OWNER).exists()
