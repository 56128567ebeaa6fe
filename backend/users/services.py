# users/services.py
import logging
from functools import lru_cache

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count
from rest_framework.exceptions import NotFound, ValidationError

from storerating.exceptions import Conflict
from storerating.query_params import resolve_ordering, search_filter
from .credentials import hash_password, verify_password
from .models import User, Role

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = {
    'name': 'name',
    'email': 'email',
    'address': 'address',
    'role': 'role',
}
USER_SEARCH_FIELDS = ('name', 'email', 'address')


@lru_cache(maxsize=1)
def _dummy_digest():
    # checked against on unknown emails so a miss costs a hasher pass too
    return hash_password("dummy-Password!")


def email_taken(email):
    return User.objects.filter(email__iexact=email).exists()


@transaction.atomic
def create_user(name, email, password, address, role=Role.USER):
    """
    Insert a user with a hashed password.
    Raises Conflict if the email is already registered (case-insensitive).
    """
    if email_taken(email):
        raise Conflict('Email already registered')
    try:
        with transaction.atomic():
            user = User.objects.create(
                name=name,
                email=User.objects.normalize_email(email),
                password=hash_password(password),
                address=address,
                role=role,
            )
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        raise Conflict('Email already registered')
    logger.info("Created user id=%s role=%s", user.pk, user.role)
    return user


def authenticate_credentials(email, password):
    """Return the user for a matching email/password pair, else None."""
    user = User.objects.filter(email__iexact=email).first()
    if user is None:
        verify_password(password or "x", _dummy_digest())
        return None
    if not verify_password(password, user.password):
        return None
    return user


def change_password(user_id, current_password, new_password):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound('User not found')
    if not verify_password(current_password, user.password):
        raise ValidationError('Current password is incorrect')
    user.password = hash_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    logger.info("Password changed for user id=%s", user.pk)
    return user


def list_users(params):
    """
    Users matching `search` (name/email/address) and `role`, ordered by
    sortBy/sortOrder. Each row carries `rating`, the average over owned stores.
    """
    qs = User.objects.filter(search_filter(params.get('search'), USER_SEARCH_FIELDS))
    role = params.get('role')
    if role:
        if role not in Role.values:
            raise ValidationError('Invalid role')
        qs = qs.filter(role=role)
    qs = qs.annotate(rating=Avg('stores__ratings__rating'))
    return qs.order_by(*resolve_ordering(params, USER_SORT_FIELDS))


def get_user_detail(user_id):
    user = (
        User.objects.filter(pk=user_id)
        .annotate(
            average_rating=Avg('stores__ratings__rating'),
            total_ratings=Count('stores__ratings'),
        )
        .first()
    )
    if user is None:
        raise NotFound('User not found')
    return user


def dashboard_counts():
    from stores.models import Store, Rating
    return {
        'totalUsers': User.objects.count(),
        'totalStores': Store.objects.count(),
        'totalRatings': Rating.objects.count(),
    }
