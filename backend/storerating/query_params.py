# storerating/query_params.py
from django.db.models import F, Q
from rest_framework.exceptions import ValidationError

SORT_DIRECTIONS = {'asc': False, 'desc': True}


def search_filter(term, fields):
    """OR of case-insensitive substring matches of `term` against `fields`. Blank term -> empty Q."""
    term = (term or '').strip()
    if not term:
        return Q()
    query = Q()
    for field in fields:
        query |= Q(**{f'{field}__icontains': term})
    return query


def resolve_ordering(params, allowed, default='name'):
    """
    Map the sortBy / sortOrder query params onto ORM ordering expressions.

    `allowed` maps each accepted sortBy value to the model field or annotation
    it sorts on; anything else is rejected, so raw client input never reaches
    the ORDER BY clause. NULL aggregates sort first ascending, last descending.
    """
    sort_by = params.get('sortBy') or default
    sort_order = (params.get('sortOrder') or 'asc').lower()

    if sort_by not in allowed:
        raise ValidationError('Invalid sort field')
    if sort_order not in SORT_DIRECTIONS:
        raise ValidationError('Invalid sort order')

    column = F(allowed[sort_by])
    if SORT_DIRECTIONS[sort_order]:
        return [column.desc(nulls_last=True), F('id').desc()]
    return [column.asc(nulls_first=True), F('id').asc()]
