# storerating/exceptions.py
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """Duplicate of a unique value (e.g. an email). Reported as 400 like other input errors."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Resource already exists'
    default_code = 'conflict'


class PersistenceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Database error'
    default_code = 'database_error'


class InvalidCredentials(APIException):
    """
    Bad login. Plain 401 rather than AuthenticationFailed, which DRF downgrades
    to 403 on views without an authentication scheme.
    """
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid email or password'
    default_code = 'invalid_credentials'


def first_message(detail):
    """
    Collapse a DRF error payload (str, list or field dict, possibly nested)
    into the first human-readable message.
    """
    if isinstance(detail, dict):
        if 'detail' in detail:
            return first_message(detail['detail'])
        return first_message(next(iter(detail.values()))) if detail else ''
    if isinstance(detail, (list, tuple)):
        return first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER: every error leaves the API as {"error": "<message>"}.
    Database failures are logged server-side and answered with an opaque 500.
    """
    if isinstance(exc, DatabaseError):
        request = context.get('request')
        logger.exception("Database error while handling %s %s",
                         getattr(request, 'method', '?'), getattr(request, 'path', '?'))
        exc = PersistenceError()

    response = exception_handler(exc, context)
    if response is None:
        return None
    response.data = {'error': first_message(response.data)}
    return response
