# users/credentials.py
"""
Password hashing and bearer-token signing.

Passwords go through Django's hasher framework (bcrypt first, see
settings.PASSWORD_HASHERS). Tokens are HS256 JWTs signed by simplejwt's
configured TokenBackend and carry exactly the identity claims id, email and
role, plus iat/exp.
"""
from datetime import timedelta
from typing import Optional

from django.contrib.auth.hashers import check_password, make_password
from rest_framework_simplejwt.exceptions import TokenBackendError, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.state import token_backend
from rest_framework_simplejwt.utils import aware_utcnow, datetime_to_epoch

from .models import Role

IDENTITY_CLAIMS = ('id', 'email', 'role')


def hash_password(plaintext: str) -> str:
    return make_password(plaintext)


def verify_password(plaintext, digest) -> bool:
    if not plaintext or not digest:
        return False
    return check_password(plaintext, digest)


def issue_token(claims: dict, ttl: Optional[timedelta] = None) -> str:
    """Sign {id, email, role}; ttl defaults to SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']."""
    if set(claims) != set(IDENTITY_CLAIMS):
        raise ValueError(f"Token claims must be exactly {', '.join(IDENTITY_CLAIMS)}")
    now = aware_utcnow()
    lifetime = ttl if ttl is not None else api_settings.ACCESS_TOKEN_LIFETIME
    payload = {
        'id': claims['id'],
        'email': claims['email'],
        'role': str(claims['role']),
        'iat': datetime_to_epoch(now),
        'exp': datetime_to_epoch(now + lifetime),
    }
    return token_backend.encode(payload)


def verify_token(token: str) -> dict:
    """
    Return the identity claims of a valid token.
    Raises TokenError for a bad signature, expiry, or malformed claims.
    """
    try:
        payload = token_backend.decode(token, verify=True)
    except TokenBackendError as e:
        raise TokenError(str(e)) from e

    missing = [claim for claim in IDENTITY_CLAIMS if claim not in payload]
    if missing:
        raise TokenError(f"Token is missing claim(s): {', '.join(missing)}")
    if payload['role'] not in Role.values:
        raise TokenError("Token carries an unknown role")
    return {claim: payload[claim] for claim in IDENTITY_CLAIMS}
