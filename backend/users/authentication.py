# users/authentication.py
import logging

from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import TokenError

from .credentials import verify_token
from .models import Role

logger = logging.getLogger(__name__)


class TokenIdentity:
    """
    Caller identity rebuilt from token claims. Nothing is read from the
    database; handlers that need the stored row load it themselves.
    """
    is_authenticated = True
    is_anonymous = False

    def __init__(self, claims):
        self.id = claims['id']
        self.email = claims['email']
        self.role = Role(claims['role'])

    @property
    def pk(self):
        return self.id

    def __repr__(self):
        return f"TokenIdentity(id={self.id!r}, role={self.role.value!r})"


class BearerTokenAuthentication(BaseAuthentication):
    """
    `Authorization: Bearer <token>`.
    No header -> anonymous (IsAuthenticated then answers 401).
    Anything else that does not verify -> 401 "Invalid token".
    """
    keyword = b'bearer'

    def authenticate(self, request):
        parts = get_authorization_header(request).split()
        if not parts:
            return None
        if parts[0].lower() != self.keyword or len(parts) != 2:
            raise AuthenticationFailed('Invalid token')

        try:
            token = parts[1].decode()
            claims = verify_token(token)
        except (UnicodeError, TokenError) as e:
            logger.debug("Rejected bearer token: %s", e)
            raise AuthenticationFailed('Invalid token')
        return TokenIdentity(claims), token

    def authenticate_header(self, request):
        return 'Bearer realm="api"'
