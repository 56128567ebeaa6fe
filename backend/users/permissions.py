# users/permissions.py
from rest_framework.permissions import BasePermission

from .models import Role


def role_allows(role, allowed_roles) -> bool:
    """Role gate. Anything outside the Role enumeration is never allowed."""
    try:
        role = Role(role)
    except ValueError:
        return False
    return role in allowed_roles


class HasRole(BasePermission):
    """
    Allow authenticated callers whose token role is in `allowed_roles`.
    Unauthenticated callers fall through to DRF's 401; wrong role is 403.
    """
    allowed_roles = frozenset()
    message = 'Access denied. Insufficient permissions.'

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return role_allows(getattr(user, 'role', None), self.allowed_roles)


class IsAdmin(HasRole):
    allowed_roles = frozenset({Role.ADMIN})


class IsStoreOwner(HasRole):
    allowed_roles = frozenset({Role.STORE_OWNER})


class IsAnyRole(HasRole):
    allowed_roles = frozenset(Role)
