# users/validation.py
"""
Field checks shared by the user and store endpoints.

Every check returns a ValidationResult instead of raising, so callers decide
how a failure is reported (serializer error, CLI message, ...).
"""
import re
from typing import NamedTuple, Optional

from .models import Role

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
UPPERCASE_RE = re.compile(r'[A-Z]')
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'

NAME_MIN, NAME_MAX = 20, 60
PASSWORD_MIN, PASSWORD_MAX = 8, 16
ADDRESS_MAX = 400
STORE_NAME_MAX = 100
RATING_MIN, RATING_MAX = 1, 5
RATING_ERROR = f'Rating must be between {RATING_MIN} and {RATING_MAX}'


class ValidationResult(NamedTuple):
    is_valid: bool
    error: Optional[str] = None


VALID = ValidationResult(True)


def invalid(reason):
    return ValidationResult(False, reason)


def validate_name(name) -> ValidationResult:
    if not isinstance(name, str) or not NAME_MIN <= len(name) <= NAME_MAX:
        return invalid(f'Name must be between {NAME_MIN} and {NAME_MAX} characters')
    return VALID


def validate_email(email) -> ValidationResult:
    if not isinstance(email, str) or not EMAIL_RE.match(email):
        return invalid('Please enter a valid email address')
    return VALID


def validate_password(password) -> ValidationResult:
    if not isinstance(password, str) or not PASSWORD_MIN <= len(password) <= PASSWORD_MAX:
        return invalid(f'Password must be between {PASSWORD_MIN} and {PASSWORD_MAX} characters')
    has_upper = bool(UPPERCASE_RE.search(password))
    has_special = any(ch in SPECIAL_CHARS for ch in password)
    if not (has_upper and has_special):
        return invalid('Password must include at least one uppercase letter and one special character')
    return VALID


def validate_address(address) -> ValidationResult:
    if not isinstance(address, str) or not address:
        return invalid('Address is required')
    if len(address) > ADDRESS_MAX:
        return invalid(f'Address must not exceed {ADDRESS_MAX} characters')
    return VALID


def validate_store_name(name) -> ValidationResult:
    if not isinstance(name, str) or not name.strip():
        return invalid('Store name is required')
    if len(name) > STORE_NAME_MAX:
        return invalid(f'Store name must not exceed {STORE_NAME_MAX} characters')
    return VALID


def validate_role(role) -> ValidationResult:
    if role not in Role.values:
        return invalid('Invalid role')
    return VALID


def parse_rating(value) -> Optional[int]:
    """Integer value of a submitted rating, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_rating(value) -> ValidationResult:
    rating = parse_rating(value)
    if rating is None or not RATING_MIN <= rating <= RATING_MAX:
        return invalid(RATING_ERROR)
    return VALID
