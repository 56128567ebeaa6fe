from django.conf import settings
from django.contrib.auth.hashers import BCryptSHA256PasswordHasher


class BCryptPasswordHasher(BCryptSHA256PasswordHasher):
    """bcrypt-SHA256 with the cost factor taken from settings.BCRYPT_ROUNDS."""
    rounds = getattr(settings, 'BCRYPT_ROUNDS', 10)
