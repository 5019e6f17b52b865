"""
Invitation tokens and expiry.
Tokens avoid look-alike characters (0/O, 1/l/I) since they end up in links people retype.
"""
import secrets
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

TOKEN_ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789'
TOKEN_LENGTH = 32


def generate_invitation_token(length: int = TOKEN_LENGTH) -> str:
    """Cryptographically secure random token over TOKEN_ALPHABET."""
    return ''.join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def default_expiry(now=None):
    now = now or timezone.now()
    return now + timedelta(days=getattr(settings, 'INVITATION_EXPIRY_DAYS', 7))


def is_expired(expires_at, now=None) -> bool:
    return (now or timezone.now()) > expires_at
