"""
JWT authentication that also enforces account_status on every request.
"""
import logging

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

logger = logging.getLogger(__name__)


class ActiveAccountJWTAuthentication(JWTAuthentication):
    """
    A token issued before an account was suspended or deleted stays
    cryptographically valid; reject it here so every endpoint answers 401.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if user.account_status != user.STATUS_ACTIVE:
            logger.warning('Rejected token for %s account %s', user.account_status, user.pk)
            raise AuthenticationFailed('User account is disabled.', code='user_inactive')
        return user
