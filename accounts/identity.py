"""
Identity provider operations: create and delete login accounts.
Invitation acceptance calls these from saga steps (see invitations.services).
"""
import logging

from django.db import IntegrityError, transaction

from .models import User

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Account could not be created (duplicate email, store failure)."""


def create_account(email, password, role):
    """Create an active, email-confirmed account. Returns the User."""
    email = User.objects.normalize_email(email)
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                role=role,
                account_status=User.STATUS_ACTIVE,
            )
    except IntegrityError as exc:
        logger.warning('Account for %s already exists', email)
        raise IdentityError(f'An account with email {email} already exists') from exc
    logger.info('Created %s account %s for %s', role, user.pk, email)
    return user


def delete_account(user_id):
    """Hard-delete an identity (saga compensation only)."""
    deleted, _ = User.objects.filter(pk=user_id).delete()
    logger.info('Deleted account %s (%s rows)', user_id, deleted)
    return deleted > 0


def set_account_status(user, account_status):
    """Soft-delete / suspend / reactivate an account."""
    user.account_status = account_status
    user.save(update_fields=['account_status', 'is_active', 'updated_at'])
    logger.info('Account %s is now %s', user.pk, account_status)
    return user
