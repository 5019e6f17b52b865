"""
Invitation workflow: create, validate and accept student/teacher invitations.

Acceptance spans the identity store and profile/invitation rows, so it runs as
a saga (core.saga): a failing step undoes the earlier ones in reverse order.
"""
import logging
import re

from django.db import DatabaseError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from accounts.identity import IdentityError, create_account, delete_account, set_account_status
from accounts.models import User, UserProfile
from config.exceptions import UpstreamFailure
from core.models import Department, Institution
from core.saga import Saga, SagaFailed
from exams.services.assignments import backfill_student
from . import emails
from .models import StudentInvitation, TeacherInvitation
from .tokens import default_expiry, is_expired

logger = logging.getLogger(__name__)

DEPARTMENT_CODES = {
    'bca': 'BCA (Bachelor of Computer Applications)',
    'bba': 'BBA (Bachelor of Business Administration)',
    'cse': 'CSE (Computer Science Engineering)',
    'ece': 'ECE (Electronics & Communication Engineering)',
}
DEFAULT_INSTITUTION_NAME = 'Your Institution'
DEFAULT_DEPARTMENT_NAME = 'General Department'
MIN_PASSWORD_LENGTH = 8


def _reactivate_account(user, role, password, profile_fields):
    """Bring a soft-deleted account back with a new password, role and profile."""
    user.set_password(password)
    user.role = role
    user.account_status = User.STATUS_ACTIVE
    user.save()
    UserProfile.objects.update_or_create(user=user, defaults=profile_fields)
    return user


# ----- Student invitations -----

def create_student_invitation(teacher, email, first_name, last_name, department, exam, expires_at=None):
    """Create a pending invitation and email the link. Duplicate (email, exam) is rejected."""
    email = User.objects.normalize_email(email)
    if StudentInvitation.objects.filter(student_email__iexact=email, exam=exam).exists():
        raise ValidationError('Student already invited for this exam')

    invitation = StudentInvitation.objects.create(
        student_email=email,
        first_name=first_name,
        last_name=last_name,
        department=department,
        exam=exam,
        teacher=teacher,
        expires_at=expires_at or default_expiry(),
    )
    logger.info('User %s invited %s to exam %s', teacher.pk, email, exam.pk)
    emails.send_student_invitation(invitation)
    return invitation


def update_student_invitation(invitation, email, first_name, last_name, department, exam, expires_at=None):
    invitation.student_email = User.objects.normalize_email(email)
    invitation.first_name = first_name
    invitation.last_name = last_name
    invitation.department = department
    invitation.exam = exam
    if expires_at is not None:
        invitation.expires_at = expires_at
    invitation.save()
    logger.info('Updated student invitation %s', invitation.pk)
    return invitation


@transaction.atomic
def delete_student_invitations(ids):
    """
    Delete invitations. Accounts created through an accepted invitation are
    soft-deleted (account_status=deleted), never removed.
    """
    invitations = list(StudentInvitation.objects.filter(pk__in=ids).select_related('student'))
    for invitation in invitations:
        if invitation.status == StudentInvitation.STATUS_ACCEPTED and invitation.student is not None:
            set_account_status(invitation.student, User.STATUS_DELETED)
    deleted, _ = StudentInvitation.objects.filter(pk__in=[i.pk for i in invitations]).delete()
    logger.info('Deleted %s student invitation(s)', deleted)
    return deleted


def get_valid_student_invitation(token, now=None):
    """404 when unknown, 400 when expired or already accepted."""
    invitation = StudentInvitation.objects.select_related(
        'exam', 'exam__department__institution', 'department__institution',
    ).filter(invitation_token=token).first() if token else None
    if invitation is None:
        raise NotFound('Invalid or expired invitation token')
    if is_expired(invitation.expires_at, now):
        raise ValidationError('This invitation has expired')
    if invitation.status == StudentInvitation.STATUS_ACCEPTED:
        raise ValidationError('This invitation has already been accepted')
    return invitation


def _institution_for(invitation):
    exam = invitation.exam
    if exam is not None and exam.department is not None and exam.department.institution_id:
        return exam.department.institution
    if invitation.department is not None and invitation.department.institution_id:
        return invitation.department.institution
    return None


def describe_student_invitation(invitation):
    exam = invitation.exam
    institution = _institution_for(invitation)
    return {
        'id': invitation.pk,
        'email': invitation.student_email,
        'firstName': invitation.first_name,
        'lastName': invitation.last_name,
        'status': invitation.status,
        'expiresAt': invitation.expires_at,
        'institution': institution.name if institution else None,
        'department': invitation.department.name if invitation.department else None,
        'exam': {
            'id': exam.pk,
            'title': exam.title,
            'description': exam.description,
            'startTime': exam.start_time,
            'endTime': exam.end_time,
            'duration': invitation.duration or exam.duration,
        } if exam else None,
    }


def _validate_password(password, require_mixed=False):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    if require_mixed and not (
        re.search(r'[a-z]', password) and re.search(r'[A-Z]', password) and re.search(r'\d', password)
    ):
        raise ValidationError('Password must contain uppercase, lowercase, and number')


def _run_onboarding_saga(saga, context, email):
    try:
        return saga.run(context)
    except SagaFailed as failed:
        if isinstance(failed.cause, IdentityError):
            raise ValidationError(str(failed.cause)) from failed
        logger.error('Onboarding of %s failed at %s', email, failed.step)
        raise UpstreamFailure('Failed to create user account') from failed


def _onboarding_saga(email, role, build_profile, finish):
    """identity -> profile -> invitation update; reverse-order compensation."""
    saga = Saga()
    saga.add_step(
        'identity',
        lambda ctx: create_account(email, ctx['password'], role),
        lambda ctx: delete_account(ctx['identity'].pk),
    )
    saga.add_step(
        'profile',
        lambda ctx: UserProfile.objects.create(user=ctx['identity'], **build_profile(ctx)),
        lambda ctx: ctx['profile'].delete(),
    )
    saga.add_step('invitation', finish)
    return saga


def accept_student_invitation(token, password, now=None):
    """
    Create the student account for a pending invitation.
    Returns (invitation, user).
    """
    _validate_password(password)
    invitation = get_valid_student_invitation(token, now)
    institution = _institution_for(invitation)

    def build_profile(ctx):
        return {
            'email': invitation.student_email,
            'first_name': invitation.first_name,
            'last_name': invitation.last_name,
            'institution': institution,
            'department': invitation.department,
            'profile_completed': True,
            'created_by': invitation.teacher,
        }

    def mark_accepted(ctx):
        invitation.status = StudentInvitation.STATUS_ACCEPTED
        invitation.student = ctx['identity']
        invitation.save(update_fields=['status', 'student', 'updated_at'])
        return invitation

    existing = User.objects.filter(email__iexact=invitation.student_email).first()
    if existing is not None:
        if existing.account_status != User.STATUS_DELETED:
            raise ValidationError(f'An account with email {existing.email} already exists')
        with transaction.atomic():
            user = _reactivate_account(existing, User.ROLE_STUDENT, password, build_profile({}))
            mark_accepted({'identity': user})
        logger.info('Reactivated account %s as student', user.pk)
    else:
        saga = _onboarding_saga(invitation.student_email, User.ROLE_STUDENT, build_profile, mark_accepted)
        context = _run_onboarding_saga(saga, {'password': password}, invitation.student_email)
        user = context['identity']

    try:
        backfill_student(user)
    except DatabaseError:
        logger.exception('Assignment back-fill failed for %s', user.email)

    logger.info('Student invitation %s accepted by user %s', invitation.pk, user.pk)
    return invitation, user


# ----- Teacher invitations -----

def create_teacher_invitation(admin, email, first_name, last_name, institution='', department='', expires_at=None):
    email = User.objects.normalize_email(email)
    existing = User.objects.filter(email__iexact=email).first()
    if existing is not None and existing.account_status != User.STATUS_DELETED:
        raise ValidationError('A user with this email already exists')
    if TeacherInvitation.objects.filter(email__iexact=email, status=TeacherInvitation.STATUS_PENDING).exists():
        raise ValidationError('An invitation for this email is already pending')

    profile = getattr(admin, 'profile', None)
    if not institution and profile is not None and profile.institution_id:
        institution = str(profile.institution_id)
    if not department and profile is not None and profile.department_id:
        department = str(profile.department_id)

    invitation = TeacherInvitation.objects.create(
        email=email,
        admin=admin,
        first_name=first_name,
        last_name=last_name,
        institution=institution or '',
        department=department or '',
        expires_at=expires_at or default_expiry(),
    )
    logger.info('Admin %s invited teacher %s', admin.pk, email)
    emails.send_teacher_invitation(invitation)
    return invitation


def get_valid_teacher_invitation(token, now=None):
    invitation = TeacherInvitation.objects.filter(
        token=token, status=TeacherInvitation.STATUS_PENDING,
    ).first() if token else None
    if invitation is None:
        raise ValidationError('Invalid invitation token')
    if is_expired(invitation.expires_at, now):
        raise ValidationError('Invitation has expired')
    return invitation


def _by_id(model, raw):
    if raw and str(raw).isdigit():
        return model.objects.filter(pk=int(raw)).first()
    return None


def resolve_institution_name(raw):
    """Institution id -> name, else the raw value, else the generic default."""
    if not raw:
        return DEFAULT_INSTITUTION_NAME
    institution = _by_id(Institution, raw)
    return institution.name if institution else raw


def resolve_department_name(raw):
    """Department id -> name, else a known department code, else the raw value."""
    if not raw:
        return DEFAULT_DEPARTMENT_NAME
    department = _by_id(Department, raw)
    if department is not None:
        return department.name
    return DEPARTMENT_CODES.get(str(raw).lower(), raw)


def describe_teacher_invitation(invitation):
    return {
        'id': invitation.pk,
        'email': invitation.email,
        'first_name': invitation.first_name,
        'last_name': invitation.last_name,
        'institution': resolve_institution_name(invitation.institution),
        'department': resolve_department_name(invitation.department),
        'expires_at': invitation.expires_at,
    }


def _teacher_profile_fields(invitation):
    return {
        'email': invitation.email,
        'first_name': invitation.first_name,
        'last_name': invitation.last_name,
        'institution': _by_id(Institution, invitation.institution),
        'department': _by_id(Department, invitation.department),
        'profile_completed': True,
        'created_by': invitation.admin,
    }


def _mark_teacher_invitation_used(invitation, now=None):
    invitation.status = TeacherInvitation.STATUS_ACCEPTED
    invitation.used_at = now or timezone.now()
    invitation.save(update_fields=['status', 'used_at'])
    return invitation


@transaction.atomic
def _reactivate_teacher(user, invitation, password):
    _reactivate_account(user, User.ROLE_TEACHER, password, _teacher_profile_fields(invitation))
    _mark_teacher_invitation_used(invitation)
    return user


def accept_teacher_invitation(token, password, now=None):
    """
    Returns (user, reactivated). A deleted account with the invited email is
    brought back as a teacher instead of creating a second identity.
    """
    if not token or not password:
        raise ValidationError('Token and password are required')
    _validate_password(password, require_mixed=True)
    invitation = get_valid_teacher_invitation(token, now)

    existing = User.objects.filter(email__iexact=invitation.email).first()
    if existing is not None:
        if existing.account_status != User.STATUS_DELETED:
            raise ValidationError('A user with this email already exists')
        user = _reactivate_teacher(existing, invitation, password)
        logger.info('Reactivated account %s as teacher', user.pk)
        return user, True

    saga = _onboarding_saga(
        invitation.email,
        User.ROLE_TEACHER,
        lambda ctx: _teacher_profile_fields(invitation),
        lambda ctx: _mark_teacher_invitation_used(invitation, now),
    )
    context = _run_onboarding_saga(saga, {'password': password}, invitation.email)
    user = context['identity']
    logger.info('Teacher invitation %s accepted by user %s', invitation.pk, user.pk)
    return user, False
