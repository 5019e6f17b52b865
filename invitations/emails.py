"""
Invitation emails. Delivery problems are logged and never fail the request:
the invitation row is the source of truth and can be re-sent.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def invitation_url(kind, token):
    return f"{settings.APP_URL.rstrip('/')}/{kind}-invitation/{token}"


def _deliver(subject, body, html, recipient):
    try:
        send_mail(
            subject,
            body,
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            html_message=html,
            fail_silently=False,
        )
    except Exception as exc:
        logger.exception('Failed to send invitation email to %s: %s', recipient, exc)
        return False
    logger.info('Invitation email sent to %s', recipient)
    return True


def send_student_invitation(invitation):
    url = invitation_url('student', invitation.invitation_token)
    exam_title = invitation.exam.title if invitation.exam else 'Exam'
    expires = invitation.expires_at.strftime('%B %d, %Y %H:%M UTC')
    body = (
        f"Hello {invitation.first_name},\n\n"
        f"You've been invited to take an exam: {exam_title}\n\n"
        f"Accept the invitation and create your student account here:\n{url}\n\n"
        f"This invitation expires on {expires}.\n"
        "If you didn't expect this invitation, you can safely ignore this email.\n"
    )
    html = (
        f"<p>Hello {invitation.first_name},</p>"
        f"<p>You've been invited to take an exam: <strong>{exam_title}</strong></p>"
        f'<p><a href="{url}">Accept Invitation &amp; Create Account</a></p>'
        f"<p>This invitation expires on {expires}.</p>"
    )
    return _deliver(f"You're Invited to Take: {exam_title}", body, html, invitation.student_email)


def send_teacher_invitation(invitation):
    url = invitation_url('teacher', invitation.token)
    days = getattr(settings, 'INVITATION_EXPIRY_DAYS', 7)
    body = (
        f"Hello {invitation.first_name},\n\n"
        "You've been invited to join the exam portal as a teacher.\n\n"
        f"Create your account here:\n{url}\n\n"
        f"This invitation expires in {days} days. "
        "If you did not request this invitation, please ignore this email.\n"
    )
    html = (
        f"<p>Hello {invitation.first_name},</p>"
        "<p>You've been invited to join the exam portal as a teacher.</p>"
        f'<p><a href="{url}">Create your account</a></p>'
        f"<p><strong>Important:</strong> This invitation expires in {days} days.</p>"
    )
    return _deliver('Teacher Invitation', body, html, invitation.email)
