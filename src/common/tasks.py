"""Common tasks."""

from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils import timezone

from common.models import EmailLog

logger = structlog.get_logger(__name__)


@shared_task(name="common.send_email")
def send_email(*, to: str | list[str], subject: str, body: str, html_body: str | None = None) -> None:
    """Send an email and keep a log entry per recipient.

    Args:
        to (str | list[str]): The email address or addresses.
        subject (str): The email subject.
        body (str): The plain text body.
        html_body (str | None): The HTML email body.
    """
    recipients = [to] if isinstance(to, str) else to
    email_msg = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
    )
    if html_body:
        email_msg.attach_alternative(html_body, "text/html")
    email_msg.send(fail_silently=False)
    EmailLog.objects.bulk_create(
        [EmailLog(to=recipient, subject=subject, body=body, html_body=html_body or "") for recipient in recipients]
    )
    logger.info("email_sent", subject=subject, recipient_count=len(recipients))


@shared_task(name="common.cleanup_email_logs")
def cleanup_email_logs() -> int:
    """Delete email logs older than a week."""
    deleted, _ = EmailLog.objects.filter(sent_at__lte=timezone.now() - timedelta(days=7)).delete()
    return deleted
